"""
CLI interface for usage-meter.

Prints daily and weekly token usage for a status line or as a report.
"""

import json
import logging
import os
import sys
from typing import Optional, Tuple

import typer
import yaml
from rich.console import Console
from rich.table import Table

from usage_meter.config.loader import (
    CONFIG_ENV_VAR,
    PLAN_LIMITS,
    MeterConfig,
    PlanQuota,
    detect_plan,
    load_meter_config,
    resolve_plan_quota
)
from usage_meter.core.aggregator import UsageSummary, calculate_usage

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

PlanOption = typer.Option(
    None,
    "--plan",
    "-p",
    help="Plan to report against (pro, max5, max20, custom, max)"
)
ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help=f"YAML config file (defaults to ${CONFIG_ENV_VAR} when set)"
)
ProjectsDirOption = typer.Option(
    None,
    "--projects-dir",
    "-d",
    help="Session log directory (defaults to ~/.claude/projects)"
)
VerboseOption = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log scanning details to stderr"
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )


def _load_config(config_path: Optional[str]) -> Optional[MeterConfig]:
    """Load the YAML config from the option or environment, if any."""
    path = config_path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return None
    return load_meter_config(path)


def _compute_summary(
    plan: Optional[str],
    config_path: Optional[str],
    projects_dir: Optional[str]
) -> Tuple[PlanQuota, UsageSummary]:
    """Resolve the quota and scan the logs.

    Returns:
        Tuple of (PlanQuota, UsageSummary)
    """
    config = _load_config(config_path)
    quota = resolve_plan_quota(plan=plan, config=config)
    if projects_dir is None and config is not None:
        projects_dir = config.projects_dir
    summary = calculate_usage(quota, projects_dir=projects_dir)
    return quota, summary


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """usage-meter CLI."""
    if ctx.invoked_subcommand is None:
        console.print("usage-meter - Use --help to see available commands")


@app.command()
def usage(
    plan: Optional[str] = PlanOption,
    config: Optional[str] = ConfigOption,
    projects_dir: Optional[str] = ProjectsDirOption,
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the labels as a JSON object"
    ),
    verbose: bool = VerboseOption
):
    """
    Print daily usage, weekly usage and reset time.

    Output is plain text (e.g. ``D:22.2% W:3.2% @00:00``) meant to be
    composed into a status line.
    """
    _configure_logging(verbose)
    try:
        _, summary = _compute_summary(plan, config, projects_dir)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        typer.echo(json.dumps(_summary_to_dict(summary), ensure_ascii=False))
    else:
        typer.echo(" ".join(summary.labels()))
    sys.exit(EXIT_CODE_PASS)


@app.command()
def report(
    plan: Optional[str] = PlanOption,
    config: Optional[str] = ConfigOption,
    projects_dir: Optional[str] = ProjectsDirOption,
    verbose: bool = VerboseOption
):
    """Show token usage per window against the plan quota."""
    _configure_logging(verbose)
    try:
        quota, summary = _compute_summary(plan, config, projects_dir)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_report(quota, summary)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def plans():
    """List known plans and their daily token limits."""
    detected = detect_plan()

    table = Table(title="Plans")
    table.add_column("Plan")
    table.add_column("Daily limit", justify="right")
    table.add_column("Weekly limit", justify="right")
    table.add_column("Active", justify="center")

    for name, daily_limit in PLAN_LIMITS.items():
        table.add_row(
            name,
            _format_tokens(daily_limit),
            _format_tokens(daily_limit * 7),
            "[green]✓[/]" if name == detected else ""
        )

    console.print(table)


def _summary_to_dict(summary: UsageSummary) -> dict:
    return {
        "daily": summary.daily_label,
        "weekly": summary.weekly_label,
        "reset_time": summary.reset_label,
    }


def _format_tokens(count: int) -> str:
    """Format a token count with thousands separators."""
    return f"{count:,}"


def _display_report(quota: PlanQuota, summary: UsageSummary) -> None:
    """Display usage per window in a table."""
    console.print(f"\n[bold]Token Usage[/bold] (plan: {quota.plan})")

    if summary.idle:
        console.print("\n[dim]No usage found in the last 8 days.[/]")
        console.print(f"Next reset: {summary.reset_time_label}\n")
        return

    table = Table()
    table.add_column("Window")
    table.add_column("Tokens", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Used", justify="right")

    table.add_row(
        "Last 24 hours",
        _format_tokens(summary.daily_tokens),
        _format_tokens(quota.daily_token_limit),
        f"{summary.daily_percentage}%"
    )
    table.add_row(
        "Last 7 days",
        _format_tokens(summary.weekly_tokens),
        _format_tokens(quota.weekly_token_limit),
        f"{summary.weekly_percentage}%"
    )

    console.print(table)
    console.print(f"Daily reset: {summary.reset_time_label}\n")


if __name__ == "__main__":
    app()
