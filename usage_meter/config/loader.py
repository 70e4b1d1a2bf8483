"""
Configuration management and loading.

Resolves the plan quota from CLI arguments, an optional YAML config file,
environment variables and the assistant's settings file.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml


# Daily token limits per plan
PLAN_LIMITS: Dict[str, int] = {
    "pro": 45_000_000,
    "max5": 225_000_000,
    "max20": 900_000_000,
    "custom": 45_000_000,
    "max": 225_000_000,
}

DEFAULT_PLAN = "max5"

# Checked in order; the first naming a known plan wins
PLAN_ENV_VARS = ("CLAUDE_STATUS_PLAN", "CLAUDE_PLAN", "CLAUDE_CODE_PLAN")
CONFIG_ENV_VAR = "CLAUDE_STATUS_CONFIG"


def default_settings_path() -> Path:
    """Return the path to the assistant's settings.json."""
    return Path.home() / ".claude" / "settings.json"


@dataclass(frozen=True)
class PlanQuota:
    """Token quota for a plan. The weekly limit is always 7 daily limits."""
    plan: str
    daily_token_limit: int

    def __post_init__(self):
        """Validate the limit is a positive integer."""
        if isinstance(self.daily_token_limit, bool) or not isinstance(self.daily_token_limit, int):
            raise ValueError("daily_token_limit must be an integer")
        if self.daily_token_limit <= 0:
            raise ValueError("daily_token_limit must be > 0")

    @property
    def weekly_token_limit(self) -> int:
        """Weekly token limit (daily limit * 7)."""
        return self.daily_token_limit * 7


@dataclass(frozen=True)
class MeterConfig:
    """Settings loaded from a usage-meter YAML config file."""
    plan: Optional[str] = None
    daily_token_limit: Optional[int] = None
    projects_dir: Optional[str] = None


def detect_plan(
    environ: Optional[Mapping[str, str]] = None,
    settings_path: Optional[Path] = None
) -> str:
    """Detect the active plan.

    Order: plan environment variables, the ``model`` key of settings.json,
    then the default plan. Values that are not known plans are ignored.

    Args:
        environ: Environment mapping (defaults to os.environ)
        settings_path: settings.json location (defaults to ~/.claude/settings.json)

    Returns:
        A key of PLAN_LIMITS
    """
    if environ is None:
        environ = os.environ

    for var in PLAN_ENV_VARS:
        value = environ.get(var)
        if value:
            if value in PLAN_LIMITS:
                return value
            break

    path = settings_path or default_settings_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (OSError, json.JSONDecodeError):
        settings = None

    if isinstance(settings, dict):
        plan = settings.get("model")
        if isinstance(plan, str) and plan in PLAN_LIMITS:
            return plan

    return DEFAULT_PLAN


def load_meter_config(path: str) -> MeterConfig:
    """Load and validate a usage-meter configuration from a YAML file.

    Strict validation ensures a typo never silently falls back to the
    wrong quota.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated MeterConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Usage meter config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_keys = {'plan', 'daily_token_limit', 'projects_dir'}
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    plan = raw_config.get('plan')
    if plan is not None:
        if not isinstance(plan, str):
            raise ValueError("'plan' must be a string")
        if plan not in PLAN_LIMITS:
            raise ValueError(f"'plan' must be one of: {sorted(PLAN_LIMITS)}")

    limit = raw_config.get('daily_token_limit')
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValueError("'daily_token_limit' must be a positive integer")

    projects_dir = raw_config.get('projects_dir')
    if projects_dir is not None and not isinstance(projects_dir, str):
        raise ValueError("'projects_dir' must be a string")

    return MeterConfig(
        plan=plan,
        daily_token_limit=limit,
        projects_dir=projects_dir
    )


def resolve_plan_quota(
    plan: Optional[str] = None,
    config: Optional[MeterConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    settings_path: Optional[Path] = None
) -> PlanQuota:
    """Resolve the quota to report against.

    Plan precedence: explicit argument, config file, detection. A config
    ``daily_token_limit`` overrides the plan table.

    Raises:
        ValueError: If an explicit plan is not known
    """
    if plan is not None and plan not in PLAN_LIMITS:
        raise ValueError(f"Unknown plan '{plan}', must be one of: {sorted(PLAN_LIMITS)}")

    if plan is None and config is not None:
        plan = config.plan
    if plan is None:
        plan = detect_plan(environ=environ, settings_path=settings_path)

    daily_limit = PLAN_LIMITS[plan]
    if config is not None and config.daily_token_limit is not None:
        daily_limit = config.daily_token_limit

    return PlanQuota(plan=plan, daily_token_limit=daily_limit)
