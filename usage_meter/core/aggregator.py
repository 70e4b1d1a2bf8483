"""
Windowed usage aggregation.

Reduces usage records into trailing daily and weekly totals and reports
them as percentages of the plan quota.

Windows:
1. Daily - records at or after now - 24h
2. Weekly - records at or after now - 7 days

Both sums are computed independently from the same record sequence.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import List, Optional, Sequence, Union

from usage_meter.config.loader import PlanQuota
from usage_meter.storage.models import UsageRecord
from usage_meter.storage.repository import UsageLogRepository


# 8 days so the weekly window is always fully covered
LOOKBACK = timedelta(days=8)
DAILY_WINDOW = timedelta(hours=24)
WEEKLY_WINDOW = timedelta(days=7)

# Daily quota resets at midnight
RESET_LABEL = "00:00"


@dataclass(frozen=True)
class UsageSummary:
    """Daily and weekly usage against the plan quota."""
    daily_percentage: float
    weekly_percentage: float
    reset_time_label: str
    daily_tokens: int = 0
    weekly_tokens: int = 0
    idle: bool = False

    @property
    def daily_label(self) -> str:
        """Daily usage label, e.g. ``D:22.2%``."""
        return f"D:{self._format_percentage(self.daily_percentage)}%"

    @property
    def weekly_label(self) -> str:
        """Weekly usage label, e.g. ``W:3.2%``."""
        return f"W:{self._format_percentage(self.weekly_percentage)}%"

    @property
    def reset_label(self) -> str:
        """Reset time label: ``@00:00`` with data, ``→HH:MM`` when idle."""
        prefix = "→" if self.idle else "@"
        return f"{prefix}{self.reset_time_label}"

    def labels(self) -> List[str]:
        """The three display labels in order: daily, weekly, reset."""
        return [self.daily_label, self.weekly_label, self.reset_label]

    def _format_percentage(self, value: float) -> str:
        # Idle summaries render as a bare 0
        if self.idle:
            return "0"
        return str(value)


def usage_percentage(tokens: int, limit: int) -> float:
    """Express tokens as a percentage of limit, rounded half-up to 1 decimal.

    Args:
        tokens: Tokens used in the window
        limit: Positive token limit for the window

    Returns:
        Percentage, e.g. 22.2 for 10,000,000 of 45,000,000
    """
    percentage = Decimal(tokens) * Decimal(100) / Decimal(limit)
    return float(percentage.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def as_aware(moment: datetime) -> datetime:
    """Treat a naive datetime as local time and attach its offset."""
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


def sum_window(records: Sequence[UsageRecord], start: datetime) -> int:
    """Sum total tokens for records at or after start."""
    return sum(record.total_tokens for record in records if record.timestamp >= start)


def next_reset_label(now: datetime) -> str:
    """Render the next local midnight after now as ``HH:MM``."""
    local_now = now.astimezone()
    tomorrow = local_now.date() + timedelta(days=1)
    reset_time = datetime.combine(tomorrow, time.min)
    return reset_time.strftime("%H:%M")


def default_summary(now: datetime) -> UsageSummary:
    """Summary for a corpus with no usage in the lookback window."""
    return UsageSummary(
        daily_percentage=0.0,
        weekly_percentage=0.0,
        reset_time_label=next_reset_label(now),
        idle=True
    )


def summarize_usage(
    records: Sequence[UsageRecord],
    quota: PlanQuota,
    now: datetime
) -> UsageSummary:
    """Reduce usage records into daily and weekly percentages.

    Args:
        records: Deduplicated usage records
        quota: Plan quota (limits are positive by construction)
        now: Reference time for the trailing windows

    Returns:
        UsageSummary (the idle default when there are no records)
    """
    now = as_aware(now)
    if not records:
        return default_summary(now)

    daily_tokens = sum_window(records, now - DAILY_WINDOW)
    weekly_tokens = sum_window(records, now - WEEKLY_WINDOW)

    return UsageSummary(
        daily_percentage=usage_percentage(daily_tokens, quota.daily_token_limit),
        weekly_percentage=usage_percentage(weekly_tokens, quota.weekly_token_limit),
        reset_time_label=RESET_LABEL,
        daily_tokens=daily_tokens,
        weekly_tokens=weekly_tokens
    )


def calculate_usage(
    quota: PlanQuota,
    projects_dir: Optional[Union[str, Path]] = None,
    now: Optional[datetime] = None
) -> UsageSummary:
    """Scan the session logs and summarize usage against the quota.

    Read-only and stateless between calls: the same corpus and ``now``
    always produce the same summary.

    Args:
        quota: Resolved plan quota
        projects_dir: Root of the session logs (defaults to ~/.claude/projects)
        now: Reference time (defaults to the current UTC time)

    Returns:
        UsageSummary for the trailing 24 hours and 7 days
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = as_aware(now)

    repository = UsageLogRepository(projects_dir)
    records = repository.load_usage_records(cutoff=now - LOOKBACK)
    return summarize_usage(records, quota, now)
