"""
Data models for the log storage layer.

Defines the records produced from session log lines.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from usage_meter.core.token_counter import TokenUsage


@dataclass(frozen=True)
class UsageRecord:
    """A log record that survived parsing, cutoff, dedup and the non-zero filter.

    Ephemeral: produced during one aggregation run and discarded with it.
    """
    timestamp: datetime
    usage: TokenUsage
    dedup_key: Optional[str] = None

    def __post_init__(self):
        """Validate the record carries usage."""
        if self.usage.is_empty:
            raise ValueError("UsageRecord requires non-zero token usage")

    @property
    def total_tokens(self) -> int:
        """Total billed tokens for this record."""
        return self.usage.total_tokens
