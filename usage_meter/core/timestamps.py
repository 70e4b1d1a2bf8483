"""
Timestamp parsing for session log records.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a log timestamp into a timezone-aware datetime.

    Accepts ISO-8601 style values: a date, an optional time with optional
    fractional seconds, and an optional ``Z`` or numeric offset. Naive
    values are taken as UTC.

    Args:
        value: Raw ``timestamp`` field from a record

    Returns:
        Aware datetime, or None if the value is missing or unparseable.
        Callers must discard the record rather than substitute a default.
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
