"""
Repository pattern for session log access.

Turns the raw JSONL corpus into a sorted, deduplicated sequence of usage
records. Read-only: logs are never modified.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from usage_meter.core.dedup import SeenKeys, dedup_key
from usage_meter.core.timestamps import parse_timestamp
from usage_meter.core.token_counter import extract_token_usage
from .models import UsageRecord
from .scanner import default_projects_dir, discover_log_files, iter_log_records

logger = logging.getLogger(__name__)


class UsageLogRepository:
    """Repository for reading usage records from session logs.

    Each call to ``load_usage_records`` is an independent run with its own
    deduplication state.
    """

    def __init__(self, projects_dir: Optional[Union[str, Path]] = None):
        """Initialize the repository with a projects directory.

        Args:
            projects_dir: Root of the session logs (defaults to ~/.claude/projects)
        """
        self.projects_dir = Path(projects_dir) if projects_dir else default_projects_dir()

    def load_usage_records(self, cutoff: datetime) -> List[UsageRecord]:
        """Load every usage record at or after cutoff across all log files.

        Deduplication is corpus-wide: a record repeated in another file, or
        later in the same file, is counted once.

        Args:
            cutoff: Oldest timestamp to include (timezone-aware)

        Returns:
            Usage records ordered by timestamp (oldest first)
        """
        seen_keys = SeenKeys()
        records: List[UsageRecord] = []

        log_files = discover_log_files(self.projects_dir)
        for log_file in log_files:
            for raw in iter_log_records(log_file):
                record = _to_usage_record(raw, cutoff, seen_keys)
                if record is not None:
                    records.append(record)

        logger.debug(
            "Loaded %d usage records from %d files (%d unique keys)",
            len(records), len(log_files), len(seen_keys)
        )
        records.sort(key=lambda r: r.timestamp)
        return records


def _to_usage_record(
    raw: Dict[str, Any],
    cutoff: datetime,
    seen_keys: SeenKeys
) -> Optional[UsageRecord]:
    """Filter a raw record through timestamp, dedup and usage checks.

    A key is only marked as seen once the record has proved to carry usage,
    so a zero-usage duplicate never hides a later record with real counts.
    """
    timestamp = parse_timestamp(raw.get("timestamp"))
    if timestamp is None or timestamp < cutoff:
        return None

    key = dedup_key(raw)
    if seen_keys.seen(key):
        return None

    usage = extract_token_usage(raw)
    if usage.is_empty:
        return None

    seen_keys.add(key)
    return UsageRecord(timestamp=timestamp, usage=usage, dedup_key=key)
