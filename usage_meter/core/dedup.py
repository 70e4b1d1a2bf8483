"""
Record deduplication.

The assistant can write the same response to more than one session file
(resumed or forked sessions), so records are keyed by their message and
request identifiers and counted once per run.
"""

from typing import Any, Dict, Optional, Set


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def dedup_key(record: Dict[str, Any]) -> Optional[str]:
    """Derive the identity key for a record.

    Args:
        record: Parsed JSON object from a session log line

    Returns:
        ``"<message_id>:<request_id>"``, or None when either half is missing.
        Records without a key are never deduplicated.
    """
    message = record.get("message")
    nested_id = message.get("id") if isinstance(message, dict) else None

    message_id = _first_present(record.get("message_id"), nested_id)
    request_id = _first_present(record.get("requestId"), record.get("request_id"))

    if message_id is None or request_id is None:
        return None
    return f"{message_id}:{request_id}"


class SeenKeys:
    """Identity keys already counted during a single aggregation run.

    Create one per run and pass it explicitly; it is never shared between runs.
    """

    def __init__(self):
        self._keys: Set[str] = set()

    def __len__(self) -> int:
        return len(self._keys)

    def seen(self, key: Optional[str]) -> bool:
        """Return True if the key was already counted. None is never seen."""
        return key is not None and key in self._keys

    def add(self, key: Optional[str]) -> None:
        """Record a counted key. None keys are ignored."""
        if key is not None:
            self._keys.add(key)
