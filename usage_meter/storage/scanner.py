"""
Session log discovery and streaming.

Finds JSONL session logs under a projects directory and reads them
line by line without loading whole files into memory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

logger = logging.getLogger(__name__)

LOG_FILE_PATTERN = "*.jsonl"


def default_projects_dir() -> Path:
    """Return the directory the assistant writes session logs to."""
    return Path.home() / ".claude" / "projects"


def discover_log_files(root: Union[str, Path]) -> List[Path]:
    """Recursively find all JSONL files under root.

    A missing or unreadable root is a normal state and yields no files.

    Args:
        root: Directory to search

    Returns:
        Sorted list of log file paths
    """
    root_path = Path(root)
    if not root_path.is_dir():
        return []

    try:
        return sorted(path for path in root_path.rglob(LOG_FILE_PATTERN) if path.is_file())
    except OSError as e:
        logger.debug("Could not scan %s: %s", root_path, e)
        return []


def iter_log_lines(path: Union[str, Path]) -> Iterator[str]:
    """Yield the non-blank lines of a log file, stripped.

    Invalid UTF-8 is replaced rather than raised, so a bad line fails
    JSON parsing on its own. The file is closed once the generator is
    exhausted or closed.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield line
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)


def _reject_constant(name: str) -> None:
    raise ValueError(f"Non-finite number {name}")


def iter_log_records(path: Union[str, Path]) -> Iterator[Dict[str, Any]]:
    """Yield each line of a log file that parses as a JSON object.

    Malformed lines are skipped without affecting the lines after them.
    """
    for entry_number, line in enumerate(iter_log_lines(path), start=1):
        try:
            record = json.loads(line, parse_constant=_reject_constant)
        except ValueError:
            logger.debug("Skipping malformed JSON in %s (entry %d)", path, entry_number)
            continue
        if not isinstance(record, dict):
            logger.debug("Skipping non-object record in %s (entry %d)", path, entry_number)
            continue
        yield record
