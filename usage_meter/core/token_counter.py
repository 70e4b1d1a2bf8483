"""
Token counting and usage extraction.

Pulls token counters out of session log records across the different
field-naming conventions the assistant has written over time.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple


# Ordered aliases per sub-count; the first strictly positive value wins
INPUT_TOKEN_FIELDS: Tuple[str, ...] = ("input_tokens", "inputTokens", "prompt_tokens")
OUTPUT_TOKEN_FIELDS: Tuple[str, ...] = ("output_tokens", "outputTokens", "completion_tokens")
CACHE_CREATION_TOKEN_FIELDS: Tuple[str, ...] = (
    "cache_creation_tokens",
    "cache_creation_input_tokens",
    "cacheCreationInputTokens",
)
CACHE_READ_TOKEN_FIELDS: Tuple[str, ...] = (
    "cache_read_input_tokens",
    "cache_read_tokens",
    "cacheReadInputTokens",
)

ASSISTANT_RECORD_TYPE = "assistant"


@dataclass(frozen=True)
class TokenUsage:
    """Token counts taken from a single usage source object.

    Cache tokens are billed, so they count toward the total.
    """
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    def __post_init__(self):
        """Validate token counts are non-negative."""
        for name in ("input_tokens", "output_tokens", "cache_creation_tokens", "cache_read_tokens"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output + cache creation + cache read)."""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_tokens
            + self.cache_read_tokens
        )

    @property
    def is_empty(self) -> bool:
        """True when no sub-count is positive."""
        return self.total_tokens == 0


def extract_token_field(source: Dict[str, Any], field_names: Tuple[str, ...]) -> int:
    """Return the first strictly positive value among the given aliases.

    Only finite numbers count; booleans, strings, nulls, NaN and infinities
    are treated as absent.

    Args:
        source: Candidate source object
        field_names: Aliases in priority order

    Returns:
        The value truncated to an int, or 0 if no alias holds a positive number
    """
    for field_name in field_names:
        value = source.get(field_name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isfinite(value) and value > 0:
            return int(value)
    return 0


def token_sources(record: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Build the ordered list of objects that may hold usage counters.

    Assistant messages carry authoritative usage under ``message.usage``;
    other event types carry it at the top level. The record itself comes
    last to cover flattened legacy schemas.
    """
    message = record.get("message")
    nested_usage = message.get("usage") if isinstance(message, dict) else None
    top_usage = record.get("usage")

    if record.get("type") == ASSISTANT_RECORD_TYPE:
        candidates = [nested_usage, top_usage]
    else:
        candidates = [top_usage, nested_usage]

    sources = [candidate for candidate in candidates if isinstance(candidate, dict)]
    sources.append(record)
    return sources


def extract_token_usage(record: Dict[str, Any]) -> TokenUsage:
    """Extract token usage from a parsed log record.

    The first source object with at least one positive sub-count supplies
    all four values together; values are never merged across sources.

    Args:
        record: Parsed JSON object from a session log line

    Returns:
        TokenUsage for the record (empty if no source holds usage)
    """
    for source in token_sources(record):
        usage = TokenUsage(
            input_tokens=extract_token_field(source, INPUT_TOKEN_FIELDS),
            output_tokens=extract_token_field(source, OUTPUT_TOKEN_FIELDS),
            cache_creation_tokens=extract_token_field(source, CACHE_CREATION_TOKEN_FIELDS),
            cache_read_tokens=extract_token_field(source, CACHE_READ_TOKEN_FIELDS),
        )
        if not usage.is_empty:
            return usage

    return TokenUsage()
