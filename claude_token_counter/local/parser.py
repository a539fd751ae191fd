"""
Record parsing for session log lines.

Each line of a session log is a standalone JSON object. Assistant
messages carry their token usage at ``message.usage``:

    {"message": {"model": "...", "usage": {"input_tokens": 12, ...}}}

Malformed lines produce an UNPARSABLE result instead of an exception,
so callers can count them without try/except around every line.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from claude_token_counter.core.token_counter import LogRecord

# Wire name -> LogRecord field
USAGE_FIELDS = {
    "input_tokens": "input_tokens",
    "output_tokens": "output_tokens",
    "cache_creation_input_tokens": "cache_creation_tokens",
    "cache_read_input_tokens": "cache_read_tokens",
}


class ParseStatus(Enum):
    """Outcome of parsing a single line."""
    RECORD = "record"
    BLANK = "blank"
    UNPARSABLE = "unparsable"


@dataclass(frozen=True)
class ParseResult:
    """Tagged parse outcome; ``record`` is set only for RECORD."""
    status: ParseStatus
    record: Optional[LogRecord] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ParseStatus.RECORD


BLANK = ParseResult(ParseStatus.BLANK)


def _unparsable(reason: str) -> ParseResult:
    return ParseResult(ParseStatus.UNPARSABLE, reason=reason)


def _is_token_count(value: Any) -> bool:
    # bool is an int subclass; true/false are not token counts
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def parse_line(line: str) -> ParseResult:
    """Parse one log line into a LogRecord.

    Args:
        line: Raw line, with or without its trailing newline

    Returns:
        ParseResult with status RECORD, BLANK or UNPARSABLE
    """
    text = line.strip()
    if not text:
        return BLANK

    try:
        entry = json.loads(text)
    except (ValueError, RecursionError) as e:
        # Deeply nested input exhausts the decoder stack
        return _unparsable(f"invalid JSON: {e}")

    if not isinstance(entry, dict):
        return _unparsable("line is not a JSON object")

    message = entry.get("message")
    if not isinstance(message, dict):
        return _unparsable("missing 'message' object")

    usage = message.get("usage")
    if not isinstance(usage, dict):
        return _unparsable("missing 'message.usage' object")

    counters: Dict[str, int] = {}
    for wire_name, field_name in USAGE_FIELDS.items():
        if wire_name not in usage:
            continue
        value = usage[wire_name]
        if not _is_token_count(value):
            return _unparsable(f"'{wire_name}' is not a non-negative integer: {value!r}")
        counters[field_name] = value

    model = message.get("model")
    if not isinstance(model, str):
        model = None

    return ParseResult(ParseStatus.RECORD, record=LogRecord(model=model, **counters))
