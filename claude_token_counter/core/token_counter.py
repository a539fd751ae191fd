"""
Token counting for parsed log records.

Defines the usage event extracted from a single log line.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LogRecord:
    """Token usage reported by one assistant message.

    Every counter defaults to zero when the log line omits it.
    """
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    model: Optional[str] = None

    @property
    def total_tokens(self) -> int:
        """Total tokens across all four categories."""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_tokens
            + self.cache_read_tokens
        )
