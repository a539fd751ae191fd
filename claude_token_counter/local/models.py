"""
Data models for local log scanning.

Defines the aggregated result of one full scan.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Snapshot:
    """Immutable totals from one scan of the log directory.

    Always a complete total for the corpus at scan time, never a delta
    against an earlier scan.
    """
    total_input: int = 0
    total_output: int = 0
    total_cache_creation: int = 0
    total_cache_read: int = 0
    message_count: int = 0
    file_count: int = 0
    skipped_lines: int = 0
    unreadable_files: int = 0
    skipped_directories: int = 0
    models: Tuple[Tuple[str, int], ...] = ()  # (model, message_count), sorted by model

    @property
    def total_tokens(self) -> int:
        """Sum of all four token categories."""
        return (
            self.total_input
            + self.total_output
            + self.total_cache_creation
            + self.total_cache_read
        )

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()
