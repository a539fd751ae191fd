"""
Usage aggregation across log files.

Folds parsed records from every discovered file into one Snapshot.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, Optional, Union

from claude_token_counter.core.token_counter import LogRecord
from .discovery import DEFAULT_SUFFIX, DiscoveryStats, discover_log_files
from .models import Snapshot
from .parser import ParseStatus, parse_line

logger = logging.getLogger(__name__)


class UsageAggregator:
    """Running totals for a single scan.

    One instance per scan; the totals are only exposed through
    ``snapshot()``, which returns an immutable copy.
    """

    def __init__(self):
        self._total_input = 0
        self._total_output = 0
        self._total_cache_creation = 0
        self._total_cache_read = 0
        self._message_count = 0
        self._file_count = 0
        self._skipped_lines = 0
        self._unreadable_files = 0
        self._models: Counter = Counter()

    def add_record(self, record: LogRecord) -> None:
        """Fold one parsed record into the totals."""
        self._total_input += record.input_tokens
        self._total_output += record.output_tokens
        self._total_cache_creation += record.cache_creation_tokens
        self._total_cache_read += record.cache_read_tokens
        self._message_count += 1
        if record.model:
            self._models[record.model] += 1

    def add_skipped_line(self) -> None:
        self._skipped_lines += 1

    def scan_file(self, path: Union[str, Path]) -> None:
        """Parse every line of one file, in file order.

        A file that cannot be opened or read still counts towards
        ``file_count``; it is recorded as unreadable and the scan goes on.
        Lines folded before a mid-file read error are kept.
        """
        self._file_count += 1
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                for line_number, line in enumerate(f, start=1):
                    result = parse_line(line)
                    if result.status == ParseStatus.RECORD:
                        self.add_record(result.record)
                    elif result.status == ParseStatus.UNPARSABLE:
                        self.add_skipped_line()
                        logger.debug("Skipping line %d in %s: %s", line_number, path, result.reason)
        except OSError as e:
            self._unreadable_files += 1
            logger.warning("Skipping unreadable file %s: %s", path, e)

    def snapshot(self, skipped_directories: int = 0) -> Snapshot:
        """Freeze the current totals into a Snapshot."""
        return Snapshot(
            total_input=self._total_input,
            total_output=self._total_output,
            total_cache_creation=self._total_cache_creation,
            total_cache_read=self._total_cache_read,
            message_count=self._message_count,
            file_count=self._file_count,
            skipped_lines=self._skipped_lines,
            unreadable_files=self._unreadable_files,
            skipped_directories=skipped_directories,
            models=tuple(sorted(self._models.items())),
        )


def aggregate_files(paths: Iterable[Union[str, Path]]) -> Snapshot:
    """Fold every file in ``paths`` into one Snapshot.

    File order does not affect the result.
    """
    aggregator = UsageAggregator()
    for path in paths:
        aggregator.scan_file(path)
    return aggregator.snapshot()


def scan_directory(
    root: Union[str, Path],
    suffix: str = DEFAULT_SUFFIX,
    stats: Optional[DiscoveryStats] = None
) -> Snapshot:
    """Discover log files under ``root`` and aggregate them.

    A missing root gives an empty Snapshot.

    Raises:
        ConfigurationError: If root exists but is not a directory
    """
    if stats is None:
        stats = DiscoveryStats()
    aggregator = UsageAggregator()
    for path in discover_log_files(root, suffix, stats):
        aggregator.scan_file(path)
    snapshot = aggregator.snapshot(skipped_directories=stats.skipped_directories)
    logger.info(
        "Scanned %d files under %s: %d messages, %d skipped lines",
        snapshot.file_count, root, snapshot.message_count, snapshot.skipped_lines
    )
    return snapshot
