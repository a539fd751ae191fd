"""
Local log scanning for Claude Token Counter.

Discovers JSONL session logs on disk and folds their usage records
into a single snapshot.
"""

from .aggregator import UsageAggregator, aggregate_files, scan_directory
from .discovery import ConfigurationError, DiscoveryStats, discover_log_files
from .models import Snapshot
from .parser import ParseResult, ParseStatus, parse_line

__all__ = [
    "ConfigurationError",
    "DiscoveryStats",
    "ParseResult",
    "ParseStatus",
    "Snapshot",
    "UsageAggregator",
    "aggregate_files",
    "discover_log_files",
    "parse_line",
    "scan_directory",
]
