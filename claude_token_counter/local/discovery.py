"""
Log file discovery.

Walks a directory tree and yields the session log files beneath it.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Set, Union

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".jsonl"


class ConfigurationError(ValueError):
    """Raised when the log root exists but cannot be scanned as a directory."""


@dataclass
class DiscoveryStats:
    """Counters collected while walking the tree."""
    directories_visited: int = 0
    skipped_directories: int = 0


def discover_log_files(
    root: Union[str, Path],
    suffix: str = DEFAULT_SUFFIX,
    stats: Optional[DiscoveryStats] = None
) -> Iterator[Path]:
    """Yield log files under root, sorted by full path.

    The walk uses an explicit worklist and remembers the canonical path of
    every directory it lists, so symlink loops terminate and no directory
    is listed twice. Nothing is touched until the iterator is advanced.

    Args:
        root: Directory to search
        suffix: Case-sensitive file name suffix to match
        stats: Optional counters updated during the walk

    Yields:
        Paths of matching files

    Raises:
        ConfigurationError: If root exists but is not a directory
    """
    if stats is None:
        stats = DiscoveryStats()

    root_path = Path(root).expanduser()
    if not root_path.exists():
        logger.info("Log directory %s does not exist, nothing to scan", root_path)
        return
    if not root_path.is_dir():
        raise ConfigurationError(f"Log root is not a directory: {root_path}")

    found: List[str] = []
    visited: Set[str] = set()
    pending: List[str] = [str(root_path)]

    while pending:
        directory = pending.pop()
        canonical = os.path.realpath(directory)
        if canonical in visited:
            continue
        visited.add(canonical)

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            stats.skipped_directories += 1
            logger.warning("Skipping unreadable directory %s: %s", directory, e)
            continue
        stats.directories_visited += 1

        subdirectories = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=True):
                    subdirectories.append(entry.path)
                elif entry.name.endswith(suffix) and entry.is_file(follow_symlinks=True):
                    found.append(entry.path)
            except OSError as e:
                logger.warning("Skipping %s: %s", entry.path, e)
        # Reversed so the alphabetically first directory is popped first
        pending.extend(reversed(subdirectories))

    for path in sorted(found):
        yield Path(path)
