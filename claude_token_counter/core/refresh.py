"""
Live refresh loop.

Re-scans the log directory on a fixed interval and hands each result to
a renderer until cancelled.

State cycle:
1. IDLE - constructed, nothing scanned yet
2. SCANNING - discovery, parsing, aggregation and costing run to completion
3. RENDERED - the snapshot has been handed to the renderer; waiting
4. CANCELLED - terminal; reached on cancel() or a configuration error
"""

import asyncio
import inspect
import logging
import math
from enum import Enum, auto
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from claude_token_counter.local.aggregator import scan_directory
from claude_token_counter.local.discovery import DEFAULT_SUFFIX, ConfigurationError
from claude_token_counter.local.models import Snapshot
from .pricing import DEFAULT_RATES, CategoryRates, CostEstimate, estimate_cost

logger = logging.getLogger(__name__)

Renderer = Callable[[Snapshot, CostEstimate], Optional[Awaitable[Any]]]


class LoopState(Enum):
    """States of the refresh loop."""
    IDLE = auto()
    SCANNING = auto()
    RENDERED = auto()
    CANCELLED = auto()


class RefreshLoop:
    """Periodically scan a log directory and render the totals.

    At most one scan is ever in flight, and each render completes before
    the next scan starts. Cancellation is observed between cycles only.
    """

    def __init__(
        self,
        root: Union[str, Path],
        interval: float,
        render: Renderer,
        rates: CategoryRates = DEFAULT_RATES,
        suffix: str = DEFAULT_SUFFIX
    ):
        """Initialize the loop.

        Args:
            root: Directory holding the session logs
            interval: Seconds to wait between cycles, must be > 0
            render: Called once per cycle with the snapshot and its cost;
                may return an awaitable
            rates: Pricing used for the cost estimate
            suffix: Log file name suffix

        Raises:
            ValueError: If interval is not positive
        """
        if not (math.isfinite(interval) and interval > 0):
            raise ValueError("interval must be > 0")

        self.root = Path(root)
        self.interval = interval
        self.rates = rates
        self.suffix = suffix
        self.state = LoopState.IDLE
        self.cycles = 0
        self._render = render
        self._cancel_event: Optional[asyncio.Event] = None
        self._cancel_requested = False

    def cancel(self) -> None:
        """Request that the loop stop before its next scan."""
        self._cancel_requested = True
        if self._cancel_event is not None:
            self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def scan_once(self):
        """Run one synchronous scan and cost estimate.

        Returns:
            Tuple of (Snapshot, CostEstimate)

        Raises:
            ConfigurationError: If the root is not a directory
        """
        snapshot = scan_directory(self.root, self.suffix)
        return snapshot, estimate_cost(snapshot, self.rates)

    async def run(self) -> int:
        """Run cycles until cancelled.

        Returns:
            Number of completed scan-render cycles

        Raises:
            ConfigurationError: If the root exists but is not a directory
        """
        # The event must be created inside the running event loop
        self._cancel_event = asyncio.Event()
        if self._cancel_requested:
            self._cancel_event.set()

        try:
            while True:
                self.state = LoopState.SCANNING
                try:
                    snapshot, cost = self.scan_once()
                except ConfigurationError as e:
                    logger.error("Stopping refresh loop: %s", e)
                    raise

                result = self._render(snapshot, cost)
                if inspect.isawaitable(result):
                    await result
                self.state = LoopState.RENDERED
                self.cycles += 1

                if self._cancel_event.is_set():
                    break
                try:
                    await asyncio.wait_for(self._cancel_event.wait(), timeout=self.interval)
                    break
                except asyncio.TimeoutError:
                    pass
        finally:
            self.state = LoopState.CANCELLED

        logger.info("Refresh loop stopped after %d cycles", self.cycles)
        return self.cycles
