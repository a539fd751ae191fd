"""
Unit tests for the refresh loop.

Tests cycle ordering, cancellation and configuration errors.
"""

import asyncio
from decimal import Decimal
from unittest.mock import patch

import pytest

from claude_token_counter.core.pricing import PRICING_TABLE
from claude_token_counter.core.refresh import LoopState, RefreshLoop
from claude_token_counter.local.discovery import ConfigurationError
from claude_token_counter.local.models import Snapshot

LINE = '{"message":{"usage":{"input_tokens":1000000,"output_tokens":1000000}}}\n'


class Recorder:
    """Renderer that records calls and can cancel the loop."""

    def __init__(self, cancel_after=None):
        self.calls = []
        self.loop = None
        self.cancel_after = cancel_after

    def __call__(self, snapshot, cost):
        self.calls.append((snapshot, cost))
        if self.cancel_after is not None and len(self.calls) >= self.cancel_after:
            self.loop.cancel()


def _make_loop(root, renderer, interval=0.01, **kwargs):
    loop = RefreshLoop(root, interval, renderer, **kwargs)
    renderer.loop = loop
    return loop


class TestConstruction:
    """Test loop construction."""

    @pytest.mark.parametrize("interval", [0, -1, -0.5, float("nan"), float("inf")])
    def test_non_positive_interval_rejected(self, tmp_path, interval):
        with pytest.raises(ValueError, match="interval must be > 0"):
            RefreshLoop(tmp_path, interval, Recorder())

    def test_initial_state_idle(self, tmp_path):
        loop = RefreshLoop(tmp_path, 1.0, Recorder())
        assert loop.state == LoopState.IDLE
        assert loop.cycles == 0
        assert not loop.cancelled


class TestCycles:
    """Test scan-render cycles."""

    def test_cancel_before_run_gives_one_cycle(self, tmp_path):
        """A signal asserted up front allows at most one cycle."""
        renderer = Recorder()
        loop = _make_loop(tmp_path, renderer, interval=60)
        loop.cancel()

        cycles = asyncio.run(loop.run())

        assert cycles == 1
        assert len(renderer.calls) == 1
        assert loop.state == LoopState.CANCELLED

    def test_runs_until_cancelled(self, tmp_path):
        renderer = Recorder(cancel_after=3)
        loop = _make_loop(tmp_path, renderer)
        assert asyncio.run(loop.run()) == 3
        assert len(renderer.calls) == 3
        assert loop.state == LoopState.CANCELLED

    def test_renders_snapshot_and_cost(self, tmp_path):
        """The renderer receives the snapshot and its cost estimate."""
        (tmp_path / "s.jsonl").write_text(LINE, encoding="utf-8")
        renderer = Recorder(cancel_after=1)
        asyncio.run(_make_loop(tmp_path, renderer).run())

        snapshot, cost = renderer.calls[0]
        assert snapshot.total_input == 1_000_000
        assert snapshot.file_count == 1
        assert cost.total_cost == Decimal("18.00")

    def test_uses_configured_rates(self, tmp_path):
        (tmp_path / "s.jsonl").write_text(LINE, encoding="utf-8")
        renderer = Recorder(cancel_after=1)
        loop = _make_loop(tmp_path, renderer, rates=PRICING_TABLE.get_rates("opus"))
        asyncio.run(loop.run())
        assert renderer.calls[0][1].total_cost == Decimal("90.00")

    def test_each_cycle_rescans(self, tmp_path):
        """Data written between cycles shows up in the next snapshot."""
        log = tmp_path / "s.jsonl"
        log.write_text(LINE, encoding="utf-8")

        class Appender(Recorder):
            def __call__(self, snapshot, cost):
                super().__call__(snapshot, cost)
                with open(log, "a", encoding="utf-8") as f:
                    f.write(LINE)

        renderer = Appender(cancel_after=3)
        asyncio.run(_make_loop(tmp_path, renderer).run())

        totals = [snapshot.message_count for snapshot, _ in renderer.calls]
        assert totals == [1, 2, 3]
        assert renderer.calls[0][0] is not renderer.calls[1][0]

    def test_missing_root_renders_empty_snapshot(self, tmp_path):
        renderer = Recorder(cancel_after=1)
        asyncio.run(_make_loop(tmp_path / "missing", renderer).run())
        assert renderer.calls[0][0] == Snapshot.empty()

    def test_render_completes_before_next_scan(self, tmp_path):
        """Scans and renders strictly alternate."""
        events = []

        def fake_scan(root, suffix):
            events.append("scan")
            return Snapshot.empty()

        async def slow_render(snapshot, cost):
            events.append("render-start")
            await asyncio.sleep(0.02)
            events.append("render-end")

        renderer = Recorder(cancel_after=3)

        def render(snapshot, cost):
            renderer(snapshot, cost)
            return slow_render(snapshot, cost)

        loop = RefreshLoop(tmp_path, 0.01, render)
        renderer.loop = loop
        with patch("claude_token_counter.core.refresh.scan_directory", side_effect=fake_scan):
            asyncio.run(loop.run())

        assert events == ["scan", "render-start", "render-end"] * 3

    def test_cancel_during_wait_wakes_early(self, tmp_path):
        """Cancelling while waiting stops without waiting out the interval."""
        renderer = Recorder()
        loop = _make_loop(tmp_path, renderer, interval=60)

        async def scenario():
            task = asyncio.create_task(loop.run())
            await asyncio.sleep(0.05)
            assert loop.state == LoopState.RENDERED
            loop.cancel()
            return await asyncio.wait_for(task, timeout=5)

        assert asyncio.run(scenario()) == 1
        assert loop.state == LoopState.CANCELLED

    def test_task_cancellation_ends_loop(self, tmp_path):
        loop = _make_loop(tmp_path, Recorder(), interval=60)

        async def scenario():
            task = asyncio.create_task(loop.run())
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert loop.state == LoopState.CANCELLED

    def test_malformed_line_does_not_stop_loop(self, tmp_path):
        """A pathological line is counted as skipped and cycles continue."""
        (tmp_path / "s.jsonl").write_text(LINE + "[" * 200000 + "\n", encoding="utf-8")
        renderer = Recorder(cancel_after=2)
        assert asyncio.run(_make_loop(tmp_path, renderer).run()) == 2
        snapshot, _ = renderer.calls[-1]
        assert snapshot.message_count == 1
        assert snapshot.skipped_lines == 1


class TestConfigurationErrors:
    """Test fatal configuration errors."""

    def test_root_is_file_stops_loop(self, tmp_path):
        """A file root raises to the caller and nothing is rendered."""
        root = tmp_path / "file.jsonl"
        root.write_text(LINE, encoding="utf-8")
        renderer = Recorder()
        loop = _make_loop(root, renderer)

        with pytest.raises(ConfigurationError):
            asyncio.run(loop.run())

        assert renderer.calls == []
        assert loop.state == LoopState.CANCELLED
        assert loop.cycles == 0

    def test_scan_once_raises(self, tmp_path):
        root = tmp_path / "file.jsonl"
        root.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            RefreshLoop(root, 1.0, Recorder()).scan_once()
