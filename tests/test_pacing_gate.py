"""Tests for the minimum-interval pacing gate."""
import asyncio
import time

import pytest

from asc_bridge.core.rate_limiter import PacingGate, get_pacing_gate


class TestPacingGate:
    """Tests for PacingGate spacing and ordering."""

    def test_first_caller_does_not_wait(self, clock):
        gate = PacingGate(min_interval_ms=100, clock=clock)

        assert gate.get_wait_time() == 0.0

    @pytest.mark.asyncio
    async def test_wait_time_counts_down_from_last_departure(self, clock):
        gate = PacingGate(min_interval_ms=100, clock=clock)

        slept = await gate.wait()
        assert slept == 0.0
        assert gate.get_wait_time() == pytest.approx(0.1)

        clock.advance(0.04)
        assert gate.get_wait_time() == pytest.approx(0.06)

        clock.advance(1.0)
        assert gate.get_wait_time() == 0.0

    @pytest.mark.asyncio
    async def test_concurrent_callers_depart_single_file(self):
        gate = PacingGate(min_interval_ms=100)
        departures: list[tuple[int, float]] = []

        async def caller(index: int) -> None:
            await gate.wait()
            departures.append((index, time.monotonic()))

        await asyncio.gather(*(caller(i) for i in range(4)))

        assert [index for index, _ in departures] == [0, 1, 2, 3]
        times = [at for _, at in departures]
        gaps = [later - earlier for earlier, later in zip(times, times[1:])]
        assert all(gap >= 0.095 for gap in gaps)

    @pytest.mark.asyncio
    async def test_zero_interval_never_sleeps(self):
        gate = PacingGate(min_interval_ms=0)

        for _ in range(3):
            assert await gate.wait() == 0.0

    def test_reservations_queue_behind_each_other(self, clock):
        gate = PacingGate(min_interval_ms=100, clock=clock)

        delays = [gate.reserve() for _ in range(3)]

        assert delays == [0.0, pytest.approx(0.1), pytest.approx(0.2)]
        assert gate.get_wait_time() == pytest.approx(0.3)

    def test_gate_usable_from_separate_event_loops(self):
        gate = PacingGate(min_interval_ms=0)

        assert asyncio.run(gate.wait()) == 0.0
        assert asyncio.run(gate.wait()) == 0.0


class TestSharedPacingGate:
    """Tests for the process-wide gate registry."""

    def test_same_interval_returns_same_gate(self):
        assert get_pacing_gate(100) is get_pacing_gate(100)

    def test_intervals_get_their_own_gate(self):
        gate = get_pacing_gate(250)

        assert gate is not get_pacing_gate(100)
        assert gate.min_interval == 0.25
