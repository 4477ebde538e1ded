"""Request pacing utilities."""
import asyncio
import time
from threading import Lock
from typing import Callable, Optional


class PacingGate:
    """
    Minimum-interval gate for outgoing requests.

    Each caller reserves the next departure slot under a lock, then sleeps
    until that slot. Slots are handed out in arrival order and spaced at
    least ``min_interval_ms`` apart; waiting never fails. Reservation does
    not depend on an event loop, so one gate can pace every client in the
    process.
    """

    def __init__(
        self,
        min_interval_ms: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval_ms / 1000
        self.clock = clock
        self.last_departure: Optional[float] = None
        self.lock = Lock()

    def _next_slot(self, now: float) -> float:
        if self.last_departure is None:
            return now
        return max(now, self.last_departure + self.min_interval)

    def get_wait_time(self) -> float:
        """
        Get the wait a caller arriving now would face.

        Returns:
            Seconds to wait, counting slots already reserved
        """
        with self.lock:
            now = self.clock()
            return self._next_slot(now) - now

    def reserve(self) -> float:
        """
        Reserve the next departure slot.

        Returns:
            Seconds until the reserved slot
        """
        with self.lock:
            now = self.clock()
            slot = self._next_slot(now)
            self.last_departure = slot
            return slot - now

    async def wait(self) -> float:
        """
        Wait for this caller's departure slot.

        Returns:
            Seconds spent sleeping
        """
        delay = self.reserve()
        if delay > 0:
            await asyncio.sleep(delay)
        return delay


# Process-wide gates, one per interval (lazy initialization)
_shared_gates: dict[int, PacingGate] = {}
_shared_gates_lock = Lock()


def get_pacing_gate(min_interval_ms: int = 100) -> PacingGate:
    """Get or create the process-wide gate for ``min_interval_ms``."""
    with _shared_gates_lock:
        gate = _shared_gates.get(min_interval_ms)
        if gate is None:
            gate = PacingGate(min_interval_ms)
            _shared_gates[min_interval_ms] = gate
        return gate
