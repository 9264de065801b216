"""
Per-host request pacing.

Each host gets a minimum interval between request starts. Callers reserve
the next free slot for a host under a lock and then sleep until it, so
concurrent fetches to one site keep their spacing.
"""

from __future__ import annotations

import asyncio
import random
import threading
import time
from typing import Callable


class HostPacer:
    """Spaces out requests to the same host.

    Attributes:
        min_interval: Minimum seconds between two request starts for one host
        jitter: Upper bound of a uniform random delay added to every slot
    """

    def __init__(
        self,
        min_interval: float,
        jitter: float = 0.0,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = max(0.0, min_interval)
        self.jitter = max(0.0, jitter)
        self._rng = rng or random.Random()
        self._clock = clock
        self._next_slot: dict[str, float] = {}
        self._lock = threading.Lock()

    def reserve(self, host: str) -> float:
        """Reserve the next request slot for a host.

        Returns:
            Seconds the caller has to wait before issuing its request
        """
        with self._lock:
            now = self._clock()
            extra = self._rng.uniform(0.0, self.jitter) if self.jitter else 0.0
            start = max(now, self._next_slot.get(host, now)) + extra
            self._next_slot[host] = start + self.min_interval
            return start - now

    async def wait_async(self, host: str) -> float:
        delay = self.reserve(host)
        if delay > 0:
            await asyncio.sleep(delay)
        return delay
