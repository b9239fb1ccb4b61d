"""
Host CPU utilization for GET /stats.

psutil measures CPU usage between two calls, so the very first reading is
meaningless. The first caller samples once, waits STATS_WARMUP_DELAY and
samples again; everyone after that samples immediately. One CpuStats is
created per process (app lifespan) and shared through app.state.
"""

import asyncio
import logging
import math
import threading

import psutil

logger = logging.getLogger(__name__)


class CpuStats:
    def __init__(self, warmup_delay: float = 0.2) -> None:
        self.warmup_delay = warmup_delay
        self._sample_lock = threading.Lock()
        self._warmup_lock = threading.Lock()
        self._warmed_up = False

    @property
    def warmed_up(self) -> bool:
        with self._warmup_lock:
            return self._warmed_up

    def _claim_warmup(self) -> bool:
        """Atomic check-and-set: True for exactly one caller."""
        with self._warmup_lock:
            if self._warmed_up:
                return False
            self._warmed_up = True
            return True

    def _sample(self) -> list[float]:
        with self._sample_lock:
            return psutil.cpu_percent(interval=None, percpu=True)

    async def read(self) -> list[int]:
        """Per-core CPU usage percentages, rounded half up."""
        if self._claim_warmup():
            logger.debug("Warming up CPU sampler (%.3fs)", self.warmup_delay)
            self._sample()
            await asyncio.sleep(self.warmup_delay)
        return [math.floor(usage + 0.5) for usage in self._sample()]
