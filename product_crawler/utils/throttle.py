from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional


class RandomDelay:
    """
    Politeness delay awaited before each fetch: a uniform random pause in
    ``[low, high]`` seconds. A zero range never sleeps. ``rng`` and ``sleep``
    are injectable so tests stay deterministic.
    """

    def __init__(
        self,
        low: float = 0.0,
        high: float = 0.0,
        *,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if low < 0 or high < low:
            raise ValueError("delay range must satisfy 0 <= low <= high")
        self.low = low
        self.high = high
        self._rng = rng or random.Random()
        self._sleep = sleep

    def next_delay(self) -> float:
        if self.high <= 0:
            return 0.0
        return self._rng.uniform(self.low, self.high)

    async def __call__(self) -> None:
        delay = self.next_delay()
        if delay > 0:
            await self._sleep(delay)
