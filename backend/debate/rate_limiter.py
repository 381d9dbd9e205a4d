"""Per-provider minimum-spacing rate limiter for backend calls.

Each provider keeps the time of its most recently reserved call.  Before a
call, ``wait_if_needed()`` reserves the next free slot (``last + interval`` or
now, whichever is later) under that provider's lock, then sleeps until the
slot outside the lock.  Callers of different providers never contend; callers
of the same provider are spaced at least ``min_interval`` apart in the order
they reserved.

One limiter is shared by every session in the process.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL = 1.0  # seconds between calls to the same provider


@dataclass
class _ProviderClock:
    last_call: float | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ProviderRateLimiter:
    """Spaces calls to each provider at least ``min_interval`` seconds apart."""

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._clocks: Dict[str, _ProviderClock] = {}

    def _provider_clock(self, provider: str) -> _ProviderClock:
        if provider not in self._clocks:
            self._clocks[provider] = _ProviderClock()
        return self._clocks[provider]

    async def wait_if_needed(self, provider: str) -> float:
        """Suspend until *provider* may be called again; return the seconds waited."""
        state = self._provider_clock(provider)
        async with state.lock:
            now = self._clock()
            if state.last_call is None:
                slot = now
            else:
                slot = max(now, state.last_call + self.min_interval)
            state.last_call = slot
        delay = slot - now
        if delay > 0:
            logger.info("Rate limit: provider=%s waiting %.2fs", provider, delay)
            await self._sleep(delay)
        return delay

    def last_call(self, provider: str) -> float | None:
        state = self._clocks.get(provider)
        return state.last_call if state else None
