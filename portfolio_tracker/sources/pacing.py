"""Request pacing for vendors with per-minute call ceilings."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RequestPacer:
    """Enforce a minimum delay between consecutive requests.

    The spacing is tracked per pacer instance, so every request an adapter
    issues through it (first attempts and any later calls alike) respects
    the delay. The first request goes out immediately.
    """

    def __init__(
        self,
        delay_seconds: float,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self._clock = clock
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Block until the next request may be sent, then claim the slot."""
        async with self._lock:
            if self._last_request is not None and self.delay_seconds > 0:
                remaining = self._last_request + self.delay_seconds - self._clock()
                if remaining > 0:
                    logger.debug("Pacing request, sleeping %.2fs", remaining)
                    await self._sleep(remaining)
            self._last_request = self._clock()
