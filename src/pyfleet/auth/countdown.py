"""Per-second countdown gating the "resend code" action."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from pyfleet._constants import RESEND_COUNTDOWN_SECONDS

_logger = logging.getLogger(__name__)


class ResendCountdown:
    """Countdown that re-enables resend once it reaches zero.

    The countdown can be driven explicitly with :meth:`tick` or by an
    asyncio task started with :meth:`start_background`.  :meth:`invalidate`
    stops the task (e.g. on screen teardown) and leaves the remaining
    value untouched.

    Parameters
    ----------
    seconds : int
        Length of the countdown in ticks.
    on_tick : callable, optional
        Called with the remaining value after every tick.
    interval : float
        Seconds between background ticks.
    """

    def __init__(
        self,
        seconds: int = RESEND_COUNTDOWN_SECONDS,
        *,
        on_tick: Callable[[int], None] | None = None,
        interval: float = 1.0,
    ) -> None:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self._seconds = seconds
        self._remaining = 0
        self._on_tick = on_tick
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def seconds(self) -> int:
        return self._seconds

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def can_resend(self) -> bool:
        return self._remaining == 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Restart the countdown from the full length."""
        self._remaining = self._seconds

    def tick(self) -> int:
        """Advance one second and return the remaining value."""
        if self._remaining > 0:
            self._remaining -= 1
            if self._on_tick is not None:
                self._on_tick(self._remaining)
        return self._remaining

    async def run(self) -> None:
        """Tick once per interval until the countdown reaches zero."""
        while self._remaining > 0:
            await asyncio.sleep(self._interval)
            self.tick()

    def start_background(self) -> asyncio.Task[None]:
        """Restart the countdown and drive it from a background task."""
        self.invalidate()
        self.start()
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def invalidate(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            _logger.debug("Resend countdown cancelled with %s seconds left", self._remaining)

    async def aclose(self) -> None:
        """Cancel the background task and wait for it to finish."""
        task = self._task
        self.invalidate()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
