# imgsrc/services/deadline.py
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional


class DeadlineExceeded(Exception):
    def __init__(self, seconds: float):
        super().__init__(f"deadline of {seconds:g}s exceeded")
        self.seconds = seconds


class Deadline:
    """
    One-shot wall-clock budget for a single awaitable.

    The timer is the only thing allowed to cancel the wrapped task, and it is
    released when ``run`` returns, whichever way it returns. Each call gets
    its own instance, so expiring one never touches another call.
    """

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expired = False
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Future] = None

    @property
    def pending(self) -> bool:
        """True while the timer could still fire."""
        return self._handle is not None and not self._handle.cancelled() and not self.expired

    def _expire(self) -> None:
        self.expired = True
        if self._task is not None:
            self._task.cancel()

    async def run(self, awaitable: Awaitable[Any]) -> Any:
        loop = asyncio.get_running_loop()
        self._task = asyncio.ensure_future(awaitable)
        self._handle = loop.call_later(self.seconds, self._expire)
        try:
            return await self._task
        except asyncio.CancelledError:
            # Cancelled by someone else (caller shutdown): let it propagate
            if not self.expired:
                raise
            raise DeadlineExceeded(self.seconds) from None
        finally:
            self._handle.cancel()
