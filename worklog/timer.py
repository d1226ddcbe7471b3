"""
Live elapsed-time tick for the running session.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Callable, Optional

from worklog.dates import now_utc
from worklog.metrics import SessionLike, elapsed_seconds

logger = logging.getLogger(__name__)


class Timer:
    """Recomputes ``elapsed`` once per ``interval`` while started.

    Display only: nothing here is ever persisted.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = now_utc,
        interval: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
    ):
        self.clock = clock
        self.interval = interval
        self.on_tick = on_tick
        self.session: Optional[SessionLike] = None
        self.elapsed = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, session: SessionLike) -> None:
        """Anchor at ``session.check_in`` and start ticking. Must run inside the event loop."""
        self.stop()
        self.session = session
        self.elapsed = elapsed_seconds(session, self.clock())
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._task = None
        self.session = None
        self.elapsed = 0

    async def aclose(self) -> None:
        """Stop and wait for the tick task to finish cancelling."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.session is None:
                return
            self.elapsed = elapsed_seconds(self.session, self.clock())
            if self.on_tick:
                try:
                    self.on_tick(self.elapsed)
                except Exception:
                    logger.exception("Timer tick callback failed")
