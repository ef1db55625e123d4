"""Cooperative countdown driver for a QuizSession."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from quizcraft.core.quiz_session import QuizSession
from quizcraft.schemas.attempt import SessionResult

logger = logging.getLogger(__name__)


class QuizTimer:
    """
    Ticks a session once per elapsed interval until it is submitted.

    Ticks are derived from a monotonic deadline rather than counting sleeps,
    so a late wake-up issues the missed ticks at once instead of drifting.
    """

    def __init__(
        self,
        session: QuizSession,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_tick: Optional[Callable[[QuizSession], None]] = None,
    ):
        self.session = session
        self.interval = interval
        self.clock = clock
        self.sleep = sleep
        self.on_tick = on_tick
        self._task: Optional[asyncio.Task] = None

    async def run(self) -> Optional[SessionResult]:
        """Drive the countdown; returns the result if the timer expired it."""
        next_deadline = self.clock() + self.interval

        while not self.session.submitted:
            await self.sleep(max(0.0, next_deadline - self.clock()))

            while not self.session.submitted and self.clock() >= next_deadline:
                result = self.session.tick()
                next_deadline += self.interval
                if self.on_tick is not None:
                    self.on_tick(self.session)
                if result is not None:
                    return result

        return None

    def start(self) -> asyncio.Task:
        """Schedule ``run`` on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def cancel(self) -> None:
        """Stop ticking without submitting the session."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.debug("Quiz timer cancelled")
