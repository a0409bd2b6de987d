"""
Tool: Turn Scheduler
Purpose: Deliver deferred bot turns and provider results for one conversation context

Usage:
    queue = TurnQueue("session", transcript)
    queue.schedule(Job(delay=0.6, apply=lambda _: transcript.append_bot_turn([...])))
    queue.schedule(Job(
        delay=0.3,
        produce=lambda: provider.search("shopapp", "ios"),
        apply=show_results,
        on_error=offer_retry,
    ))
    await queue.join()

Each context (the new-app session, or one registered app) gets its own
queue. Jobs run strictly in the order they were scheduled: wait ``delay``
(the transcript shows as composing meanwhile), await ``produce`` if given,
then ``apply`` the result. Everything that mutates state happens in
``apply``, on the event loop, one job at a time.

``cancel()`` bumps the queue's generation. A worker only applies results
while its generation is current, so a completion that arrives after the
user switched away is dropped rather than written.

``produce`` is bounded by the queue's ``timeout``. Whatever it raises
(including the timeout) goes to the job's ``on_error``; a job whose
``apply`` raises is logged and the queue moves on to the next one.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from onboarding.errors import ProviderError
from onboarding.protocol.messages import Transcript

logger = logging.getLogger(__name__)


@dataclass
class Job:
    apply: Callable[[Any], None]
    delay: float = 0.0
    produce: Optional[Callable[[], Awaitable[Any]]] = None
    on_error: Optional[Callable[[Exception], None]] = None
    composing: bool = True
    label: str = ""


class TurnQueue:
    """Single-consumer job queue bound to one transcript."""

    def __init__(self, context: str, transcript: Transcript, timeout: Optional[float] = None):
        self.context = context
        self.transcript = transcript
        self.timeout = timeout
        self._jobs: deque[Job] = deque()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def idle(self) -> bool:
        return self._task is None and not self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def schedule(self, job: Job) -> None:
        self._jobs.append(job)
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self._run(self._generation), name=f"turns:{self.context}"
            )

    def cancel(self) -> int:
        """Drop queued jobs and invalidate any in-flight one; returns how many were dropped."""
        dropped = len(self._jobs) + (1 if self._task is not None else 0)
        self._generation += 1
        self._jobs.clear()
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self.transcript.composing = False
        if dropped:
            logger.debug(f"Cancelled {dropped} pending turn(s) for {self.context}")
        return dropped

    async def join(self) -> None:
        """Wait until every scheduled job (including ones scheduled meanwhile) has run."""
        while self._task is not None:
            await asyncio.wait({self._task})

    def _current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, generation: int) -> None:
        try:
            while self._jobs and self._current(generation):
                job = self._jobs.popleft()
                self.transcript.composing = job.composing
                try:
                    await asyncio.sleep(job.delay)
                    result = await self._produce(job)
                except Exception as e:
                    if not self._current(generation):
                        logger.debug(f"Discarded stale provider failure for {self.context}")
                        return
                    self.transcript.composing = False
                    self._failed(job, e)
                    continue

                if not self._current(generation):
                    logger.debug(f"Discarded stale '{job.label}' result for {self.context}")
                    return
                self.transcript.composing = False
                try:
                    job.apply(result)
                except Exception:
                    logger.exception(f"Turn '{job.label}' failed for {self.context}")
        finally:
            if self._current(generation):
                self._task = None
                self.transcript.composing = False

    async def _produce(self, job: Job) -> Any:
        if job.produce is None:
            return None
        return await asyncio.wait_for(job.produce(), self.timeout)

    def _failed(self, job: Job, error: Exception) -> None:
        if isinstance(error, (ProviderError, TimeoutError, asyncio.TimeoutError)):
            logger.warning(f"Provider failed during '{job.label}' for {self.context}: {error!r}")
        else:
            logger.error(f"Unexpected provider error during '{job.label}' for {self.context}: {error!r}")
        if job.on_error is None:
            return
        try:
            job.on_error(error)
        except Exception:
            logger.exception(f"Error handler of '{job.label}' failed for {self.context}")
