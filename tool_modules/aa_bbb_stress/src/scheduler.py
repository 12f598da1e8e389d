"""
Ramp-up scheduler.

Paces join attempts: a fixed pool of workers takes roster entries in order
from a queue. The default pool of one worker joins participants strictly one
at a time, which is how the load ramps up on the conferencing server.

Each attempt runs inside an error boundary so one participant's failure never
reaches the scheduler or the other participants.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from tool_modules.aa_bbb_stress.src.models import JoinOutcome, ParticipantConfig

logger = logging.getLogger(__name__)

JoinAttempt = Callable[[ParticipantConfig], Awaitable[JoinOutcome]]


async def isolate(
    participant: ParticipantConfig, attempt: Awaitable[JoinOutcome]
) -> JoinOutcome:
    """Await one join attempt and turn any exception into a failed outcome."""
    try:
        return await attempt
    except Exception as e:
        reason = f"{type(e).__name__}: {e}"
        logger.error(f"Unable to initialize client {participant.identity} : {reason}")
        return JoinOutcome.failed(participant, reason)


class RampUpScheduler:
    """Runs join attempts over a roster with bounded concurrency."""

    def __init__(self, concurrency: int = 1):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.concurrency = concurrency
        self.in_flight = 0
        self.max_in_flight = 0

    async def run(
        self, roster: list[ParticipantConfig], attempt: JoinAttempt
    ) -> list[JoinOutcome]:
        """
        Attempt every roster entry, in roster order.

        Args:
            roster: Participants to join
            attempt: Coroutine function performing one join

        Returns:
            One outcome per participant, in roster order.
        """
        queue: asyncio.Queue = asyncio.Queue()
        for index, participant in enumerate(roster):
            queue.put_nowait((index, participant))

        outcomes: list[Optional[JoinOutcome]] = [None] * len(roster)
        workers = [
            asyncio.create_task(self._worker(queue, attempt, outcomes))
            for _ in range(min(self.concurrency, len(roster)))
        ]
        if workers:
            await asyncio.gather(*workers)

        return [o for o in outcomes if o is not None]

    async def _worker(
        self,
        queue: asyncio.Queue,
        attempt: JoinAttempt,
        outcomes: list[Optional[JoinOutcome]],
    ) -> None:
        while True:
            try:
                index, participant = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                outcomes[index] = await isolate(participant, attempt(participant))
            finally:
                self.in_flight -= 1
