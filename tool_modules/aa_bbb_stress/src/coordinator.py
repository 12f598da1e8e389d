"""
Stress Test Coordinator.

Runs one stress test against a meeting:
1. Launch the shared browser and fetch the moderator password concurrently
2. Build the roster: camera clients, then microphone clients, then listeners
3. Join participants through the ramp-up scheduler (one at a time by default)
4. Hold everyone in the meeting for the requested duration
5. Close the browser

A failed launch or credential fetch aborts the run before any page is
opened. Individual participant failures are logged and the run continues.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from tool_modules.aa_bbb_stress.src.browser_session import BrowserSession
from tool_modules.aa_bbb_stress.src.config import StressConfig, get_config
from tool_modules.aa_bbb_stress.src.identity import make_participant
from tool_modules.aa_bbb_stress.src.join_flow import ClientJoinFlow
from tool_modules.aa_bbb_stress.src.models import JoinOutcome, ParticipantConfig, TestRun
from tool_modules.aa_bbb_stress.src.scheduler import RampUpScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientCounts:
    """How many participants of each kind to join."""

    camera: int = 0
    microphone: int = 0
    listen_only: int = 0

    @property
    def total(self) -> int:
        return self.camera + self.microphone + self.listen_only


def build_roster(
    counts: ClientCounts, rng: Optional[random.Random] = None
) -> list[ParticipantConfig]:
    """Camera clients first, then microphone-only, then listen-only."""
    return (
        [make_participant(True, True, rng) for _ in range(counts.camera)]
        + [make_participant(False, True, rng) for _ in range(counts.microphone)]
        + [make_participant(False, False, rng) for _ in range(counts.listen_only)]
    )


class StressTestCoordinator:
    """Sequences participant ramp-up and bounds the test duration."""

    def __init__(
        self,
        gateway,
        config: Optional[StressConfig] = None,
        session_factory: Optional[Callable[..., BrowserSession]] = None,
        flow_factory: Optional[Callable[..., ClientJoinFlow]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.gateway = gateway
        self.config = config or get_config()
        self.session_factory = session_factory or BrowserSession
        self.flow_factory = flow_factory or ClientJoinFlow
        self.rng = rng
        self.session: Optional[BrowserSession] = None

    async def start(
        self, meeting_id: str, duration: float, counts: ClientCounts
    ) -> TestRun:
        """
        Run the stress test. Returns once the browser has been closed.

        Raises:
            LaunchFailure: The browser could not be started.
            CredentialFetchFailure: The moderator password could not be fetched.
        """
        run = TestRun(meeting_id=meeting_id, duration=duration, started_at=datetime.now())
        logger.info(
            f"[RUN] Starting stress test on meeting {meeting_id}: "
            f"{counts.camera} webcam, {counts.microphone} microphone, "
            f"{counts.listen_only} listening, duration {duration}s"
        )

        self.session = self.session_factory(self.config.browser)
        launched, password = await asyncio.gather(
            self.session.launch(),
            self.gateway.get_moderator_password(meeting_id),
            return_exceptions=True,
        )
        for result in (launched, password):
            if isinstance(result, BaseException):
                logger.error(f"[RUN] Aborting stress test: {result}")
                await self.session.close()
                run.ended_at = datetime.now()
                raise result

        try:
            run.roster = build_roster(counts, self.rng)
            scheduler = RampUpScheduler(self.config.concurrency)

            async def attempt(participant: ParticipantConfig) -> JoinOutcome:
                return await self._join(meeting_id, password, participant)

            run.outcomes = await scheduler.run(run.roster, attempt)
            self._log_summary(run)

            logger.info(f"[RUN] Sleeping {duration}s")
            await self._hold(duration)
            logger.info("[RUN] Test finished")
        finally:
            await self.session.close()
            run.ended_at = datetime.now()

        return run

    async def _join(
        self, meeting_id: str, password: str, participant: ParticipantConfig
    ) -> JoinOutcome:
        logger.info(f"[JOIN] {participant.identity} join the conference ({participant.kind})")
        join_url = self.gateway.get_join_url(participant.identity, meeting_id, password)
        flow = self.flow_factory(
            self.session,
            participant,
            join_url,
            self.config.timeouts,
            self.config.diagnostics_dir,
        )
        outcome = await flow.run()
        if outcome.succeeded:
            logger.info(f"[JOIN] {participant.identity} joined")
        return outcome

    async def _hold(self, duration: float) -> None:
        """Keep every participant in the meeting."""
        await asyncio.sleep(duration)

    def _log_summary(self, run: TestRun) -> None:
        summary = run.summary()
        logger.info(
            f"[RUN] All users joined the conference "
            f"({summary['succeeded']}/{summary['attempted']} succeeded)"
        )
        for outcome in run.outcomes:
            if not outcome.succeeded:
                logger.warning(
                    f"[RUN] {outcome.participant.identity} ({outcome.participant.kind}) "
                    f"failed: {outcome.failure_reason}"
                )
