"""
Client Join Flow for BigBlueButton.

Drives one browser page through the join sequence of a single synthetic
participant:

    Navigating -> AudioPrompt -> [EchoTest] -> AudioModalClosing
        -> [AudioVerification] -> [AudioRetry, once] -> [WebcamNegotiation]
        -> Joined

Every wait is bounded by a JoinTimeouts field (start sharing excepted, see
JoinTimeouts.start_sharing). Failures never escape run(): they are logged and
reported through the returned JoinOutcome so the next participant can join.

The audio dialog has shipped in two implementations. Its closing is detected
by trying the newer main-UI controls first, then the legacy ReactModal
overlay, and finally assuming it closed after a page dump and a grace pause.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from tool_modules.aa_bbb_stress.src.config import JoinTimeouts, get_config
from tool_modules.aa_bbb_stress.src.diagnostics import dump_page_html
from tool_modules.aa_bbb_stress.src.errors import (
    AudioConnectionFailure,
    WebcamNegotiationFailure,
)
from tool_modules.aa_bbb_stress.src.models import JoinOutcome, ParticipantConfig
from tool_modules.aa_bbb_stress.src.waits import (
    ATTACHED,
    HIDDEN,
    Detector,
    first_detected,
    pause,
    require_element,
    wait_for_element,
)

logger = logging.getLogger(__name__)

MICROPHONE = "Microphone"
LISTEN_ONLY = "Listen only"


class JoinState(Enum):
    """States of the join flow."""

    NAVIGATING = "navigating"
    AUDIO_PROMPT = "audio_prompt"
    ECHO_TEST = "echo_test"
    AUDIO_MODAL_CLOSING = "audio_modal_closing"
    AUDIO_VERIFICATION = "audio_verification"
    AUDIO_RETRY = "audio_retry"
    WEBCAM_NEGOTIATION = "webcam_negotiation"
    JOINED = "joined"
    FAILED = "failed"


class ClientJoinFlow:
    """Joins one participant to a meeting on a page of the shared browser."""

    # DOM contract with the BigBlueButton HTML5 client
    SELECTORS = {
        "echo_test_confirm": '[aria-label="Join audio"][data-test="joinEchoTestButton"]',
        "main_ui": (
            '[data-test="userListToggleButton"],[data-test="joinAudio"],'
            '[aria-label="Users and messages toggle"]'
        ),
        "legacy_modal_overlay": ".ReactModal__Overlay",
        "mic_state": '[aria-label="Mute"],[aria-label="Unmute"]',
        "unmute": '[aria-label="Unmute"]',
        # Same marker as the toolbar button; outside the dialog it means "no audio"
        "no_audio": '[data-test="joinAudio"]',
        "toolbar_join_audio": '[data-test="joinAudio"]',
        "share_webcam": '[aria-label="Share webcam"]',
        "camera_option": "#setCam > option",
        "start_sharing": '[aria-label="Start sharing"]',
    }

    def __init__(
        self,
        session,
        participant: ParticipantConfig,
        join_url: str,
        timeouts: Optional[JoinTimeouts] = None,
        diagnostics_dir: Optional[Path] = None,
    ):
        self.session = session
        self.participant = participant
        self.join_url = join_url
        self.timeouts = timeouts or get_config().timeouts
        self.diagnostics_dir = diagnostics_dir or get_config().diagnostics_dir
        self.page = None
        self.state: Optional[JoinState] = None
        self.history: list[JoinState] = []
        self._name = participant.identity

    @staticmethod
    def audio_choice_selector(action: str) -> str:
        return f'[aria-label="{action}"]'

    @property
    def audio_action(self) -> str:
        return MICROPHONE if self.participant.wants_microphone else LISTEN_ONLY

    def _transition(self, state: JoinState) -> None:
        logger.debug(
            f"[{self._name}] {self.state.value if self.state else 'start'} -> {state.value}"
        )
        self.state = state
        self.history.append(state)

    async def run(self) -> JoinOutcome:
        """
        Run the whole join sequence.

        Never raises: any failure is caught here and returned as a failed
        outcome.
        """
        outcome = JoinOutcome(participant=self.participant, succeeded=True)

        try:
            await self._navigate()
            await self._join_audio(self.audio_action)

            if self.participant.wants_microphone:
                outcome.audio_connected = await self._negotiate_audio(outcome)

            if self.participant.wants_webcam:
                outcome.webcam_shared = False
                await self._share_webcam()
                outcome.webcam_shared = True

        except Exception as e:
            self._transition(JoinState.FAILED)
            logger.error(f"[JOIN] {self._name}: Unable to initialize client: {e}")
            outcome.succeeded = False
            outcome.failure_reason = f"{type(e).__name__}: {e}"
            return outcome

        if outcome.soft_failures:
            outcome.succeeded = False
            outcome.failure_reason = "; ".join(outcome.soft_failures)
        self._transition(JoinState.JOINED)
        return outcome

    # ==================== Navigation ====================

    async def _navigate(self) -> None:
        self._transition(JoinState.NAVIGATING)
        logger.debug(f"[{self._name}] Opening join URL")
        self.page = await self.session.new_page(
            self.join_url, timeout=self.timeouts.navigation
        )

    # ==================== Audio ====================

    async def _join_audio(self, action: str) -> None:
        """Pick the audio mode, confirm the echo test and wait for the dialog to close.

        Used for the first join and again by the retry cycle.
        """
        self._transition(JoinState.AUDIO_PROMPT)
        selector = self.audio_choice_selector(action)
        logger.debug(f"[{self._name}] Waiting for audio prompt ({selector})")
        await require_element(self.page, selector, self.timeouts.audio_prompt)
        logger.debug(f"[{self._name}] Click on {action}")
        await self.page.click(selector)

        if action == MICROPHONE:
            await self._confirm_echo_test()

        await self._wait_for_modal_close()

    async def _confirm_echo_test(self) -> None:
        self._transition(JoinState.ECHO_TEST)
        logger.debug(f"[{self._name}] Waiting for the echo test dialog")
        selector = self.SELECTORS["echo_test_confirm"]
        if await wait_for_element(self.page, selector, self.timeouts.echo_test):
            logger.debug(f"[{self._name}] Echo test dialog detected, clicking 'Join audio'")
            await self.page.click(selector)
        else:
            logger.debug(
                f"[{self._name}] Unable to detect the echo test dialog. Maybe echo test is disabled."
            )

    def modal_close_detectors(self) -> list[Detector]:
        """Ways to notice the audio dialog closed, newest UI first."""
        return [
            Detector(
                name="main meeting UI",
                selector=self.SELECTORS["main_ui"],
                timeout=self.timeouts.main_ui,
                state=ATTACHED,
            ),
            Detector(
                name="legacy modal overlay",
                selector=self.SELECTORS["legacy_modal_overlay"],
                timeout=self.timeouts.legacy_overlay,
                state=HIDDEN,
            ),
        ]

    async def _wait_for_modal_close(self) -> Optional[Detector]:
        self._transition(JoinState.AUDIO_MODAL_CLOSING)
        logger.debug(f"[{self._name}] Waiting for audio modal to close...")

        detector = await first_detected(self.page, self.modal_close_detectors())
        if detector:
            logger.debug(f"[{self._name}] Modal closed (detected via {detector.name})")
            return detector

        logger.debug(f"[{self._name}] No modal-close signal found, assuming modal closed")
        await dump_page_html(
            self.page, "modal close detection failed", self.diagnostics_dir
        )
        await pause(self.timeouts.modal_grace)
        return None

    async def _negotiate_audio(self, outcome: JoinOutcome) -> bool:
        """Verify the microphone connection, retrying the audio join once."""
        if await self._verify_audio(self.timeouts.mic_verify):
            return True

        outcome.audio_retried = True
        try:
            await self._retry_audio()
        except Exception as e:
            message = f"Audio reconnection failed: {e}"
            logger.warning(f"[AUDIO] {self._name}: {message}. Continuing anyway...")
            outcome.soft_failures.append(message)
            return False

        logger.info(f"[AUDIO] {self._name}: Audio reconnection successful")
        return True

    async def _verify_audio(self, timeout: Optional[float]) -> bool:
        """
        Check whether the microphone is connected.

        A Mute/Unmute control means connected (unmute if needed). Without one,
        the no-audio indicator means failed; if that is missing too the
        connection is assumed to be up.
        """
        self._transition(JoinState.AUDIO_VERIFICATION)
        logger.debug(f"[{self._name}] Verifying audio connection...")

        if await wait_for_element(self.page, self.SELECTORS["mic_state"], timeout):
            logger.debug(f"[{self._name}] Audio successfully connected")
            await self._unmute_if_muted()
            return True

        if await self.page.query_selector(self.SELECTORS["no_audio"]) is not None:
            logger.debug(f"[{self._name}] Audio connection failed")
            return False

        logger.debug(
            f"[{self._name}] Audio connection verification unclear, assuming connected"
        )
        return True

    async def _unmute_if_muted(self) -> None:
        unmute_button = await self.page.query_selector(self.SELECTORS["unmute"])
        if unmute_button is not None:
            logger.debug(f"[{self._name}] Clicking on unmute button")
            await unmute_button.click()

    async def _retry_audio(self) -> None:
        """One reconnect cycle: close dialogs, reopen audio from the toolbar, join again.

        Raises:
            AudioConnectionFailure: If audio is still not verified afterwards.
        """
        self._transition(JoinState.AUDIO_RETRY)
        logger.info(f"[AUDIO] {self._name}: Attempting to reconnect audio...")

        await self.page.keyboard.press("Escape")
        await pause(self.timeouts.retry_escape_pause)

        selector = self.SELECTORS["toolbar_join_audio"]
        await require_element(self.page, selector, self.timeouts.toolbar_join_audio)
        await self.page.click(selector)
        logger.debug(f"[{self._name}] Clicked join audio button in toolbar")

        await self._join_audio(self.audio_action)

        if not await self._verify_audio(self.timeouts.retry_verify):
            raise AudioConnectionFailure("audio still disconnected after retry")

    # ==================== Webcam ====================

    async def _share_webcam(self) -> None:
        """Open the webcam dialog and start sharing.

        Raises:
            WebcamNegotiationFailure: If a required control never appears.
        """
        self._transition(JoinState.WEBCAM_NEGOTIATION)
        try:
            logger.debug(f"[{self._name}] Waiting for share webcam button")
            await require_element(
                self.page, self.SELECTORS["share_webcam"], self.timeouts.share_webcam
            )
            await self.page.click(self.SELECTORS["share_webcam"])
            logger.debug(f"[{self._name}] Clicked on share webcam button")

            await pause(self.timeouts.webcam_settle)

            if not await wait_for_element(
                self.page, self.SELECTORS["camera_option"], self.timeouts.camera_select
            ):
                logger.debug(f"[{self._name}] Camera selection not found, continuing...")

            await require_element(
                self.page, self.SELECTORS["start_sharing"], self.timeouts.start_sharing
            )
            logger.debug(f"[{self._name}] Clicking on start sharing")
            await self.page.click(self.SELECTORS["start_sharing"])
            logger.info(f"[WEBCAM] {self._name}: Webcam shared")
        except Exception as e:
            logger.warning(f"[WEBCAM] {self._name}: Webcam negotiation failed: {e}")
            raise WebcamNegotiationFailure(str(e)) from e
