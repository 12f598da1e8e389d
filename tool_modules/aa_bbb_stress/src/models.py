"""Data model for a stress run: participants, join outcomes and the run record."""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticipantConfig:
    """One synthetic participant. Never mutated after creation."""

    identity: str
    wants_webcam: bool = False
    wants_microphone: bool = False

    @property
    def kind(self) -> str:
        """Roster bucket: camera, microphone or listen-only."""
        if self.wants_webcam:
            return "camera"
        if self.wants_microphone:
            return "microphone"
        return "listen-only"


@dataclass
class JoinOutcome:
    """Result of one participant's join attempt.

    Attributes:
        participant: Who tried to join
        succeeded: False on any caught failure, including a failed audio retry
        failure_reason: What went wrong, if anything
        audio_connected: Result of audio verification (None for listen-only)
        audio_retried: Whether the retry cycle ran
        webcam_shared: Result of webcam negotiation (None if not requested)
        soft_failures: Logged failures that did not stop the flow
    """

    participant: ParticipantConfig
    succeeded: bool
    failure_reason: Optional[str] = None
    audio_connected: Optional[bool] = None
    audio_retried: bool = False
    webcam_shared: Optional[bool] = None
    soft_failures: list[str] = field(default_factory=list)

    @classmethod
    def failed(cls, participant: ParticipantConfig, reason: str) -> "JoinOutcome":
        return cls(participant=participant, succeeded=False, failure_reason=reason)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TestRun:
    """Record of one stress run, alive for the whole process."""

    # Keep pytest from collecting this as a test class
    __test__ = False

    meeting_id: str
    duration: float
    roster: list[ParticipantConfig] = field(default_factory=list)
    outcomes: list[JoinOutcome] = field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def summary(self) -> dict[str, int]:
        succeeded = sum(1 for o in self.outcomes if o.succeeded)
        return {
            "participants": len(self.roster),
            "attempted": len(self.outcomes),
            "succeeded": succeeded,
            "failed": len(self.outcomes) - succeeded,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "meeting_id": self.meeting_id,
            "duration": self.duration,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "summary": self.summary(),
            "roster": [asdict(p) for p in self.roster],
            "outcomes": [o.to_dict() for o in self.outcomes],
        }

    def save_report(self, filepath: Path) -> None:
        """Save the run record to a JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"[RUN] Report saved to {filepath}")
