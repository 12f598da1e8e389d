"""Exceptions raised by the stress tool.

Fatal errors (browser launch, moderator credential) abort the run before the
roster starts. Everything raised inside one participant's join attempt is
caught at that participant's boundary and turned into a failed JoinOutcome.
"""


class StressTestError(Exception):
    """Base class for stress tool errors."""


class LaunchFailure(StressTestError):
    """Raised when the shared browser process cannot be started."""


class GatewayError(StressTestError):
    """Raised when the conference gateway API cannot be used."""


class CredentialFetchFailure(GatewayError):
    """Raised when the moderator password cannot be fetched."""


class AudioConnectionFailure(StressTestError):
    """Raised when audio could not be verified after the retry cycle."""


class WebcamNegotiationFailure(StressTestError):
    """Raised when webcam sharing could not be started."""
