"""
BigBlueButton Stress Test - synthetic participants for a conferencing server.

This module provides:
- A shared Chromium session with simulated camera/microphone devices
- A per-participant join flow (audio negotiation, retry, webcam sharing)
- A ramp-up scheduler that paces participant joins
- A coordinator that runs the roster and holds the meeting for a fixed duration
- A BigBlueButton API client for moderator credentials and join URLs
"""

__version__ = "0.1.0"
