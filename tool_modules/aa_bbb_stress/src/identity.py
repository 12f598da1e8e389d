"""Random display names for synthetic participants."""

import random
from typing import Optional

from tool_modules.aa_bbb_stress.src.models import ParticipantConfig

FIRST_NAMES = [
    "Ada", "Alan", "Alice", "Barbara", "Bob", "Carol", "Charles", "Dennis",
    "Donald", "Edsger", "Frances", "Grace", "Guido", "Hedy", "Ivan", "John",
    "Ken", "Linus", "Margaret", "Niklaus", "Radia", "Shafi", "Tim", "Yukihiro",
]

LAST_NAMES = [
    "Allen", "Backus", "Berners-Lee", "Dijkstra", "Engelbart", "Hamilton",
    "Hopper", "Kay", "Knuth", "Lamarr", "Liskov", "Lovelace", "McCarthy",
    "Perlman", "Ritchie", "Rossum", "Stroustrup", "Sutherland", "Thompson",
    "Torvalds", "Turing", "Wirth",
]


def random_username(rng: Optional[random.Random] = None) -> str:
    """Return a "First Last" display name."""
    rng = rng or random
    return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"


def make_participant(
    wants_webcam: bool = False,
    wants_microphone: bool = False,
    rng: Optional[random.Random] = None,
) -> ParticipantConfig:
    """Create a participant with a random display name."""
    return ParticipantConfig(
        identity=random_username(rng),
        wants_webcam=wants_webcam,
        wants_microphone=wants_microphone,
    )
