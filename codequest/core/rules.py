"""Game rules, tunables and the category registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

LEVELS_PER_SESSION = 10
STARTING_LIVES = 3
SKIP_PENALTY = 2
WRONG_ANSWER_DELAY_MS = 1800

# level score = max(0, BASE + lives * LIFE_BONUS - level_errors * ERROR_PENALTY)
BASE_LEVEL_SCORE = 10
LIFE_BONUS = 3
ERROR_PENALTY = 2

# (minimum score, rank letter, title) – checked top to bottom
RANKS = (
    (120, "S", "Code master!"),
    (90, "A", "Excellent!"),
    (60, "B", "Good job!"),
    (0, "C", "Keep practicing!"),
)


@dataclass(frozen=True)
class Category:
    key: str
    label: str
    icon: str
    color: str
    accent: str
    file_name: str


CATEGORIES: Dict[str, Category] = {
    "python": Category(
        key="python",
        label="Python",
        icon="🐍",
        color="#4facfe",
        accent="#43e97b",
        file_name="python.yaml",
    ),
    "csharp": Category(
        key="csharp",
        label="C#",
        icon="💜",
        color="#9b59b6",
        accent="#c678dd",
        file_name="csharp.yaml",
    ),
}

DEFAULT_CATEGORY = "python"


def rank_for(score: int) -> tuple[str, str]:
    """Return (rank letter, title) for a final session score."""
    for threshold, letter, title in RANKS:
        if score >= threshold:
            return letter, title
    return RANKS[-1][1], RANKS[-1][2]
