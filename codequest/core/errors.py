"""Exception types raised by the game core."""

from __future__ import annotations


class CodeQuestError(Exception):
    """Base class for all game core errors."""


class ContentLoadError(CodeQuestError):
    """Puzzle content is missing, empty or malformed. The session cannot start."""


class InvalidAssignment(CodeQuestError):
    """The interaction layer sent an assignment that does not fit the current puzzle."""
