from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from codequest.core.board import PuzzleBoard
from codequest.core.errors import InvalidAssignment
from codequest.core.puzzles import Puzzle
from codequest.core.rules import BASE_LEVEL_SCORE, ERROR_PENALTY, LIFE_BONUS


class BlankVerdict(Enum):
    CORRECT = "correct"
    WRONG = "wrong"


@dataclass(frozen=True)
class CheckOutcome:
    """Result of checking a fully filled board. The session applies it."""

    verdicts: Dict[int, BlankVerdict]
    all_correct: bool
    score_delta: int
    life_delta: int
    error_delta: int
    perfect: bool
    wrong_blanks: List[int] = field(default_factory=list)


def level_score(lives: int, level_errors: int) -> int:
    """Points for a solved level: more lives left and fewer retries score higher, never below 0."""
    return max(0, BASE_LEVEL_SCORE + lives * LIFE_BONUS - level_errors * ERROR_PENALTY)


def evaluate(puzzle: Puzzle, board: PuzzleBoard, lives: int, level_errors: int) -> CheckOutcome:
    """Compare every filled blank against its expected answer (exact match)."""
    if not board.is_complete():
        raise InvalidAssignment(f"Cannot check puzzle {puzzle.id}: not every blank is filled")

    verdicts: Dict[int, BlankVerdict] = {}
    for blank in puzzle.blanks:
        if board.filled_text(blank.index) == blank.answer:
            verdicts[blank.index] = BlankVerdict.CORRECT
        else:
            verdicts[blank.index] = BlankVerdict.WRONG
    wrong = [i for i, v in verdicts.items() if v is BlankVerdict.WRONG]

    if not wrong:
        return CheckOutcome(
            verdicts=verdicts,
            all_correct=True,
            score_delta=level_score(lives, level_errors),
            life_delta=0,
            error_delta=0,
            perfect=level_errors == 0,
        )
    return CheckOutcome(
        verdicts=verdicts,
        all_correct=False,
        score_delta=0,
        life_delta=-1 if lives > 0 else 0,
        error_delta=1,
        perfect=False,
        wrong_blanks=wrong,
    )
