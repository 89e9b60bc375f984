"""Shared puzzle builders for the core tests."""

from __future__ import annotations

import random

import pytest

from codequest.core.puzzles import Blank, Line, Puzzle, Token
from codequest.core.scheduler import ManualScheduler
from codequest.core.session import GameSession


def make_puzzle(puzzle_id: str = "p1") -> Puzzle:
    """Two blanks on one line plus one distractor token.

    for i <in> <range>(5):     answers: "in", "range"; distractor: "len"
    """
    return Puzzle(
        id=puzzle_id,
        instruction="Loop five times.",
        language="Python",
        lines=(
            Line(prefix="for i ", blank=0, suffix=" ", blank2=1, suffix2="(5):"),
            Line(static="    print(i)"),
        ),
        blanks=(Blank(index=0, answer="in"), Blank(index=1, answer="range")),
        tokens=(
            Token(id="a", text="in", type="keyword"),
            Token(id="b", text="range", type="func"),
            Token(id="c", text="len", type="func"),
        ),
    )


def solve(session: GameSession) -> None:
    """Fill the current puzzle's blanks with the right tokens."""
    puzzle = session.puzzle
    for blank in puzzle.blanks:
        token = next(t for t in puzzle.tokens if t.text == blank.answer)
        session.assign(blank.index, token.id)


def fill_wrong(session: GameSession) -> None:
    """Fill blank 0 correctly and blank 1 with the distractor."""
    session.assign(0, "a")
    session.assign(1, "c")


@pytest.fixture()
def puzzle() -> Puzzle:
    return make_puzzle()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def new_session(scheduler: ManualScheduler):
    """Factory: a session over ``levels`` copies of the sample puzzle."""

    def _make(levels: int = 3, **kwargs) -> GameSession:
        puzzles = [make_puzzle(f"p{n}") for n in range(levels)]
        kwargs.setdefault("rng", random.Random(7))
        return GameSession(puzzles, category="python", scheduler=scheduler, **kwargs)

    return _make
