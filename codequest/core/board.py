from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from codequest.core.errors import InvalidAssignment
from codequest.core.puzzles import Puzzle, Token


@dataclass(frozen=True)
class Assignment:
    """One filled blank: which token sits in it and the text it shows."""

    blank_index: int
    token_id: str
    text: str


class PuzzleBoard:
    """Token pool and blank→token assignment table for one level attempt.

    Two dictionaries are kept in lockstep (blank → token and token → blank),
    so a token can never fill more than one blank. A token is *consumed*
    exactly while it appears in the table.
    """

    def __init__(self, puzzle: Puzzle, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self.initialize(puzzle)

    def initialize(self, puzzle: Puzzle) -> None:
        """Shuffle the puzzle's tokens into a fresh pool and empty the table."""
        order = list(puzzle.tokens)
        self._rng.shuffle(order)
        self._puzzle = puzzle
        self._order: tuple[Token, ...] = tuple(order)
        self._tokens: Dict[str, Token] = {t.id: t for t in puzzle.tokens}
        self._by_blank: Dict[int, str] = {}
        self._by_token: Dict[str, int] = {}

    @property
    def puzzle(self) -> Puzzle:
        return self._puzzle

    @property
    def token_order(self) -> tuple[Token, ...]:
        """Tokens in presentation order (fixed until the next initialize)."""
        return self._order

    @property
    def pool_size(self) -> int:
        return len(self._order)

    def assign(self, blank_index: int, token_id: str) -> Assignment:
        """Put a token into a blank, releasing whatever either of them held before."""
        self._check_blank(blank_index)
        token = self._tokens.get(token_id)
        if token is None:
            raise InvalidAssignment(f"Unknown token id {token_id!r} for puzzle {self._puzzle.id}")

        if self._by_blank.get(blank_index) != token_id:
            self.clear(blank_index)
            previous_blank = self._by_token.get(token_id)
            if previous_blank is not None:
                self.clear(previous_blank)
            self._by_blank[blank_index] = token_id
            self._by_token[token_id] = blank_index
        return Assignment(blank_index=blank_index, token_id=token_id, text=token.text)

    def clear(self, blank_index: int) -> Optional[str]:
        """Empty a blank and return the released token id (None if it was empty)."""
        self._check_blank(blank_index)
        token_id = self._by_blank.pop(blank_index, None)
        if token_id is not None:
            del self._by_token[token_id]
        return token_id

    def clear_many(self, blank_indices: Iterable[int]) -> List[str]:
        released = []
        for index in blank_indices:
            token_id = self.clear(index)
            if token_id is not None:
                released.append(token_id)
        return released

    def is_complete(self) -> bool:
        return all(i in self._by_blank for i in range(self._puzzle.blank_count))

    def token_for(self, blank_index: int) -> Optional[str]:
        return self._by_blank.get(blank_index)

    def blank_of(self, token_id: str) -> Optional[int]:
        return self._by_token.get(token_id)

    def filled_text(self, blank_index: int) -> Optional[str]:
        token_id = self._by_blank.get(blank_index)
        return None if token_id is None else self._tokens[token_id].text

    def is_available(self, token_id: str) -> bool:
        if token_id not in self._tokens:
            raise InvalidAssignment(f"Unknown token id {token_id!r} for puzzle {self._puzzle.id}")
        return token_id not in self._by_token

    def available_tokens(self) -> List[Token]:
        return [t for t in self._order if t.id not in self._by_token]

    def first_empty_blank(self) -> Optional[int]:
        for index in range(self._puzzle.blank_count):
            if index not in self._by_blank:
                return index
        return None

    def assignments(self) -> List[Assignment]:
        return [
            Assignment(blank_index=i, token_id=t, text=self._tokens[t].text)
            for i, t in sorted(self._by_blank.items())
        ]

    def _check_blank(self, blank_index: int) -> None:
        if not isinstance(blank_index, int) or not 0 <= blank_index < self._puzzle.blank_count:
            raise InvalidAssignment(
                f"Blank index {blank_index!r} out of range for puzzle {self._puzzle.id} "
                f"({self._puzzle.blank_count} blanks)"
            )
