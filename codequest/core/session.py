from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional, Sequence

from codequest.core.board import Assignment, PuzzleBoard
from codequest.core.errors import ContentLoadError, InvalidAssignment
from codequest.core.evaluator import BlankVerdict, CheckOutcome, evaluate
from codequest.core.puzzles import Puzzle, PuzzleRepository, draw_levels
from codequest.core.rules import (
    LEVELS_PER_SESSION,
    SKIP_PENALTY,
    STARTING_LIVES,
    WRONG_ANSWER_DELAY_MS,
    rank_for,
)
from codequest.core.scheduler import Scheduler

if TYPE_CHECKING:
    from codequest.core.progress import ProgressStore

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    IDLE = "idle"
    CHECKED_WRONG = "checked_wrong"
    LEVEL_CLEARED = "level_cleared"
    SESSION_OVER = "session_over"


class Rejection(Enum):
    """Why a gameplay action was refused. The UI turns these into a visual cue."""

    INCOMPLETE = "incomplete"
    LOCKED = "locked"
    NOT_CLEARED = "not_cleared"
    SESSION_OVER = "session_over"


class BlankState(Enum):
    EMPTY = "empty"
    FILLED = "filled"
    CORRECT = "correct"
    WRONG = "wrong"


class TokenState(Enum):
    AVAILABLE = "available"
    USED = "used"
    SELECTED = "selected"


@dataclass(frozen=True)
class ActionResult:
    accepted: bool
    reason: Optional[Rejection] = None
    outcome: Optional[CheckOutcome] = None
    assignment: Optional[Assignment] = None

    @classmethod
    def rejected(cls, reason: Rejection) -> "ActionResult":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class SessionSnapshot:
    """Final figures of a finished session, handed to persistence and reporting."""

    category: str
    score: int
    perfect_levels: int
    total_errors: int
    level_count: int

    @property
    def rank(self) -> str:
        return rank_for(self.score)[0]

    @property
    def rank_title(self) -> str:
        return rank_for(self.score)[1]

    def reward_payload(self) -> str:
        """Compact result string understood by the reward bot."""
        return f"codeQuest_{self.category}_{self.score}_{self.perfect_levels}_{self.total_errors}"


class GameSession:
    """One play-through: a fixed list of puzzles, lives, score and the active board.

    Phases move IDLE → (CHECKED_WRONG → IDLE)* → LEVEL_CLEARED → IDLE on the
    next level, and end in SESSION_OVER when the levels run out or the last
    life is lost. Each public event either mutates state and returns an
    accepted ``ActionResult`` or returns a rejection and changes nothing.
    """

    def __init__(
        self,
        levels: Sequence[Puzzle],
        *,
        category: str,
        scheduler: Scheduler,
        lives: int = STARTING_LIVES,
        retry_delay_ms: int = WRONG_ANSWER_DELAY_MS,
        progress_store: Optional[ProgressStore] = None,
        rng: Optional[random.Random] = None,
        on_change: Optional[Callable[[], None]] = None,
        on_finished: Optional[Callable[[SessionSnapshot], None]] = None,
    ) -> None:
        if not levels:
            raise ContentLoadError(f"Cannot start a {category} session without puzzles")
        self._levels: tuple[Puzzle, ...] = tuple(levels)
        self._category = category
        self._scheduler = scheduler
        self._retry_delay_ms = retry_delay_ms
        self._progress_store = progress_store
        self._rng = rng or random.Random()
        self._on_change = on_change
        self._on_finished = on_finished

        self._level_index = 0
        self._lives = lives
        self._score = 0
        self._total_errors = 0
        self._perfect_levels = 0
        self._level_errors = 0
        self._check_serial = 0
        self._verdicts: Dict[int, BlankVerdict] = {}
        self._snapshot: Optional[SessionSnapshot] = None
        self._phase = SessionPhase.IDLE
        self._board = PuzzleBoard(self._levels[0], rng=self._rng)
        logger.info("Started %s session with %d levels", category, len(self._levels))

    @classmethod
    def start(
        cls,
        repository: PuzzleRepository,
        category: str,
        *,
        scheduler: Scheduler,
        level_count: int = LEVELS_PER_SESSION,
        rng: Optional[random.Random] = None,
        **kwargs,
    ) -> "GameSession":
        """Load a category's catalog, draw the levels and build a session."""
        rng = rng or random.Random()
        levels = draw_levels(repository.load(category), level_count, rng)
        return cls(levels, category=category, scheduler=scheduler, rng=rng, **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def category(self) -> str:
        return self._category

    @property
    def levels(self) -> tuple[Puzzle, ...]:
        return self._levels

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_over(self) -> bool:
        return self._phase is SessionPhase.SESSION_OVER

    @property
    def puzzle(self) -> Puzzle:
        """Puzzle on screen (the last one played once the session is over)."""
        return self._levels[min(self._level_index, len(self._levels) - 1)]

    @property
    def board(self) -> PuzzleBoard:
        return self._board

    @property
    def level_index(self) -> int:
        return self._level_index

    @property
    def level_count(self) -> int:
        return len(self._levels)

    @property
    def level_number(self) -> int:
        """1-based level shown in the header."""
        return min(self._level_index + 1, len(self._levels))

    @property
    def progress_fraction(self) -> float:
        return self._level_index / len(self._levels)

    @property
    def lives(self) -> int:
        return self._lives

    @property
    def score(self) -> int:
        return self._score

    @property
    def total_errors(self) -> int:
        return self._total_errors

    @property
    def perfect_levels(self) -> int:
        return self._perfect_levels

    @property
    def level_errors(self) -> int:
        return self._level_errors

    @property
    def snapshot(self) -> Optional[SessionSnapshot]:
        """Final result; None until the session is over."""
        return self._snapshot

    def blank_state(self, blank_index: int) -> BlankState:
        verdict = self._verdicts.get(blank_index)
        if verdict is BlankVerdict.CORRECT:
            return BlankState.CORRECT
        if verdict is BlankVerdict.WRONG:
            return BlankState.WRONG
        if self._board.token_for(blank_index) is not None:
            return BlankState.FILLED
        return BlankState.EMPTY

    def token_state(self, token_id: str, selected: bool = False) -> TokenState:
        if not self._board.is_available(token_id):
            return TokenState.USED
        return TokenState.SELECTED if selected else TokenState.AVAILABLE

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def assign(self, blank_index: int, token_id: str) -> ActionResult:
        rejection = self._editing_rejection()
        if rejection is not None:
            return self._reject("assign", rejection)
        try:
            assignment = self._board.assign(blank_index, token_id)
        except InvalidAssignment:
            logger.error(
                "Rejected assignment of token %r to blank %r on level %d",
                token_id,
                blank_index,
                self._level_index,
                exc_info=True,
            )
            raise
        self._forget_verdicts_for(assignment.blank_index)
        self._changed()
        return ActionResult(accepted=True, assignment=assignment)

    def clear(self, blank_index: int) -> ActionResult:
        rejection = self._editing_rejection()
        if rejection is not None:
            return self._reject("clear", rejection)
        try:
            self._board.clear(blank_index)
        except InvalidAssignment:
            logger.error("Rejected clear of blank %r on level %d", blank_index, self._level_index, exc_info=True)
            raise
        self._verdicts.pop(blank_index, None)
        self._changed()
        return ActionResult(accepted=True)

    def request_check(self) -> ActionResult:
        rejection = self._editing_rejection()
        if rejection is not None:
            return self._reject("check", rejection)
        if not self._board.is_complete():
            return self._reject("check", Rejection.INCOMPLETE)

        outcome = evaluate(self.puzzle, self._board, self._lives, self._level_errors)
        self._verdicts = dict(outcome.verdicts)

        if outcome.all_correct:
            self._score += outcome.score_delta
            if outcome.perfect:
                self._perfect_levels += 1
            self._phase = SessionPhase.LEVEL_CLEARED
            logger.info(
                "Level %d solved: +%d points (perfect=%s, score=%d)",
                self._level_index + 1,
                outcome.score_delta,
                outcome.perfect,
                self._score,
            )
            self._changed()
            return ActionResult(accepted=True, outcome=outcome)

        self._level_errors += outcome.error_delta
        self._total_errors += outcome.error_delta
        self._lives = max(0, self._lives + outcome.life_delta)
        logger.info(
            "Level %d wrong check #%d: blanks %s wrong, %d lives left",
            self._level_index + 1,
            self._level_errors,
            outcome.wrong_blanks,
            self._lives,
        )
        if self._lives == 0:
            self._finish()
        else:
            self._phase = SessionPhase.CHECKED_WRONG
            self._check_serial += 1
            serial = self._check_serial
            self._scheduler.call_later(self._retry_delay_ms, lambda: self._retry(serial))
            self._changed()
        return ActionResult(accepted=True, outcome=outcome)

    def advance(self) -> ActionResult:
        if self._phase is SessionPhase.SESSION_OVER:
            return self._reject("advance", Rejection.SESSION_OVER)
        if self._phase is not SessionPhase.LEVEL_CLEARED:
            return self._reject("advance", Rejection.NOT_CLEARED)
        self._next_level()
        return ActionResult(accepted=True)

    def skip(self) -> ActionResult:
        if self._phase is SessionPhase.SESSION_OVER:
            return self._reject("skip", Rejection.SESSION_OVER)
        if self._phase is SessionPhase.CHECKED_WRONG:
            return self._reject("skip", Rejection.LOCKED)
        self._total_errors += SKIP_PENALTY
        logger.info("Level %d skipped (+%d errors)", self._level_index + 1, SKIP_PENALTY)
        self._next_level()
        return ActionResult(accepted=True)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _retry(self, serial: int) -> None:
        """Scheduled after a wrong check: drop the wrong tokens and unlock the board."""
        if serial != self._check_serial or self._phase is not SessionPhase.CHECKED_WRONG:
            return
        wrong = [i for i, v in self._verdicts.items() if v is BlankVerdict.WRONG]
        self._board.clear_many(wrong)
        for index in wrong:
            del self._verdicts[index]
        self._phase = SessionPhase.IDLE
        self._changed()

    def _next_level(self) -> None:
        self._level_index += 1
        self._verdicts = {}
        if self._level_index >= len(self._levels):
            self._finish()
            return
        self._level_errors = 0
        self._board = PuzzleBoard(self._levels[self._level_index], rng=self._rng)
        self._phase = SessionPhase.IDLE
        logger.info("Level %d/%d: %s", self._level_index + 1, len(self._levels), self.puzzle.id)
        self._changed()

    def _finish(self) -> None:
        self._phase = SessionPhase.SESSION_OVER
        self._snapshot = SessionSnapshot(
            category=self._category,
            score=self._score,
            perfect_levels=self._perfect_levels,
            total_errors=self._total_errors,
            level_count=len(self._levels),
        )
        logger.info(
            "Session over: score=%d perfect=%d/%d errors=%d lives=%d",
            self._score,
            self._perfect_levels,
            len(self._levels),
            self._total_errors,
            self._lives,
        )
        if self._progress_store is not None:
            self._progress_store.write_best(self._category, self._score)
        self._changed()
        if self._on_finished is not None:
            self._on_finished(self._snapshot)

    def _editing_rejection(self) -> Optional[Rejection]:
        if self._phase is SessionPhase.SESSION_OVER:
            return Rejection.SESSION_OVER
        if self._phase is not SessionPhase.IDLE:
            return Rejection.LOCKED
        return None

    def _forget_verdicts_for(self, blank_index: int) -> None:
        # a token moved out of another blank leaves that blank empty, so its verdict goes too
        self._verdicts.pop(blank_index, None)
        for index in list(self._verdicts):
            if self._board.token_for(index) is None:
                del self._verdicts[index]

    def _reject(self, action: str, reason: Rejection) -> ActionResult:
        logger.debug("Ignored %s in phase %s: %s", action, self._phase.value, reason.value)
        return ActionResult.rejected(reason)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

