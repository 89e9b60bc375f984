"""Input adapters: click and drag gestures become ``GameSession.assign``/``clear`` calls.

Neither adapter stores assignments. They only remember the transient
gesture state (selected token, targeted blank, token being dragged) and
forget it whenever the session moves to another level.
"""

from __future__ import annotations

from typing import Optional

from codequest.core.errors import InvalidAssignment
from codequest.core.session import ActionResult, GameSession, Rejection, SessionPhase


def _locked(session: GameSession) -> Optional[Rejection]:
    if session.phase is SessionPhase.SESSION_OVER:
        return Rejection.SESSION_OVER
    if session.phase is not SessionPhase.IDLE:
        return Rejection.LOCKED
    return None


class ClickInput:
    """Click-to-place: a token click fills the targeted blank or the first empty one.

    A token that already sits in a blank is not locked. Clicking it moves it
    to the targeted (or first empty) blank and leaves its old blank empty.
    With every blank filled the click only selects it. Clicking the filled
    blank instead sends the token back to the pool.
    """

    def __init__(self, session: GameSession) -> None:
        self._session = session
        self._level_index = session.level_index
        self._selected_token: Optional[str] = None
        self._target_blank: Optional[int] = None

    @property
    def selected_token(self) -> Optional[str]:
        self._sync()
        return self._selected_token

    @property
    def target_blank(self) -> Optional[int]:
        self._sync()
        return self._target_blank

    def reset(self) -> None:
        self._selected_token = None
        self._target_blank = None
        self._level_index = self._session.level_index

    def click_token(self, token_id: str) -> ActionResult:
        self._sync()
        reason = _locked(self._session)
        if reason is not None:
            return ActionResult.rejected(reason)

        if self._target_blank is not None:
            blank = self._target_blank
            self.reset()
            return self._session.assign(blank, token_id)

        if self._selected_token == token_id:
            self._selected_token = None
            return ActionResult(accepted=True)

        empty = self._session.board.first_empty_blank()
        if empty is not None:
            self._selected_token = None
            return self._session.assign(empty, token_id)

        # every blank is filled: hold the token until a blank is clicked
        if all(t.id != token_id for t in self._session.board.token_order):
            raise InvalidAssignment(f"Unknown token id {token_id!r}")
        self._selected_token = token_id
        return ActionResult(accepted=True)

    def click_blank(self, blank_index: int) -> ActionResult:
        self._sync()
        reason = _locked(self._session)
        if reason is not None:
            return ActionResult.rejected(reason)

        if self._selected_token is not None:
            token_id = self._selected_token
            self.reset()
            return self._session.assign(blank_index, token_id)

        if self._session.board.token_for(blank_index) is not None:
            self._target_blank = None
            return self._session.clear(blank_index)

        if not 0 <= blank_index < self._session.puzzle.blank_count:
            raise InvalidAssignment(f"Blank index {blank_index!r} out of range")
        self._target_blank = None if self._target_blank == blank_index else blank_index
        return ActionResult(accepted=True)

    def _sync(self) -> None:
        if self._level_index != self._session.level_index:
            self.reset()


class DragInput:
    """Drag-and-drop: dropping a token on a blank assigns it there, replacing what it held."""

    def __init__(self, session: GameSession) -> None:
        self._session = session
        self._dragging: Optional[str] = None

    @property
    def dragging(self) -> Optional[str]:
        return self._dragging

    def begin(self, token_id: str) -> None:
        self._dragging = token_id

    def cancel(self) -> None:
        self._dragging = None

    def drop(self, blank_index: int) -> Optional[ActionResult]:
        """Finish a drag. Returns None when no token was being dragged."""
        token_id, self._dragging = self._dragging, None
        if token_id is None:
            return None
        return self._session.assign(blank_index, token_id)
