from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from codequest.core.errors import ContentLoadError
from codequest.core.gestures import ClickInput, DragInput
from codequest.core.progress import ProgressStore
from codequest.core.puzzles import PuzzleRepository
from codequest.core.rules import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    ERROR_PENALTY,
    STARTING_LIVES,
    WRONG_ANSWER_DELAY_MS,
)
from codequest.core.scheduler import Scheduler
from codequest.core.session import (
    ActionResult,
    GameSession,
    Rejection,
    SessionPhase,
    SessionSnapshot,
)
from codequest.ui.code_widgets import BlankSlot, CodeLineWidget, HeartsLabel, TokenChip
from codequest.ui.colors import GameColors, blend_hex
from codequest.ui.qt_scheduler import QtScheduler

logger = logging.getLogger(__name__)

TOKENS_PER_ROW = 4


def _card() -> QFrame:
    card = QFrame()
    card.setObjectName("card")
    card.setStyleSheet(
        f"""
        QFrame#card {{
            background: {GameColors.CARD_BG};
            border: 1px solid {GameColors.CARD_BORDER};
            border-radius: 16px;
        }}
        """
    )
    return card


def _button_style(color: str) -> str:
    return f"""
        QPushButton {{
            background: {color};
            color: white;
            padding: 10px 18px;
            border: none;
            border-radius: 12px;
            font-weight: 700;
            font-size: 14px;
        }}
        QPushButton:hover {{ background: {blend_hex(color, '#ffffff', 0.15)}; }}
        QPushButton:disabled {{ background: {GameColors.TOKEN_USED}; color: {GameColors.TEXT_MUTED}; }}
    """


def _label(text: str = "", size: int = 14, color: str = GameColors.TEXT_PRIMARY, bold: bool = False) -> QLabel:
    label = QLabel(text)
    label.setStyleSheet(f"color: {color}; font-size: {size}px; font-weight: {800 if bold else 400};")
    return label


class MainWindow(QMainWindow):
    """Menu, puzzle and result screens around one GameSession at a time."""

    def __init__(
        self,
        repository: PuzzleRepository,
        progress_store: ProgressStore,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        super().__init__()
        self._repository = repository
        self._progress_store = progress_store
        self._scheduler = scheduler or QtScheduler()
        self._category = DEFAULT_CATEGORY
        self._session: Optional[GameSession] = None
        self._click: Optional[ClickInput] = None
        self._drag: Optional[DragInput] = None
        self._rendered_level: Optional[int] = None
        self._last_result: Optional[ActionResult] = None
        self._slots: dict[int, BlankSlot] = {}
        self._chips: dict[str, TokenChip] = {}
        self._category_buttons: dict[str, QPushButton] = {}
        self._last_snapshot: Optional[SessionSnapshot] = None

        self._build_ui()
        self._select_category(self._category)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self.setWindowTitle("CodeQuest")
        self.setMinimumSize(900, 700)
        self.setStyleSheet(
            f"QMainWindow {{ background: qlineargradient(x1:0, y1:0, x2:0, y2:1, "
            f"stop:0 {GameColors.BG_TOP}, stop:1 {GameColors.BG_BOTTOM}); }}"
        )
        self._stack = QStackedWidget()
        self._menu_screen = self._build_menu_screen()
        self._game_screen = self._build_game_screen()
        self._result_screen = self._build_result_screen()
        for screen in (self._menu_screen, self._game_screen, self._result_screen):
            self._stack.addWidget(screen)
        self.setCentralWidget(self._stack)

    def _build_menu_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(40, 40, 40, 40)
        layout.setSpacing(20)
        layout.addStretch(1)

        self._menu_icon = _label("", 56)
        self._menu_icon.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._menu_icon)
        title = _label("CodeQuest", 40, GameColors.TEXT_PRIMARY, bold=True)
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)
        self._menu_subtitle = _label("", 14, GameColors.TEXT_SECONDARY)
        self._menu_subtitle.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._menu_subtitle)

        langs = QHBoxLayout()
        langs.addStretch(1)
        for key, category in CATEGORIES.items():
            button = QPushButton(f"{category.icon} {category.label}")
            button.setCursor(Qt.PointingHandCursor)
            button.clicked.connect(lambda _=False, k=key: self._select_category(k))
            self._category_buttons[key] = button
            langs.addWidget(button)
        langs.addStretch(1)
        layout.addLayout(langs)

        stats = _card()
        stats_row = QHBoxLayout(stats)
        stats_row.setContentsMargins(24, 16, 24, 16)
        self._menu_best = _label("—", 28, GameColors.SUCCESS, bold=True)
        self._menu_games = _label("0", 28, GameColors.PRIMARY_LIGHT, bold=True)
        for caption, value in (("Best score", self._menu_best), ("Games played", self._menu_games)):
            column = QVBoxLayout()
            column.addWidget(_label(caption, 12, GameColors.TEXT_MUTED), 0, Qt.AlignCenter)
            column.addWidget(value, 0, Qt.AlignCenter)
            stats_row.addLayout(column)
        layout.addWidget(stats, 0, Qt.AlignCenter)

        self._play_button = QPushButton("▶  Play")
        self._play_button.setCursor(Qt.PointingHandCursor)
        self._play_button.clicked.connect(self._start_game)
        layout.addWidget(self._play_button, 0, Qt.AlignCenter)

        reset_button = QPushButton("Reset stats")
        reset_button.setCursor(Qt.PointingHandCursor)
        reset_button.setStyleSheet(_button_style(GameColors.TOKEN_USED))
        reset_button.clicked.connect(self._reset_progress)
        layout.addWidget(reset_button, 0, Qt.AlignCenter)
        layout.addStretch(2)
        return screen

    def _build_game_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(24, 16, 24, 16)
        layout.setSpacing(14)

        header = QHBoxLayout()
        back = QPushButton("← Menu")
        back.setStyleSheet(_button_style(GameColors.TOKEN_USED))
        back.clicked.connect(self._go_menu)
        header.addWidget(back)
        self._progress_bar = QProgressBar()
        self._progress_bar.setRange(0, 100)
        self._progress_bar.setTextVisible(False)
        self._progress_bar.setFixedHeight(10)
        header.addWidget(self._progress_bar, 1)
        self._progress_label = _label("1 / 10", 13, GameColors.TEXT_SECONDARY)
        header.addWidget(self._progress_label)
        self._hearts = HeartsLabel(STARTING_LIVES)
        header.addWidget(self._hearts)
        self._score_label = _label("0", 18, GameColors.WARNING, bold=True)
        header.addWidget(self._score_label)
        layout.addLayout(header)

        self._instruction = _label("", 16, GameColors.TEXT_PRIMARY)
        self._instruction.setWordWrap(True)
        layout.addWidget(self._instruction)

        code_card = _card()
        code_layout = QVBoxLayout(code_card)
        code_layout.setContentsMargins(16, 12, 16, 12)
        self._language_label = _label("", 12, GameColors.TEXT_MUTED)
        code_layout.addWidget(self._language_label)
        self._lines_container = QWidget()
        self._lines_layout = QVBoxLayout(self._lines_container)
        self._lines_layout.setContentsMargins(0, 0, 0, 0)
        self._lines_layout.setSpacing(2)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.NoFrame)
        scroll.setStyleSheet("background: transparent;")
        scroll.setWidget(self._lines_container)
        code_layout.addWidget(scroll)
        layout.addWidget(code_card, 1)

        layout.addWidget(_label("Pick the right pieces 👇", 13, GameColors.TEXT_SECONDARY))
        self._tokens_container = QWidget()
        self._tokens_layout = QGridLayout(self._tokens_container)
        self._tokens_layout.setSpacing(8)
        layout.addWidget(self._tokens_container)

        self._banner = _label("", 15, GameColors.TEXT_PRIMARY, bold=True)
        self._banner.setAlignment(Qt.AlignCenter)
        self._banner.setWordWrap(True)
        layout.addWidget(self._banner)

        actions = QHBoxLayout()
        self._skip_button = QPushButton("⏭ Skip")
        self._skip_button.setStyleSheet(_button_style(GameColors.TOKEN_USED))
        self._skip_button.clicked.connect(self._on_skip)
        self._check_button = QPushButton("Check ✓")
        self._check_button.clicked.connect(self._on_check)
        self._next_button = QPushButton("Next →")
        self._next_button.setStyleSheet(_button_style(GameColors.SUCCESS))
        self._next_button.clicked.connect(self._on_next)
        actions.addWidget(self._skip_button)
        actions.addStretch(1)
        actions.addWidget(self._check_button)
        actions.addWidget(self._next_button)
        layout.addLayout(actions)
        return screen

    def _build_result_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(40, 40, 40, 40)
        layout.setSpacing(16)
        layout.addStretch(1)

        self._result_trophy = _label("", 56)
        self._result_trophy.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._result_trophy)
        self._result_title = _label("Game over!", 32, GameColors.TEXT_PRIMARY, bold=True)
        self._result_title.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._result_title)
        self._result_rank = _label("", 18, GameColors.WARNING, bold=True)
        self._result_rank.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._result_rank)

        stats = _card()
        stats_row = QHBoxLayout(stats)
        stats_row.setContentsMargins(24, 16, 24, 16)
        self._result_score = _label("0", 28, GameColors.SUCCESS, bold=True)
        self._result_errors = _label("0", 28, GameColors.ERROR, bold=True)
        self._result_perfect = _label("0/10", 28, GameColors.PRIMARY_LIGHT, bold=True)
        for caption, value in (
            ("Score", self._result_score),
            ("Errors", self._result_errors),
            ("Perfect", self._result_perfect),
        ):
            column = QVBoxLayout()
            column.addWidget(_label(caption, 12, GameColors.TEXT_MUTED), 0, Qt.AlignCenter)
            column.addWidget(value, 0, Qt.AlignCenter)
            stats_row.addLayout(column)
        layout.addWidget(stats, 0, Qt.AlignCenter)

        self._result_payload = _label("", 12, GameColors.TEXT_MUTED)
        self._result_payload.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self._result_payload.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._result_payload)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        copy_button = QPushButton("Copy result")
        copy_button.setStyleSheet(_button_style(GameColors.TOKEN_USED))
        copy_button.clicked.connect(self._copy_result)
        again = QPushButton("Play again")
        again.setStyleSheet(_button_style(GameColors.PRIMARY))
        again.clicked.connect(self._start_game)
        menu = QPushButton("Menu")
        menu.setStyleSheet(_button_style(GameColors.TOKEN_USED))
        menu.clicked.connect(self._go_menu)
        for button in (copy_button, again, menu):
            buttons.addWidget(button)
        buttons.addStretch(1)
        layout.addLayout(buttons)
        layout.addStretch(2)
        return screen

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    def _select_category(self, key: str) -> None:
        self._category = key
        category = CATEGORIES[key]
        for other, button in self._category_buttons.items():
            color = category.color if other == key else GameColors.TOKEN_USED
            button.setStyleSheet(_button_style(color))
        self._menu_icon.setText(category.icon)
        self._menu_subtitle.setText(f"Fill in the missing pieces of {category.label} code")
        self._play_button.setStyleSheet(_button_style(category.color))
        self._check_button.setStyleSheet(_button_style(category.color))
        self._refresh_menu_stats()

    def _refresh_menu_stats(self) -> None:
        stats = self._progress_store.read_best(self._category)
        self._menu_best.setText(str(stats.best_score) if stats.best_score else "—")
        self._menu_games.setText(str(stats.games_played))

    def _reset_progress(self) -> None:
        """Ask for confirmation and, if confirmed, wipe the stats of every category."""
        answer = QMessageBox.question(
            self,
            "CodeQuest",
            "Forget the best scores and games played for every language?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if answer == QMessageBox.Yes:
            self._progress_store.reset()
            self._refresh_menu_stats()

    def _go_menu(self) -> None:
        self._session = None
        self._refresh_menu_stats()
        self._stack.setCurrentWidget(self._menu_screen)

    # ------------------------------------------------------------------
    # Game
    # ------------------------------------------------------------------

    def _start_game(self) -> None:
        try:
            session = GameSession.start(
                self._repository,
                self._category,
                scheduler=self._scheduler,
                progress_store=self._progress_store,
                on_change=self._refresh_game,
                on_finished=self._on_session_finished,
            )
        except ContentLoadError as e:
            logger.error("Failed to load %s puzzles: %s", self._category, e)
            QMessageBox.critical(self, "CodeQuest", f"Could not load the puzzles.\n\n{e}")
            self._stack.setCurrentWidget(self._menu_screen)
            return
        self._session = session
        self._click = ClickInput(session)
        self._drag = DragInput(session)
        self._rendered_level = None
        self._last_result = None
        self._stack.setCurrentWidget(self._game_screen)
        self._refresh_game()

    def _render_level(self) -> None:
        session = self._session
        puzzle = session.puzzle
        self._rendered_level = session.level_index
        self._last_result = None

        while self._lines_layout.count():
            item = self._lines_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        self._slots = {}
        for number, line in enumerate(puzzle.lines, start=1):
            row = CodeLineWidget(number, line)
            for slot in row.slots:
                slot.clicked.connect(lambda _=False, i=slot.index: self._on_blank_clicked(i))
                slot.token_dropped.connect(self._on_token_dropped)
                self._slots[slot.index] = slot
            self._lines_layout.addWidget(row)
        self._lines_layout.addStretch(1)

        while self._tokens_layout.count():
            item = self._tokens_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        self._chips = {}
        for position, token in enumerate(session.board.token_order):
            chip = TokenChip(token)
            chip.clicked.connect(lambda _=False, t=token.id: self._on_token_clicked(t))
            chip.drag_started.connect(self._drag.begin)
            chip.drag_finished.connect(self._on_drag_finished)
            self._chips[token.id] = chip
            self._tokens_layout.addWidget(chip, position // TOKENS_PER_ROW, position % TOKENS_PER_ROW)

        self._instruction.setText(puzzle.instruction)
        self._language_label.setText(puzzle.language)

    def _refresh_game(self) -> None:
        session = self._session
        if session is None:
            return
        if self._rendered_level != session.level_index and not session.is_over:
            self._render_level()

        accent = CATEGORIES[session.category].color
        for index, slot in self._slots.items():
            slot.set_state(session.blank_state(index), session.board.filled_text(index), accent)
        selected = self._click.selected_token if self._click is not None else None
        for token_id, chip in self._chips.items():
            chip.set_state(session.token_state(token_id, selected=token_id == selected))

        self._hearts.set_lives(session.lives)
        self._score_label.setText(str(session.score))
        self._progress_bar.setValue(int(session.progress_fraction * 100))
        self._progress_label.setText(f"{session.level_number} / {session.level_count}")

        phase = session.phase
        self._check_button.setEnabled(phase is SessionPhase.IDLE)
        self._skip_button.setEnabled(phase in (SessionPhase.IDLE, SessionPhase.LEVEL_CLEARED))
        self._next_button.setVisible(phase is SessionPhase.LEVEL_CLEARED)
        self._update_banner()

    def _update_banner(self) -> None:
        session = self._session
        outcome = self._last_result.outcome if self._last_result is not None else None
        if outcome is None or session.phase is SessionPhase.IDLE:
            self._banner.setText("")
            return
        if outcome.all_correct:
            text = f"🎉 Perfect! +{outcome.score_delta} points" if outcome.perfect else f"✅ Correct! +{outcome.score_delta} points"
            if session.level_errors:
                text += f" (−{session.level_errors * ERROR_PENALTY} for mistakes)"
            color = GameColors.SUCCESS
        elif session.lives == 0:
            text, color = "💀 No lives left...", GameColors.ERROR
        else:
            text = f"💔 Not quite. Mistake #{session.level_errors} on this level, try again!"
            color = GameColors.ERROR
        self._banner.setText(text)
        self._banner.setStyleSheet(f"color: {color}; font-size: 15px; font-weight: 800;")

    def _on_token_clicked(self, token_id: str) -> None:
        if self._click is not None:
            self._handle(self._click.click_token(token_id))

    def _on_blank_clicked(self, blank_index: int) -> None:
        if self._click is not None:
            self._handle(self._click.click_blank(blank_index))

    def _on_token_dropped(self, blank_index: int) -> None:
        if self._drag is not None:
            self._handle(self._drag.drop(blank_index))

    def _on_drag_finished(self, token_id: str, dropped: bool) -> None:
        if not dropped and self._drag is not None:
            self._drag.cancel()

    def _on_check(self) -> None:
        if self._session is None:
            return
        result = self._session.request_check()
        if result.reason is Rejection.INCOMPLETE:
            self._flash_check_button()
            return
        self._last_result = result
        self._update_banner()

    def _on_next(self) -> None:
        if self._session is not None:
            self._handle(self._session.advance())

    def _on_skip(self) -> None:
        if self._session is not None:
            self._handle(self._session.skip())

    def _handle(self, result: Optional[ActionResult]) -> None:
        # selection changes do not go through the session, so repaint here too
        if result is not None and not result.accepted:
            logger.debug("Action rejected: %s", result.reason)
        self._refresh_game()

    def _flash_check_button(self) -> None:
        self._check_button.setStyleSheet(_button_style(GameColors.ERROR))
        category = CATEGORIES[self._category]
        QTimer.singleShot(500, lambda: self._check_button.setStyleSheet(_button_style(category.color)))

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def _on_session_finished(self, snapshot: SessionSnapshot) -> None:
        session = self._session
        if session is not None and session.lives == 0:
            # let the player see which blanks were wrong first
            self._scheduler.call_later(WRONG_ANSWER_DELAY_MS, lambda: self._show_result(snapshot, session))
        else:
            self._show_result(snapshot)

    def _show_result(self, snapshot: SessionSnapshot, session: Optional[GameSession] = None) -> None:
        if session is not None and session is not self._session:
            return
        category = CATEGORIES.get(snapshot.category)
        trophies = {"S": "🏆", "A": "🥇", "B": "🥈", "C": "🎖"}
        self._result_trophy.setText(trophies[snapshot.rank])
        label = f"{category.icon} {category.label}" if category else snapshot.category
        self._result_title.setText(f"Game over! {label}")
        self._result_rank.setText(f"Rank {snapshot.rank}: {snapshot.rank_title}")
        self._result_score.setText(str(snapshot.score))
        self._result_errors.setText(str(snapshot.total_errors))
        self._result_perfect.setText(f"{snapshot.perfect_levels}/{snapshot.level_count}")
        self._result_payload.setText(snapshot.reward_payload())
        self._last_snapshot = snapshot
        self._stack.setCurrentWidget(self._result_screen)

    def _copy_result(self) -> None:
        if self._last_snapshot is not None:
            QGuiApplication.clipboard().setText(self._last_snapshot.reward_payload())
