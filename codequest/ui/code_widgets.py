"""Puzzle UI: code lines with blank slots, token chips and the hearts row."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QMimeData, Qt, Signal
from PySide6.QtGui import QDrag, QFont
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QWidget

from codequest.core.puzzles import Line, Token
from codequest.core.session import BlankState, TokenState
from codequest.ui.colors import GameColors, blank_colors, chip_colors

TOKEN_MIME = "application/x-codequest-token"


def _mono_font(point_size: int = 13) -> QFont:
    font = QFont("JetBrains Mono")
    font.setStyleHint(QFont.Monospace)
    font.setPointSize(point_size)
    return font


class BlankSlot(QPushButton):
    """Clickable blank inside a code line. Accepts dropped token chips."""

    token_dropped = Signal(int)

    def __init__(self, index: int, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.index = index
        self.setAcceptDrops(True)
        self.setCursor(Qt.PointingHandCursor)
        self.setFont(_mono_font())
        self.set_state(BlankState.EMPTY, None)

    def set_state(self, state: BlankState, text: Optional[str], accent: str = GameColors.PRIMARY) -> None:
        background, border = blank_colors(state, accent)
        shown = text or ""
        self.setText(shown)
        self.setMinimumWidth(max(48, len(shown) * 10 + 20))
        self.setStyleSheet(
            f"""
            QPushButton {{
                background: {background};
                color: {GameColors.TEXT_PRIMARY};
                border: 2px {'dashed' if state is BlankState.EMPTY else 'solid'} {border};
                border-radius: 6px;
                padding: 2px 8px;
            }}
            """
        )

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasFormat(TOKEN_MIME):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event) -> None:
        if not event.mimeData().hasFormat(TOKEN_MIME):
            event.ignore()
            return
        event.acceptProposedAction()
        self.token_dropped.emit(self.index)


class TokenChip(QPushButton):
    """Selectable, draggable token. Emits drag_started when a drag begins and drag_finished after it."""

    drag_started = Signal(str)
    drag_finished = Signal(str, bool)  # token id, dropped on a target

    def __init__(self, token: Token, parent: Optional[QWidget] = None) -> None:
        super().__init__(token.text, parent)
        self.token = token
        self._press_pos = None
        self.setCursor(Qt.PointingHandCursor)
        self.setFont(_mono_font(12))
        self.set_state(TokenState.AVAILABLE)

    def set_state(self, state: TokenState) -> None:
        background, color = chip_colors(state, self.token.type)
        self.setToolTip("Click to move into another blank" if state is TokenState.USED else "")
        self.setStyleSheet(
            f"""
            QPushButton {{
                background: {background};
                color: {color};
                border: 1px solid {color};
                border-radius: 10px;
                padding: 8px 14px;
                font-weight: 600;
            }}
            """
        )

    def mousePressEvent(self, event) -> None:
        if event.button() == Qt.LeftButton:
            self._press_pos = event.position().toPoint()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:
        if self._press_pos is None or not (event.buttons() & Qt.LeftButton):
            return super().mouseMoveEvent(event)
        if (event.position().toPoint() - self._press_pos).manhattanLength() < 8:
            return super().mouseMoveEvent(event)
        self._press_pos = None
        self.setDown(False)
        mime = QMimeData()
        mime.setData(TOKEN_MIME, self.token.id.encode("utf-8"))
        drag = QDrag(self)
        drag.setMimeData(mime)
        drag.setPixmap(self.grab())
        self.drag_started.emit(self.token.id)
        dropped = drag.exec(Qt.MoveAction) == Qt.MoveAction
        self.drag_finished.emit(self.token.id, dropped)


class CodeLineWidget(QWidget):
    """Line number plus literal code and blank slots laid out left to right."""

    def __init__(self, number: int, line: Line, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.slots: list[BlankSlot] = []
        row = QHBoxLayout(self)
        row.setContentsMargins(0, 2, 0, 2)
        row.setSpacing(0)

        number_label = QLabel(str(number))
        number_label.setFixedWidth(32)
        number_label.setFont(_mono_font())
        number_label.setStyleSheet(f"color: {GameColors.TEXT_MUTED};")
        row.addWidget(number_label)

        for segment in line.segments():
            if isinstance(segment, int):
                slot = BlankSlot(segment)
                self.slots.append(slot)
                row.addWidget(slot)
            else:
                text = QLabel(segment)
                text.setFont(_mono_font())
                text.setTextFormat(Qt.PlainText)
                text.setStyleSheet(f"color: {GameColors.TEXT_PRIMARY};")
                row.addWidget(text)
        row.addStretch(1)

        if line.is_editable:
            self.setStyleSheet("background: rgba(108, 99, 255, 0.08); border-radius: 4px;")


class HeartsLabel(QLabel):
    """Row of filled / empty hearts."""

    def __init__(self, total: int, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._total = total
        self.setStyleSheet("font-size: 18px;")
        self.set_lives(total)

    def set_lives(self, lives: int) -> None:
        self.setText("".join("❤️" if i < lives else "🖤" for i in range(self._total)))
