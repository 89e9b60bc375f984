"""Application entry point and setup for the CodeQuest puzzle game."""

import logging
import sys
from pathlib import Path

from PySide6.QtGui import QGuiApplication, QIcon
from PySide6.QtWidgets import QApplication

from codequest.core.progress import ProgressStore
from codequest.core.puzzles import PuzzleRepository
from codequest.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run() -> None:
    """Initialize the application and show the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("CodeQuest")
    app.setApplicationDisplayName("CodeQuest")

    icon_path = Path(__file__).parent / "assets" / "logo.png"
    if icon_path.exists():
        app.setWindowIcon(QIcon(str(icon_path)))

    repository = PuzzleRepository()
    progress_store = ProgressStore()

    window = MainWindow(repository=repository, progress_store=progress_store)
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(min(1100, geometry.width()), min(860, geometry.height()))
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":  # pragma: no cover
    run()
