from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QTimer

from codequest.core.scheduler import Scheduler


class QtScheduler(Scheduler):
    """Schedules callbacks on the running Qt event loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        QTimer.singleShot(max(0, int(delay_ms)), callback)
