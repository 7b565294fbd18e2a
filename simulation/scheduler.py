# simulation/scheduler.py
"""
Debounced Trigger Scheduler: Collapses bursts of edits into one run.
"""

import logging

from PySide6.QtCore import QObject, QTimer, Signal

logger = logging.getLogger(__name__)


class DebounceScheduler(QObject):
    """
    Single-shot timer that is re-armed, never stacked, on every trigger.

    ``fired`` is emitted once no trigger arrived for ``delay_ms``. Triggers
    are ignored while the scheduler is inactive.
    """

    fired = Signal()

    def __init__(self, delay_ms: int = 200, parent=None):
        super().__init__(parent)
        self.delay_ms = delay_ms
        self._active = False
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def is_pending(self) -> bool:
        return self._timer.isActive()

    def set_active(self, active: bool) -> None:
        """Honour or ignore future triggers; deactivating cancels a pending one."""
        self._active = active
        if not active:
            self.cancel()

    def trigger(self) -> bool:
        """
        Re-arms the timer.

        Returns:
            bool: False if the trigger was ignored because the scheduler is inactive.
        """
        if not self._active:
            return False
        # start() on a running timer restarts it
        self._timer.start(self.delay_ms)
        return True

    def cancel(self) -> None:
        self._timer.stop()

    def _on_timeout(self) -> None:
        if self._active:
            logger.debug("Debounce elapsed, firing")
            self.fired.emit()
