# tests/test_scheduler.py
"""
Unit tests for the debounced trigger scheduler.
"""

import time
import unittest
from unittest.mock import MagicMock, patch

try:
    from PySide6.QtCore import QCoreApplication
    QT_AVAILABLE = True
except ImportError:
    QT_AVAILABLE = False


@unittest.skipUnless(QT_AVAILABLE, "PySide6 not available")
class TestDebounceSchedulerTimer(unittest.TestCase):
    """The scheduler re-arms one timer instead of stacking new ones."""

    @classmethod
    def setUpClass(cls):
        from fakes import ensure_app
        cls.app = ensure_app()

    @patch("simulation.scheduler.QTimer")
    def test_single_timer_is_rearmed(self, MockQTimer):
        from simulation.scheduler import DebounceScheduler
        mock_timer = MagicMock()
        MockQTimer.return_value = mock_timer

        scheduler = DebounceScheduler(200)
        scheduler.set_active(True)
        for _ in range(5):
            scheduler.trigger()

        MockQTimer.assert_called_once()
        mock_timer.setSingleShot.assert_called_once_with(True)
        self.assertEqual(mock_timer.start.call_count, 5)
        mock_timer.start.assert_called_with(200)

    @patch("simulation.scheduler.QTimer")
    def test_inactive_ignores_triggers(self, MockQTimer):
        from simulation.scheduler import DebounceScheduler
        mock_timer = MagicMock()
        MockQTimer.return_value = mock_timer

        scheduler = DebounceScheduler(200)
        self.assertFalse(scheduler.trigger())
        mock_timer.start.assert_not_called()

    @patch("simulation.scheduler.QTimer")
    def test_deactivate_cancels(self, MockQTimer):
        from simulation.scheduler import DebounceScheduler
        mock_timer = MagicMock()
        MockQTimer.return_value = mock_timer

        scheduler = DebounceScheduler(200)
        scheduler.set_active(True)
        scheduler.trigger()
        scheduler.set_active(False)
        mock_timer.stop.assert_called()

    @patch("simulation.scheduler.QTimer")
    def test_timeout_fires_once(self, MockQTimer):
        from simulation.scheduler import DebounceScheduler
        MockQTimer.return_value = MagicMock()

        scheduler = DebounceScheduler(200)
        fired = []
        scheduler.fired.connect(lambda: fired.append(True))
        scheduler.set_active(True)
        scheduler.trigger()
        scheduler._on_timeout()
        self.assertEqual(len(fired), 1)

        # A timeout that arrives after deactivation is dropped
        scheduler.set_active(False)
        scheduler._on_timeout()
        self.assertEqual(len(fired), 1)


@unittest.skipUnless(QT_AVAILABLE, "PySide6 not available")
class TestDebounceSchedulerEventLoop(unittest.TestCase):
    """Debounce behaviour with a real timer."""

    @classmethod
    def setUpClass(cls):
        from fakes import ensure_app
        cls.app = ensure_app()

    def test_burst_collapses_into_one_run(self):
        from simulation.scheduler import DebounceScheduler
        from fakes import wait_until

        scheduler = DebounceScheduler(20)
        fired = []
        scheduler.fired.connect(lambda: fired.append(True))
        scheduler.set_active(True)

        for _ in range(10):
            scheduler.trigger()
        self.assertTrue(scheduler.is_pending)

        self.assertTrue(wait_until(lambda: len(fired) > 0, 2000))
        # Give a second, stacked timer the chance to show up
        deadline = time.monotonic() + 0.1
        while time.monotonic() < deadline:
            QCoreApplication.processEvents()
            time.sleep(0.005)
        self.assertEqual(len(fired), 1)
        self.assertFalse(scheduler.is_pending)


if __name__ == "__main__":
    unittest.main()
