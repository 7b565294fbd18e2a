# tests/test_simulator_panel.py
"""
Unit tests for Simulator Panel.
"""

import unittest
from unittest.mock import MagicMock, patch

# Check if we can run GUI tests
try:
    from PySide6.QtWidgets import QApplication
    GUI_AVAILABLE = True
except ImportError:
    GUI_AVAILABLE = False


@unittest.skipUnless(GUI_AVAILABLE, "PySide6 not available")
class TestSimulatorPanel(unittest.TestCase):
    """Tests for SimulatorPanel widget."""

    @classmethod
    def setUpClass(cls):
        """Create QApplication for tests."""
        from fakes import ensure_app
        cls.app = ensure_app()

    def setUp(self):
        from simulation.interfaces import NetlistSnapshot
        from simulation.orchestrator import Simulator
        from fakes import FakeEngine, RecordingSurface, StaticNetlistBuilder, release

        self.engine = FakeEngine()
        self.simulator = Simulator(self.engine, StaticNetlistBuilder(NetlistSnapshot("")),
                                   RecordingSurface())
        self.addCleanup(release, self.simulator)

    def _panel(self, settings=None):
        from app.simulator_panel import SimulatorPanel
        panel = SimulatorPanel(self.simulator, settings)
        self.addCleanup(panel.deleteLater)
        return panel

    def test_import(self):
        """Test that SimulatorPanel can be imported."""
        from app import SimulatorPanel
        self.assertTrue(callable(SimulatorPanel))

    def test_initial_buttons(self):
        panel = self._panel()
        self.assertFalse(panel._enable_check.isChecked())
        self.assertFalse(panel._start_btn.isEnabled())
        self.assertFalse(panel._stop_btn.isEnabled())
        self.assertEqual(panel.status_text(), "Ready")

    def test_enable_checkbox(self):
        settings = MagicMock()
        panel = self._panel(settings)
        panel._enable_check.setChecked(True)

        self.assertTrue(self.simulator.is_enabled())
        self.assertTrue(settings.enabled)
        self.assertTrue(panel._start_btn.isEnabled())

    def test_checkbox_follows_simulator(self):
        panel = self._panel()
        self.simulator.enable(True)
        self.assertTrue(panel._enable_check.isChecked())
        self.simulator.enable(False)
        self.assertFalse(panel._enable_check.isChecked())

    def test_start_and_stop(self):
        panel = self._panel()
        self.simulator.enable(True)

        panel._start_btn.click()
        self.assertTrue(self.simulator.is_simulating())
        self.assertFalse(panel._start_btn.isEnabled())
        self.assertTrue(panel._stop_btn.isEnabled())

        panel._stop_btn.click()
        self.assertFalse(self.simulator.is_simulating())
        self.assertTrue(panel._start_btn.isEnabled())
        self.assertEqual(panel.status_text(), "Stopped")

    def test_status_follows_state(self):
        from simulation.orchestrator import SessionState
        panel = self._panel()
        self.simulator.state_changed.emit(SessionState.LOADING)
        self.assertEqual(panel.status_text(), "Loading netlist...")
        self.simulator.state_changed.emit(SessionState.ABORTED)
        self.assertEqual(panel.status_text(), "Error: Simulation timed out")

    @patch("app.simulator_panel.QMessageBox")
    def test_error_dialog(self, MockMessageBox):
        panel = self._panel()
        self.simulator.error_reported.emit("Simulator Error", "Netlist:\nR1 1 0 1k")

        MockMessageBox.critical.assert_called_once_with(
            panel, "Simulator Error", "Netlist:\nR1 1 0 1k"
        )
        self.assertEqual(panel.get_last_error(), "Netlist:\nR1 1 0 1k")


if __name__ == "__main__":
    unittest.main()
