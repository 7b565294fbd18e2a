# app/simulator_panel.py
"""
Simulator Panel: UI controls for the live simulator.

This module provides the panel with the enable checkbox, the start/stop
buttons and the session status. It only talks to the Simulator through
its slots and signals.
"""

from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QCheckBox, QMessageBox, QFrame
)

from simulation.config import SimulatorSettings
from simulation.orchestrator import SessionState, Simulator


STATUS_TEXT = {
    SessionState.IDLE: "Ready",
    SessionState.TRIGGERED: "Waiting for edits to settle...",
    SessionState.LOADING: "Loading netlist...",
    SessionState.RUNNING: "Running simulation...",
    SessionState.WAITING: "Running simulation...",
    SessionState.DIAGNOSING: "Checking parts...",
    SessionState.LOAD_FAILED: "Error: Netlist could not be loaded",
    SessionState.ABORTED: "Error: Simulation timed out",
}

STATUS_COLOR = {
    SessionState.LOAD_FAILED: "#FF6B6B",
    SessionState.ABORTED: "#FF6B6B",
}


class SimulatorPanel(QWidget):
    """
    Panel controlling a Simulator.

    Provides controls for:
    - Enabling the simulator (persisted when settings are given)
    - Starting and stopping simulation mode
    - Status display
    """

    def __init__(self, simulator: Simulator, settings: Optional[SimulatorSettings] = None,
                 parent=None):
        super().__init__(parent)
        self.simulator = simulator
        self.settings = settings
        self._last_error: str = ""

        self._setup_ui()
        self._connect_simulator()
        self._update_buttons()

    def _setup_ui(self):
        """Sets up the panel UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(5, 5, 5, 5)

        layout.addWidget(QLabel("<b>Simulator</b>"))

        self._enable_check = QCheckBox("Enable simulator")
        self._enable_check.setChecked(self.simulator.is_enabled())
        self._enable_check.toggled.connect(self._on_enable_toggled)
        layout.addWidget(self._enable_check)

        button_layout = QHBoxLayout()
        self._start_btn = QPushButton("▶ Start")
        self._start_btn.setMinimumHeight(35)
        self._start_btn.setStyleSheet("""
            QPushButton {
                background-color: #4CAF50;
                color: white;
                font-weight: bold;
                border: none;
                border-radius: 4px;
            }
            QPushButton:disabled {
                background-color: #888888;
            }
        """)
        self._start_btn.clicked.connect(self.simulator.start_simulation)
        button_layout.addWidget(self._start_btn)

        self._stop_btn = QPushButton("■ Stop")
        self._stop_btn.setMinimumHeight(35)
        self._stop_btn.clicked.connect(self.simulator.stop_simulation)
        button_layout.addWidget(self._stop_btn)
        layout.addLayout(button_layout)

        self._status_label = QLabel(STATUS_TEXT[SessionState.IDLE])
        self._status_label.setStyleSheet("color: #888888; font-style: italic;")
        layout.addWidget(self._status_label)

        line = QFrame()
        line.setFrameShape(QFrame.HLine)
        line.setFrameShadow(QFrame.Sunken)
        layout.addWidget(line)

        layout.addStretch()

    def _connect_simulator(self):
        self.simulator.simulation_enabled.connect(self._on_simulation_enabled)
        self.simulator.simulation_started_or_stopped.connect(self._on_started_or_stopped)
        self.simulator.state_changed.connect(self._on_state_changed)
        self.simulator.error_reported.connect(self._show_error)

    def _update_buttons(self):
        enabled = self.simulator.is_enabled()
        simulating = self.simulator.is_simulating()
        self._start_btn.setEnabled(enabled and not simulating)
        self._stop_btn.setEnabled(simulating)

    def _on_enable_toggled(self, checked: bool):
        """Handles the enable checkbox."""
        if self.settings is not None:
            self.settings.enabled = checked
        self.simulator.enable(checked)

    def _on_simulation_enabled(self, enabled: bool):
        if self._enable_check.isChecked() != enabled:
            self._enable_check.setChecked(enabled)
        self._update_buttons()

    def _on_started_or_stopped(self, running: bool):
        self._update_buttons()
        if not running:
            self._status_label.setText("Stopped")
            self._status_label.setStyleSheet("color: #888888; font-style: italic;")

    def _on_state_changed(self, state: SessionState):
        """Mirrors the session state in the status label."""
        self._status_label.setText(STATUS_TEXT.get(state, ""))
        color = STATUS_COLOR.get(state, "#4ECDC4")
        self._status_label.setStyleSheet(f"color: {color};")

    def _show_error(self, title: str, message: str):
        """Shows an error message box."""
        self._last_error = message
        QMessageBox.critical(self, title, message)

    def status_text(self) -> str:
        return self._status_label.text()

    def get_last_error(self) -> str:
        """Returns the last reported error message."""
        return self._last_error
