# simulation/config.py
"""
Simulator configuration: run parameters and the persisted enable flag.
"""

from dataclasses import dataclass

from PySide6.QtCore import QSettings


@dataclass
class SimulationConfig:
    """Run parameters of the simulator."""
    debounce_ms: int = 200  # quiet period before a triggered run starts
    timeout_ms: int = 3000  # deadline for the background analysis
    netlist_label: str = "Simulator Netlist"

    def __post_init__(self):
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must not be negative, got {self.debounce_ms}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")


class SimulatorSettings:
    """Persisted user settings of the simulator."""

    ENABLED_KEY = "simulatorEnabled"

    def __init__(self, settings: QSettings = None):
        self._settings = settings if settings is not None else QSettings()

    @property
    def enabled(self) -> bool:
        return bool(self._settings.value(self.ENABLED_KEY, False, type=bool))

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._settings.setValue(self.ENABLED_KEY, bool(value))
