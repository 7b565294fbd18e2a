# simulation/__init__.py
"""
Simulation package for the live circuit simulator.

This package drives the ngspice engine (via PySpice) for the circuit being
edited and turns its results into diagnostic overlays.
"""

from simulation.units import to_engineering, from_engineering

from simulation.interfaces import (
    Overlay,
    OverlayKind,
    NetlistSnapshot,
    NetlistBuilder,
    PresentationSurface,
    Engine
)

from simulation.netlist_index import SessionIndex, build_session_index

from simulation.engine import (
    NgSpiceEngine,
    SimulatorError,
    EngineInitError,
    NetlistLoadError,
    EngineTimeout,
    FatalSolveError
)

from simulation.electrical import (
    ElectricalQuery,
    TransistorLeg,
    DeviceQueryError,
    UnknownDeviceTypeError,
    MissingPinError,
    TransistorLegError,
    InvalidPropertyError
)

from simulation.diagnostics import (
    DiagnosticVerdict,
    diagnose,
    format_display,
    BATTERY_SAFETY_MARGIN
)

from simulation.config import SimulationConfig, SimulatorSettings
from simulation.scheduler import DebounceScheduler
from simulation.orchestrator import Simulator, SessionState, SimulationSession

__all__ = [
    # Units
    "to_engineering",
    "from_engineering",
    # Interfaces
    "Overlay",
    "OverlayKind",
    "NetlistSnapshot",
    "NetlistBuilder",
    "PresentationSurface",
    "Engine",
    # Index
    "SessionIndex",
    "build_session_index",
    # Engine
    "NgSpiceEngine",
    "SimulatorError",
    "EngineInitError",
    "NetlistLoadError",
    "EngineTimeout",
    "FatalSolveError",
    # Electrical queries
    "ElectricalQuery",
    "TransistorLeg",
    "DeviceQueryError",
    "UnknownDeviceTypeError",
    "MissingPinError",
    "TransistorLegError",
    "InvalidPropertyError",
    # Diagnostics
    "DiagnosticVerdict",
    "diagnose",
    "format_display",
    "BATTERY_SAFETY_MARGIN",
    # Orchestration
    "SimulationConfig",
    "SimulatorSettings",
    "DebounceScheduler",
    "Simulator",
    "SessionState",
    "SimulationSession"
]
