# app/__init__.py
"""
Application package for the live circuit simulator.

This package contains the Qt panel that controls the simulator.
"""

from app.simulator_panel import SimulatorPanel

__all__ = [
    "SimulatorPanel"
]
