# simulation/orchestrator.py
"""
Simulation Orchestrator: Runs live simulation sessions for the editor.

The Simulator owns one session at a time. A session loads the netlist of the
schematic view into the engine, starts the background analysis, dims parts
that are not simulated and, once the engine reports completion, runs the
diagnostic rules and forwards their overlays to the presentation surface.

The wait for the engine never blocks the Qt event loop: completion arrives
as a queued signal and a single-shot timer enforces the deadline.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from PySide6.QtCore import QObject, QTimer, Qt, Signal

from core.component import ComponentInstance, View
from simulation.config import SimulationConfig, SimulatorSettings
from simulation.diagnostics import DiagnosticVerdict, diagnose
from simulation.electrical import ElectricalQuery
from simulation.engine import (
    EngineInitError, EngineTimeout, FatalSolveError, NetlistLoadError, SimulatorError
)
from simulation.interfaces import Engine, NetlistBuilder, PresentationSurface
from simulation.netlist_index import SessionIndex, build_session_index
from simulation.scheduler import DebounceScheduler

logger = logging.getLogger(__name__)

# Log markers. These are heuristics on free-text engine output and can
# both over- and under-trigger.
LOAD_ERROR_STDOUT_MARKER = "error"
LOAD_ERROR_STDERR_MARKER = "warning"
NO_CIRCUIT_MARKER = "there aren't any circuits loaded"

NETLIST_VIEW = View.SCHEMATIC


class SessionState(Enum):
    """States of the simulation session state machine."""
    IDLE = "idle"
    TRIGGERED = "triggered"
    LOADING = "loading"
    RUNNING = "running"
    WAITING = "waiting"
    DIAGNOSING = "diagnosing"
    LOAD_FAILED = "load_failed"
    ABORTED = "aborted"


@dataclass
class SimulationSession:
    """Transient state of one run; never reused by the next one."""
    number: int
    netlist: str
    instances: List[ComponentInstance] = field(default_factory=list)
    index: Optional[SessionIndex] = None
    started: float = field(default_factory=time.monotonic)

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started) * 1000.0

    def is_simulated(self, item: ComponentInstance) -> bool:
        """True for the instances of this run and their counterparts in the other view."""
        if any(instance is item for instance in self.instances):
            return True
        if self.index is None:
            return False
        return any(self.index.counterpart(instance) is item for instance in self.instances)


class Simulator(QObject):
    """
    Debounced live simulator.

    Signals:
        simulation_enabled(bool): The enabled flag changed.
        simulation_started_or_stopped(bool): Simulation mode was started or stopped.
        error_reported(str, str): Title and message of a session-level error.
        state_changed(object): The session state machine moved to a SessionState.
    """

    simulation_enabled = Signal(bool)
    simulation_started_or_stopped = Signal(bool)
    error_reported = Signal(str, str)
    state_changed = Signal(object)

    # Emitted from the engine's thread; delivered queued on ours
    _engine_finished = Signal(int)

    def __init__(self, engine: Engine, netlist_builder: NetlistBuilder,
                 surface: PresentationSurface,
                 config: Optional[SimulationConfig] = None,
                 settings: Optional[SimulatorSettings] = None, parent=None):
        super().__init__(parent)
        self.engine = engine
        self.netlist_builder = netlist_builder
        self.surface = surface
        self.config = config or SimulationConfig()

        self._enabled = settings.enabled if settings is not None else False
        self._simulating = False
        self._state = SessionState.IDLE
        self._session: Optional[SimulationSession] = None
        self._session_count = 0
        self._rerun_pending = False

        self.scheduler = DebounceScheduler(self.config.debounce_ms, self)
        self.scheduler.fired.connect(self._on_debounce_fired)

        self._deadline = QTimer(self)
        self._deadline.setSingleShot(True)
        self._deadline.timeout.connect(self._on_deadline)

        self._engine_finished.connect(self._on_engine_finished, Qt.QueuedConnection)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[SimulationSession]:
        return self._session

    def is_enabled(self) -> bool:
        return self._enabled

    def is_simulating(self) -> bool:
        return self._simulating

    # =========================================================================
    # Mode control
    # =========================================================================

    def enable(self, enabled: bool) -> None:
        """Enables or disables the simulator; disabling clears every overlay."""
        if enabled == self._enabled:
            return
        self._enabled = enabled
        logger.info("Simulator %s", "enabled" if enabled else "disabled")
        self.simulation_enabled.emit(enabled)
        if not enabled:
            self._discard_session()
            self.clear_all_overlays()
            self._set_state(SessionState.IDLE)

    def start_simulation(self) -> None:
        """Enters simulation mode and runs a session right away."""
        self._simulating = True
        self.scheduler.set_active(True)
        self.simulation_started_or_stopped.emit(True)
        self.simulate()

    def stop_simulation(self) -> None:
        """
        Leaves simulation mode.

        Pending triggers are dropped, an in-flight session is discarded (its
        completion is ignored) and all overlays are removed.
        """
        self._simulating = False
        self._rerun_pending = False
        self.scheduler.set_active(False)
        self._discard_session()
        self.clear_all_overlays()
        self._set_state(SessionState.IDLE)
        self.simulation_started_or_stopped.emit(False)

    def trigger_simulation(self) -> None:
        """Requests a run after the debounce delay; ignored outside simulation mode."""
        if not (self._enabled and self._simulating):
            return
        self.scheduler.trigger()
        if self._state is SessionState.IDLE:
            self._set_state(SessionState.TRIGGERED)

    # =========================================================================
    # Session
    # =========================================================================

    def simulate(self) -> None:
        """
        Runs one session up to the point where the engine works in the background.

        Session-level errors never propagate; they are reported through
        ``error_reported``.
        """
        if not (self._enabled and self._simulating):
            return
        if self._session is not None:
            self._rerun_pending = True
            return

        self._set_state(SessionState.LOADING)
        try:
            self.engine.init()
        except EngineInitError as e:
            self._report(e)
            self.stop_simulation()
            return

        self.engine.command("remcirc")
        self.engine.command("reset")
        self.engine.clear_log()

        snapshot = self.netlist_builder.build_netlist(NETLIST_VIEW, self.config.netlist_label)
        self._session_count += 1
        session = SimulationSession(self._session_count, snapshot.netlist, list(snapshot.instances))
        self._session = session
        logger.info("Session %d: loading %d instances", session.number, len(session.instances))

        try:
            self._load(session)
        except NetlistLoadError as e:
            self._session = None
            self._set_state(SessionState.LOAD_FAILED)
            self._report(e)
            self.stop_simulation()
            return

        self.engine.command("listing")
        self._set_state(SessionState.RUNNING)
        self._deadline.start(self.config.timeout_ms)
        number = session.number
        self.engine.run_in_background(lambda: self._engine_finished.emit(number))

        # Work done while the engine runs
        session.index = build_session_index(
            snapshot.nets, session.instances, self.surface.items(NETLIST_VIEW.other)
        )
        self.clear_all_overlays()
        self._dim_unsimulated(session)
        self._set_state(SessionState.WAITING)

    def _load(self, session: SimulationSession) -> None:
        self.engine.load_circuit(session.netlist)
        stdout = self.engine.get_log(False)
        stderr = self.engine.get_log(True)
        if (LOAD_ERROR_STDOUT_MARKER in stdout.lower()
                or LOAD_ERROR_STDERR_MARKER in stderr.lower()):
            raise NetlistLoadError(
                "The simulator gave an error when loading the netlist. "
                "Probably there is a missing or wrong model in a part.",
                netlist=session.netlist,
                engine_log=self._engine_log()
            )

    def _on_engine_finished(self, number: int) -> None:
        session = self._session
        if session is None or session.number != number:
            logger.debug("Ignoring completion of discarded session %d", number)
            return
        self._deadline.stop()

        stderr = self.engine.get_log(True)
        if self.engine.error_occurred() or NO_CIRCUIT_MARKER in stderr.lower():
            self.clear_all_overlays()
            self._report(FatalSolveError(
                "The simulator gave an error while solving the circuit.",
                netlist=session.netlist,
                engine_log=self._engine_log()
            ))
            self._end_session()
            return

        self._set_state(SessionState.DIAGNOSING)
        self._diagnose_all(session)
        logger.info("Session %d finished in %.0f ms", session.number, session.elapsed_ms)
        self._end_session()

    def _on_deadline(self) -> None:
        session = self._session
        if session is None:
            return
        self.engine.halt()
        self._set_state(SessionState.ABORTED)
        self.clear_all_overlays()
        self._report(EngineTimeout(
            self.config.timeout_ms,
            netlist=session.netlist,
            engine_log=self._engine_log()
        ))
        self._end_session()

    def _on_debounce_fired(self) -> None:
        if self._session is not None:
            self._rerun_pending = True
            return
        self.simulate()

    def _end_session(self) -> None:
        self._session = None
        self._set_state(SessionState.IDLE)
        if self._rerun_pending and self._simulating:
            self._rerun_pending = False
            self.trigger_simulation()

    def _discard_session(self) -> None:
        self._deadline.stop()
        if self._session is None:
            return
        if self._state is SessionState.WAITING and self.engine.is_background_running():
            self.engine.halt()
        logger.info("Session %d discarded", self._session.number)
        self._session = None

    # =========================================================================
    # Diagnostics and overlays
    # =========================================================================

    def _diagnose_all(self, session: SimulationSession) -> None:
        query = ElectricalQuery(self.engine, session.index)
        for instance in session.instances:
            counterpart = session.index.counterpart(instance)
            self.surface.clear_overlays(instance)
            if counterpart is None:
                continue
            self.surface.clear_overlays(counterpart)

            verdict = diagnose(instance, query)
            if verdict is not None:
                self._apply_verdict(instance, counterpart, verdict)

    def _apply_verdict(self, instance: ComponentInstance, counterpart: ComponentInstance,
                       verdict: DiagnosticVerdict) -> None:
        for overlay in verdict.overlays:
            self.surface.add_overlay(instance, overlay)
            self.surface.add_overlay(counterpart, overlay)
        if verdict.brightness is not None:
            breadboard = instance if instance.view is View.BREADBOARD else counterpart
            self.surface.set_brightness(breadboard, verdict.brightness)

    def _dim_unsimulated(self, session: SimulationSession) -> None:
        for view in View:
            for item in self.surface.items(view):
                if item.role.is_structural or session.is_simulated(item):
                    continue
                self.surface.set_dimmed(item, True)

    def clear_all_overlays(self) -> None:
        """Removes overlays, effects, dimming and brightness from both views."""
        for view in View:
            for item in self.surface.items(view):
                self.surface.clear_overlays(item)
                self.surface.set_dimmed(item, False)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _engine_log(self) -> str:
        parts = [self.engine.get_log(False), self.engine.get_log(True)]
        return "\n".join(part for part in parts if part)

    def _report(self, error: SimulatorError) -> None:
        logger.error("%s\n%s", error, error.engine_log)
        self.error_reported.emit(error.title, error.user_message())

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.debug("Simulator state %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state)
