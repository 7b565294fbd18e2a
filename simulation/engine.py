# simulation/engine.py
"""
Engine: The analog solver behind the simulator, via PySpice/ngspice.

This module provides the session-level error taxonomy and the ngspice
shared-library implementation of the Engine interface. The simulator only
talks to the engine through commands, a circuit load, the output log and
named result vectors.
"""

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SimulatorError(Exception):
    """Base exception for session-level simulator errors."""

    title = "Simulator Error"

    def __init__(self, message: str, netlist: str = "", engine_log: str = ""):
        self.netlist = netlist
        self.engine_log = engine_log
        super().__init__(message)

    def user_message(self) -> str:
        """Message shown to the user: explanation, engine log and netlist."""
        text = str(self)
        if self.engine_log:
            text += f"\n\nErrors:\n{self.engine_log}"
        if self.netlist:
            text += f"\n\nNetlist:\n{self.netlist}"
        return text


class EngineInitError(SimulatorError):
    """Raised when the engine cannot be created or initialised."""
    pass


class NetlistLoadError(SimulatorError):
    """Raised when the engine rejects the submitted netlist."""
    pass


class EngineTimeout(SimulatorError):
    """Raised when the background run does not finish in time."""

    def __init__(self, timeout_ms: int, netlist: str = "", engine_log: str = ""):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"The spice simulator did not finish after {timeout_ms} ms. Aborting simulation.",
            netlist, engine_log
        )


class FatalSolveError(SimulatorError):
    """Raised when the engine reports an error after the run."""
    pass


class NgSpiceEngine:
    """
    Engine implementation on top of PySpice's ngspice shared library.

    The PySpice instance is created lazily by ``init()`` and reused for
    every later session. PySpice clears its output buffers on each command,
    so this class keeps its own log, which only ``clear_log()`` empties.
    """

    POLL_INTERVAL = 0.001  # seconds between background-run checks

    def __init__(self, ngspice_id: int = 0):
        self._ngspice_id = ngspice_id
        self._ngspice = None
        self._stdout: List[str] = []
        self._stderr: List[str] = []
        self._error = False
        self._watch_stop = threading.Event()
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._ngspice is not None

    def init(self) -> None:
        """
        Creates the shared ngspice instance if it does not exist yet.

        Raises:
            EngineInitError: If PySpice or the ngspice library cannot be loaded.
        """
        if self._ngspice is not None:
            return
        try:
            from PySpice.Spice.NgSpice.Shared import NgSpiceShared
            self._ngspice = NgSpiceShared.new_instance(ngspice_id=self._ngspice_id)
        except ImportError as e:
            raise EngineInitError(
                "PySpice is not installed. Please install it:\n  pip install PySpice"
            ) from e
        except OSError as e:
            raise EngineInitError(
                "The ngspice shared library could not be loaded.\n"
                "  On Ubuntu/Debian:  sudo apt install libngspice0\n"
                "  On macOS:  brew install ngspice\n"
                "  On Windows: Download from ngspice.sourceforge.io"
            ) from e
        except Exception as e:
            # PySpice raises e.g. NameError for an unsupported libngspice version
            raise EngineInitError(f"ngspice could not be started: {e}") from e
        logger.info("ngspice instance %d created", self._ngspice_id)

    def _require(self):
        if self._ngspice is None:
            raise EngineInitError("The simulator engine has not been initialised.")
        return self._ngspice

    def _collect_output(self) -> None:
        """Moves PySpice's buffered output into this engine's log."""
        ngspice = self._require()
        with self._lock:
            stdout = ngspice.stdout
            stderr = ngspice.stderr
            ngspice.clear_output()
            if stdout:
                self._stdout.append(stdout)
            if stderr:
                self._stderr.append(stderr)
                if any(line.lower().startswith("error") for line in stderr.splitlines()):
                    self._error = True

    def clear_log(self) -> None:
        with self._lock:
            self._stdout = []
            self._stderr = []
            self._error = False
            if self._ngspice is not None:
                self._ngspice.clear_output()

    def command(self, text: str) -> None:
        """Executes an ngspice command; failures are recorded in the log."""
        from PySpice.Spice.NgSpice.Shared import NgSpiceCommandError

        ngspice = self._require()
        logger.debug("ngspice command: %s", text)
        try:
            ngspice.exec_command(text)
        except NgSpiceCommandError as e:
            logger.warning("ngspice command %r failed: %s", text, e)
            self._error = True
        finally:
            self._collect_output()

    def load_circuit(self, text: str) -> None:
        """
        Loads a netlist into ngspice.

        Raises:
            NetlistLoadError: If ngspice refuses the circuit outright.
        """
        from PySpice.Spice.NgSpice.Shared import NgSpiceCircuitError

        ngspice = self._require()
        try:
            ngspice.load_circuit(text)
        except NgSpiceCircuitError as e:
            self._collect_output()
            raise NetlistLoadError(
                "The simulator could not load the netlist.",
                netlist=text,
                engine_log=self.get_log(False) + self.get_log(True)
            ) from e
        self._collect_output()

    def get_log(self, stderr: bool) -> str:
        if self._ngspice is not None:
            self._collect_output()
        with self._lock:
            return "\n".join(self._stderr if stderr else self._stdout)

    def error_occurred(self) -> bool:
        return self._error

    def is_background_running(self) -> bool:
        ngspice = self._require()
        return bool(ngspice._ngspice_shared.ngSpice_running())

    def run_in_background(self, on_finished: Callable[[], None]) -> None:
        """
        Starts ``bg_run`` and calls ``on_finished`` from a watcher thread
        once ngspice reports the background thread has stopped.
        """
        self._watch_stop.clear()
        self.command("bg_run")
        watcher = threading.Thread(
            target=self._watch_background_run,
            args=(on_finished,),
            name="ngspice-bg-watch",
            daemon=True
        )
        watcher.start()

    def _watch_background_run(self, on_finished: Callable[[], None]) -> None:
        while not self._watch_stop.is_set():
            if not self.is_background_running():
                on_finished()
                return
            self._watch_stop.wait(self.POLL_INTERVAL)
        logger.debug("Background run watcher stopped before completion")

    def halt(self) -> None:
        """Stops the background run; the watcher exits without reporting."""
        self._watch_stop.set()
        self.command("bg_halt")

    def vector_values(self, name: str) -> List[float]:
        """
        Returns the samples of a result vector, or an empty list.

        Operating-point vectors have a single sample and ngspice prints them
        as ``name = value``.
        """
        from PySpice.Spice.NgSpice.Shared import NgSpiceCommandError

        ngspice = self._require()
        try:
            output = ngspice.exec_command(f"print {name}")
        except NgSpiceCommandError:
            return []
        finally:
            ngspice.clear_output()
        return parse_print_output(output, name)


def parse_print_output(output: str, name: Optional[str] = None) -> List[float]:
    """Parses ``name = value`` lines printed by ngspice."""
    values: List[float] = []
    for line in output.split("\n"):
        line = line.strip()
        if "=" not in line:
            continue
        left, _, right = line.partition("=")
        if name is not None and left.strip().lower() != name.lower():
            continue
        try:
            values.append(float(right.strip().split()[0]))
        except (ValueError, IndexError):
            continue
    return values
