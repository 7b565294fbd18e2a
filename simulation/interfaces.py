# simulation/interfaces.py
"""
Collaborator interfaces of the simulator.

The simulator never builds netlists and never draws anything. It consumes
a netlist builder and requests overlays from a presentation surface that
the editor implements.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Protocol, Sequence

from core.component import ComponentInstance, View
from core.pin import Pin


class OverlayKind(Enum):
    """Kinds of diagnostic overlays that can be attached to an item."""
    SMOKE = "smoke"
    ROTATE_CW = "rotate_cw"
    ROTATE_CCW = "rotate_ccw"
    DISPLAY_TEXT = "display_text"


@dataclass(frozen=True)
class Overlay:
    """A single overlay request; ``text`` is only used by DISPLAY_TEXT."""
    kind: OverlayKind
    text: str = ""

    @classmethod
    def smoke(cls) -> "Overlay":
        return cls(OverlayKind.SMOKE)

    @classmethod
    def display(cls, text: str) -> "Overlay":
        return cls(OverlayKind.DISPLAY_TEXT, text)


@dataclass
class NetlistSnapshot:
    """
    What the netlist builder returns for one session.

    Attributes:
        netlist: The circuit description submitted to the engine.
        nets: Pin equivalence classes; the position in the list is the net index.
        instances: The parts that take part in the simulation.
    """
    netlist: str
    nets: List[List[Pin]] = field(default_factory=list)
    instances: List[ComponentInstance] = field(default_factory=list)


class NetlistBuilder(Protocol):
    """Produces the solver netlist for the current state of one view."""

    def build_netlist(self, view: View, label: str) -> NetlistSnapshot:
        ...


class PresentationSurface(Protocol):
    """
    Applies overlay requests to scene items.

    ``items`` returns every item of a view, structural ones included.
    ``clear_overlays`` removes overlays, colour effects and LED brightness.
    """

    def items(self, view: View) -> Iterable[ComponentInstance]:
        ...

    def set_dimmed(self, item: ComponentInstance, dimmed: bool) -> None:
        ...

    def add_overlay(self, item: ComponentInstance, overlay: Overlay) -> None:
        ...

    def set_brightness(self, item: ComponentInstance, ratio: float) -> None:
        ...

    def clear_overlays(self, item: ComponentInstance) -> None:
        ...


class Engine(Protocol):
    """
    Narrow command/query interface of the analog solver.

    Every call is synchronous except the background run started by
    ``run_in_background``, whose end is reported through ``on_finished``
    from the engine's own thread.
    """

    def init(self) -> None:
        ...

    def clear_log(self) -> None:
        ...

    def command(self, text: str) -> None:
        ...

    def load_circuit(self, text: str) -> None:
        ...

    def get_log(self, stderr: bool) -> str:
        ...

    def error_occurred(self) -> bool:
        ...

    def is_background_running(self) -> bool:
        ...

    def run_in_background(self, on_finished) -> None:
        ...

    def halt(self) -> None:
        ...

    def vector_values(self, name: str) -> Sequence[float]:
        ...
