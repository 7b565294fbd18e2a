# core/net.py
from typing import List, Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from core.pin import Pin


class Net:
    """
    Represents an equivalence class of electrically connected pins.

    The index is the position of the net in the netlist builder's net list
    and is also the solver node name; index 0 is ground.
    """
    GROUND = 0

    def __init__(self, index: int, pins: Iterable['Pin'] = ()):
        self.index = index
        self.pins: List['Pin'] = list(pins)

    @property
    def is_ground(self) -> bool:
        return self.index == self.GROUND

    @staticmethod
    def voltage_vector(index: int) -> str:
        """Name of the solver voltage vector of the net with this index."""
        return f"v({index})"

    def connect(self, pin: 'Pin') -> None:
        """Adds a pin to this net."""
        self.pins.append(pin)

    def __contains__(self, pin: 'Pin') -> bool:
        return any(p is pin for p in self.pins)

    def __len__(self) -> int:
        return len(self.pins)
