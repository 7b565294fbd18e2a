# core/pin.py
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from core.component import ComponentInstance


class Pin:
    """
    Represents a connector of one component view.

    The shared name ("+", "pin 1", "com probe") and shared description
    ("VCC", "ground") are identical in every view of the same part and are
    what the diagnostic rules use to find role pins.
    """

    def __init__(self, name: str, description: str = "", wired: bool = False):
        self.name: str = name
        self.description: str = description
        self.wired: bool = wired
        self.owner: Optional['ComponentInstance'] = None

    def connected_to_wires(self) -> bool:
        """Returns True if at least one wire is attached to this pin."""
        return self.wired

    def matches_name(self, *names: str) -> bool:
        """Case-insensitive comparison of the shared name."""
        return self.name.lower() in names

    def matches_description(self, *descriptions: str) -> bool:
        """Case-insensitive comparison of the shared description."""
        return self.description.lower() in descriptions

    def __repr__(self) -> str:
        owner = self.owner.title if self.owner else "?"
        return f"Pin({owner}.{self.name})"
