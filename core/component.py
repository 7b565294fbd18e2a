# core/component.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Dict, Any, Optional, Union, Tuple

from core.device_kind import DeviceKind, classify_family
from core.pin import Pin


class View(Enum):
    """The two linked presentations of the same circuit."""
    BREADBOARD = "breadboard"
    SCHEMATIC = "schematic"

    @property
    def other(self) -> "View":
        return View.SCHEMATIC if self is View.BREADBOARD else View.BREADBOARD


class ItemRole(Enum):
    """What a scene item is, as far as dimming is concerned."""
    PART = "part"
    WIRE = "wire"
    CONNECTOR = "connector"
    LABEL = "label"
    NOTE = "note"
    LED_LIGHT = "led_light"
    SYMBOL = "symbol"
    BOARD = "board"
    RULER = "ruler"

    @property
    def is_structural(self) -> bool:
        """Connective and decorative items are never dimmed individually."""
        return self is not ItemRole.PART


@dataclass(frozen=True)
class PropertyValue:
    """Textual property value plus the unit symbol of its definition."""
    value: str
    symbol: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.value.strip()


PropertyInput = Union[str, PropertyValue, Tuple[str, str]]


class ComponentInstance:
    """
    One view of a logical circuit element.

    The same part exists once per view; both views share ``instance_id`` and
    ``title``. The ``spice`` template is the solver line of the part, where
    ``{instanceTitle}`` is replaced by the title when the netlist is built.
    """

    TITLE_PLACEHOLDER = "{instanceTitle}"

    def __init__(self, instance_id: Any, title: str, family: str = "",
                 spice: str = "", pins: Optional[List[Pin]] = None,
                 properties: Optional[Dict[str, PropertyInput]] = None,
                 view: View = View.SCHEMATIC, role: ItemRole = ItemRole.PART):
        self.instance_id = instance_id
        self.title = title
        self.family = family
        self.spice = spice
        self.view = view
        self.role = role
        self.kind: DeviceKind = classify_family(family)

        self.pins: List[Pin] = []
        for pin in pins or []:
            self.add_pin(pin)

        self.properties: Dict[str, PropertyValue] = {}
        for name, value in (properties or {}).items():
            self.update_property(name, value)

    def add_pin(self, pin: Pin) -> None:
        """Add a new pin to the component."""
        pin.owner = self
        self.pins.append(pin)

    def update_property(self, name: str, value: PropertyInput) -> None:
        """Update a single property; names are case-insensitive."""
        if isinstance(value, tuple):
            value = PropertyValue(*value)
        elif not isinstance(value, PropertyValue):
            value = PropertyValue(str(value))
        self.properties[name.lower()] = value

    def get_property(self, name: str) -> str:
        """Return the textual value of a property, or an empty string."""
        prop = self.properties.get(name.lower())
        return prop.value if prop else ""

    def property_value(self, name: str) -> Optional[PropertyValue]:
        return self.properties.get(name.lower())

    def pin_named(self, *names: str) -> Optional[Pin]:
        """Return the first pin whose shared name is one of ``names``."""
        for pin in self.pins:
            if pin.matches_name(*names):
                return pin
        return None

    def pin_described(self, *descriptions: str) -> Optional[Pin]:
        """Return the first pin whose shared description is one of ``descriptions``."""
        for pin in self.pins:
            if pin.matches_description(*descriptions):
                return pin
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.instance_id,
            "title": self.title,
            "family": self.family,
            "view": self.view.value,
            "properties": {k: v.value for k, v in self.properties.items()},
            "pins": [{"name": p.name, "description": p.description} for p in self.pins]
        }

    def __repr__(self) -> str:
        return f"ComponentInstance({self.title!r}, {self.view.value})"
