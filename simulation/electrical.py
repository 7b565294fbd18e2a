# simulation/electrical.py
"""
Electrical Query Layer: Voltages, currents and power from solver vectors.

Translates pins, instances and subparts into ngspice vector names and reads
their first sample. Query failures are raised as DeviceQueryError subclasses
so that a caller can skip the affected instance and carry on.
"""

import logging
import math
from enum import Enum
from typing import Dict

from core.component import ComponentInstance
from core.net import Net
from core.pin import Pin
from simulation.interfaces import Engine
from simulation.netlist_index import SessionIndex
from simulation.units import from_engineering

logger = logging.getLogger(__name__)


class DeviceQueryError(Exception):
    """Base exception for a failed per-instance query."""

    def __init__(self, title: str, message: str):
        self.title = title
        super().__init__(f"{title}: {message}")


class UnknownDeviceTypeError(DeviceQueryError):
    """Raised when the solver type code of an instance is missing or unsupported."""
    pass


class MissingPinError(DeviceQueryError):
    """Raised when a required role pin does not exist."""
    pass


class TransistorLegError(DeviceQueryError):
    """Raised for an unsupported leg or a name that is not a transistor."""
    pass


class InvalidPropertyError(DeviceQueryError):
    """Raised when a rated value cannot be parsed."""
    pass


class TransistorLeg(Enum):
    """Terminals of a bipolar transistor."""
    BASE = "ib"
    COLLECTOR = "ic"
    EMITTER = "ie"


# Solver type codes whose current vector is "<name>[i]"
LINEAR_TYPE_CODES = frozenset("rclvefghi")
DIODE_TYPE_CODE = "d"
TRANSISTOR_TYPE_CODE = "q"


class ElectricalQuery:
    """
    Read-only measurements of one finished solve.

    Args:
        engine: The engine holding the solver results.
        index: The session index that maps pins to nets.
    """

    def __init__(self, engine: Engine, index: SessionIndex):
        self.engine = engine
        self.index = index
        self._type_codes: Dict[int, str] = {}

    def vector_value(self, name: str, default: float = 0.0) -> float:
        """First sample of a vector, or ``default`` if it is absent."""
        values = self.engine.vector_values(name)
        if not values:
            return default
        return values[0]

    def net_voltage(self, net_index: int) -> float:
        if net_index == Net.GROUND:
            return 0.0
        return self.vector_value(Net.voltage_vector(net_index))

    def voltage(self, a: Pin, b: Pin) -> float:
        """Potential difference V(a) - V(b)."""
        net_a = self.index.net_of(a)
        net_b = self.index.net_of(b)
        if net_a == net_b:
            return 0.0
        return self.net_voltage(net_a) - self.net_voltage(net_b)

    def device_type_code(self, instance: ComponentInstance) -> str:
        """
        Returns the solver type letter of an instance.

        The letter is the character right before the title placeholder of the
        spice template ("R{instanceTitle} ..." -> "r").

        Raises:
            UnknownDeviceTypeError: If the template has no placeholder or
                nothing precedes it.
        """
        key = id(instance)
        if key in self._type_codes:
            return self._type_codes[key]

        position = instance.spice.find(ComponentInstance.TITLE_PLACEHOLDER)
        if position <= 0:
            raise UnknownDeviceTypeError(
                instance.title, "the spice line of the part has no type code"
            )
        code = instance.spice[position - 1].lower()
        self._type_codes[key] = code
        return code

    def signal_name(self, instance: ComponentInstance, subpart: str = "") -> str:
        """
        Solver name of an instance (or one of its subparts) prefixed with "@".

        The type letter is only prepended when the title does not already
        start with it (the editor calls an LED "LED1", the solver "DLED1").
        """
        code = self.device_type_code(instance)
        name = instance.title.lower() + subpart.lower()
        if name.startswith(code):
            return f"@{name}"
        return f"@{code}{name}"

    def current(self, instance: ComponentInstance, subpart: str = "") -> float:
        """
        Current through a two-terminal device.

        Raises:
            UnknownDeviceTypeError: If the type code has no current vector.
        """
        code = self.device_type_code(instance)
        if code == DIODE_TYPE_CODE:
            suffix = "[id]"
        elif code in LINEAR_TYPE_CODES:
            suffix = "[i]"
        else:
            raise UnknownDeviceTypeError(
                instance.title, f"no current vector for type code '{code}'"
            )
        name = self.signal_name(instance, subpart) + suffix
        value = self.vector_value(name)
        logger.debug("%s = %g", name, value)
        return value

    def power(self, instance: ComponentInstance, subpart: str = "") -> float:
        """Power dissipated by a device."""
        name = self.signal_name(instance, subpart) + "[p]"
        value = self.vector_value(name)
        logger.debug("%s = %g", name, value)
        return value

    def transistor_leg_current(self, name: str, leg: TransistorLeg) -> float:
        """
        Current through one leg of a transistor.

        Args:
            name: Solver name of the transistor, e.g. "q1".
            leg: Which terminal to read.

        Raises:
            TransistorLegError: If the name is not a transistor or the leg is
                not supported.
        """
        name = name.lower()
        if not name.startswith(TRANSISTOR_TYPE_CODE):
            raise TransistorLegError(name, "is not a transistor")
        if not isinstance(leg, TransistorLeg):
            raise TransistorLegError(name, f"unsupported leg {leg!r}")
        return self.vector_value(f"@{name}[{leg.value}]")

    def max_property_value(self, instance: ComponentInstance, name: str) -> float:
        """
        Numeric value of a rated property.

        Returns:
            float: The parsed value, or +inf when the property is not set.

        Raises:
            InvalidPropertyError: If the value cannot be parsed.
        """
        prop = instance.property_value(name)
        if prop is None or prop.is_empty:
            return math.inf
        try:
            return from_engineering(prop.value, prop.symbol)
        except ValueError as e:
            raise InvalidPropertyError(instance.title, f"{name}: {e}") from e

