# core/device_kind.py
from enum import Enum, auto
from typing import Tuple


class DeviceKind(Enum):
    """Device families that have a diagnostic rule."""
    CAPACITOR = auto()
    DIODE = auto()
    LED = auto()
    RESISTOR = auto()
    MULTIMETER = auto()
    DC_MOTOR = auto()
    IR_SENSOR = auto()
    BATTERY = auto()
    POTENTIOMETER = auto()
    UNKNOWN = auto()


# Checked in order; the first family substring that matches wins.
FAMILY_PATTERNS: Tuple[Tuple[DeviceKind, Tuple[str, ...]], ...] = (
    (DeviceKind.CAPACITOR, ("capacitor",)),
    (DeviceKind.DIODE, ("diode",)),
    (DeviceKind.LED, ("led",)),
    (DeviceKind.RESISTOR, ("resistor",)),
    (DeviceKind.MULTIMETER, ("multimeter",)),
    (DeviceKind.DC_MOTOR, ("dc motor",)),
    (DeviceKind.IR_SENSOR, ("line sensor", "distance sensor")),
    (DeviceKind.BATTERY, ("battery", "voltage source")),
    (DeviceKind.POTENTIOMETER, ("potentiometer", "sparkfun trimpot")),
)


def classify_family(family: str) -> DeviceKind:
    """Maps a free-text family name to a DeviceKind."""
    family = family.lower()
    for kind, patterns in FAMILY_PATTERNS:
        if any(pattern in family for pattern in patterns):
            return kind
    return DeviceKind.UNKNOWN
