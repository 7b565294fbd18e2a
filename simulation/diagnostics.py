# simulation/diagnostics.py
"""
Diagnostic Rules: Decides which parts are outside their ratings.

Each device kind has one rule. A rule reads measurements through an
ElectricalQuery and returns a DiagnosticVerdict describing the overlays to
request; it never touches the scene or the session itself.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.component import ComponentInstance
from core.device_kind import DeviceKind
from core.pin import Pin
from simulation.electrical import (
    DeviceQueryError, ElectricalQuery, MissingPinError, TransistorLeg
)
from simulation.interfaces import Overlay, OverlayKind
from simulation.units import to_engineering

logger = logging.getLogger(__name__)

BATTERY_SAFETY_MARGIN = 0.1

DISPLAY_ERROR = "ERR"
DISPLAY_OVERLOAD = "OL"
DISPLAY_WIDTH = 5
ZERO_THRESHOLD = 1e-12

VOLTMETER_DC = "voltmeter (dc)"
AMMETER_DC = "ammeter (dc)"
OHMMETER = "ohmmeter"


@dataclass
class DiagnosticVerdict:
    """
    Result of diagnosing one instance.

    Attributes:
        overlays: Overlays for the instance and its counterpart.
        brightness: LED brightness ratio, applied to the breadboard view only.
    """
    overlays: List[Overlay] = field(default_factory=list)
    brightness: Optional[float] = None

    @property
    def smoke(self) -> bool:
        return any(o.kind is OverlayKind.SMOKE for o in self.overlays)

    @property
    def display_text(self) -> Optional[str]:
        for overlay in self.overlays:
            if overlay.kind is OverlayKind.DISPLAY_TEXT:
                return overlay.text
        return None

    def add(self, overlay: Overlay) -> "DiagnosticVerdict":
        self.overlays.append(overlay)
        return self


def smoke_if(condition: bool) -> DiagnosticVerdict:
    verdict = DiagnosticVerdict()
    if condition:
        verdict.add(Overlay.smoke())
    return verdict


# =========================================================================
# Multimeter display
# =========================================================================

def pad_display(text: str) -> str:
    """Left-pads text so that it fills the display; a point takes no cell."""
    cells = len(text.replace(".", ""))
    if cells < DISPLAY_WIDTH:
        text = " " * (DISPLAY_WIDTH - cells) + text
    return text


def _prefix_of(text: str) -> str:
    return text.lstrip("-0123456789.")


def format_display(number: float) -> str:
    """
    Formats a reading for the four-digit multimeter display.

    Examples:
        3.3 -> " 3.300", 4700.0 -> "4.700K", 1e-15 -> " 0.000"
    """
    if not math.isfinite(number):
        return pad_display(DISPLAY_OVERLOAD)
    if abs(number) < ZERO_THRESHOLD:
        number = 0.0
    wide = to_engineering(number, precision=6)
    text = to_engineering(number, precision=max(4 - wide.find("."), 0))
    if _prefix_of(text) != _prefix_of(wide):
        # Rounding carried into the next prefix (999.99996 -> "1.0k"), mantissa is now 1
        text = to_engineering(number, precision=3 if number > 0 else 2)
    return pad_display(text.replace("k", "K"))


def display(text: str) -> DiagnosticVerdict:
    return DiagnosticVerdict([Overlay.display(pad_display(text))])


def display_number(number: float) -> DiagnosticVerdict:
    return DiagnosticVerdict([Overlay.display(format_display(number))])


# =========================================================================
# Role pins
# =========================================================================

def require_named(instance: ComponentInstance, *names: str) -> Pin:
    pin = instance.pin_named(*names)
    if pin is None:
        raise MissingPinError(instance.title, f"no pin named {names[0]!r}")
    return pin


def require_described(instance: ComponentInstance, *descriptions: str) -> Pin:
    pin = instance.pin_described(*descriptions)
    if pin is None:
        raise MissingPinError(instance.title, f"no pin described as {descriptions[0]!r}")
    return pin


# =========================================================================
# Rules
# =========================================================================

def diagnose_diode(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    max_power = query.max_property_value(instance, "power")
    return smoke_if(query.power(instance) > max_power)


def diagnose_led(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    current = query.current(instance)
    max_current = query.max_property_value(instance, "current")
    logger.debug("%s: current %g, max %g", instance.title, current, max_current)
    if current > max_current:
        verdict = smoke_if(True)
        verdict.brightness = 0.0
        return verdict
    return DiagnosticVerdict(brightness=current / max_current if max_current else 0.0)


def diagnose_capacitor(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    positive = require_named(instance, "+")
    negative = require_named(instance, "-")

    max_voltage = query.max_property_value(instance, "voltage")
    voltage = query.voltage(positive, negative)
    logger.debug("%s: voltage %g, max %g", instance.title, voltage, max_voltage)

    if "bidirectional" in instance.family.lower():
        return smoke_if(abs(voltage) > max_voltage)
    # Polarized capacitors are derated and do not tolerate reverse bias
    return smoke_if(voltage > max_voltage / 2 or voltage < 0)


def diagnose_resistor(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    max_power = query.max_property_value(instance, "power")
    power = query.power(instance)
    logger.debug("%s: power %g, max %g", instance.title, power, max_power)
    return smoke_if(power > max_power)


def diagnose_potentiometer(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    max_power = query.max_property_value(instance, "power")
    power = query.power(instance, "A") + query.power(instance, "B")
    return smoke_if(power > max_power)


def diagnose_battery(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    voltage = query.max_property_value(instance, "voltage")
    resistance = query.max_property_value(instance, "internal resistance")
    if resistance == 0:
        max_current = math.inf
    else:
        max_current = voltage / resistance * BATTERY_SAFETY_MARGIN
    current = query.current(instance)
    logger.debug("%s: current %g, max %g", instance.title, current, max_current)
    return smoke_if(abs(current) > max_current)


def diagnose_ir_sensor(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    vcc = require_described(instance, "vcc", "supply voltage")
    gnd = require_described(instance, "gnd", "ground")
    require_described(instance, "out", "output voltage")

    max_voltage = query.max_property_value(instance, "voltage (max)")
    max_output_current = query.max_property_value(instance, "max output current")

    voltage = query.voltage(vcc, gnd)
    if "line sensor" in instance.family.lower():
        # Push-pull output modelled by a transistor
        output_current = query.transistor_leg_current(
            "q" + instance.title.lower(), TransistorLeg.COLLECTOR
        )
    else:
        output_current = query.current(instance, "a")

    return smoke_if(
        voltage > max_voltage or voltage < 0 or abs(output_current) > max_output_current
    )


def diagnose_dc_motor(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    terminal1 = require_named(instance, "pin 1")
    terminal2 = require_named(instance, "pin 2")

    max_voltage = query.max_property_value(instance, "voltage (max)")
    min_voltage = query.max_property_value(instance, "voltage (min)")
    voltage = query.voltage(terminal1, terminal2)

    if abs(voltage) > max_voltage:
        return smoke_if(True)
    verdict = DiagnosticVerdict()
    if abs(voltage) >= min_voltage:
        kind = OverlayKind.ROTATE_CW if voltage > 0 else OverlayKind.ROTATE_CCW
        verdict.add(Overlay(kind))
    return verdict


def diagnose_multimeter(instance: ComponentInstance, query: ElectricalQuery) -> DiagnosticVerdict:
    com = require_named(instance, "com probe")
    v_probe = require_named(instance, "v probe")
    a_probe = require_named(instance, "a probe")

    if com.connected_to_wires() and v_probe.connected_to_wires() and a_probe.connected_to_wires():
        return display(DISPLAY_ERROR)

    variant = instance.get_property("variant").lower()
    if variant == VOLTMETER_DC:
        if a_probe.connected_to_wires():
            return display(DISPLAY_ERROR)
        if com.connected_to_wires() and v_probe.connected_to_wires():
            return display_number(query.voltage(v_probe, com))
        return DiagnosticVerdict()

    if variant == AMMETER_DC:
        if v_probe.connected_to_wires():
            return display(DISPLAY_ERROR)
        return display_number(query.current(instance))

    if variant == OHMMETER:
        if a_probe.connected_to_wires():
            return display(DISPLAY_ERROR)
        voltage = query.voltage(v_probe, com)
        current = query.current(instance)
        if current == 0:
            return display(DISPLAY_OVERLOAD)
        return display_number(abs(voltage / current))

    logger.debug("%s: unknown multimeter variant %r", instance.title, variant)
    return DiagnosticVerdict()


Rule = Callable[[ComponentInstance, ElectricalQuery], DiagnosticVerdict]

RULES: Dict[DeviceKind, Rule] = {
    DeviceKind.CAPACITOR: diagnose_capacitor,
    DeviceKind.DIODE: diagnose_diode,
    DeviceKind.LED: diagnose_led,
    DeviceKind.RESISTOR: diagnose_resistor,
    DeviceKind.MULTIMETER: diagnose_multimeter,
    DeviceKind.DC_MOTOR: diagnose_dc_motor,
    DeviceKind.IR_SENSOR: diagnose_ir_sensor,
    DeviceKind.BATTERY: diagnose_battery,
    DeviceKind.POTENTIOMETER: diagnose_potentiometer,
}


def diagnose(instance: ComponentInstance, query: ElectricalQuery) -> Optional[DiagnosticVerdict]:
    """
    Runs the rule of an instance's device kind.

    Returns:
        The verdict, or None when the kind has no rule, a role pin is missing
        or a measurement failed. A failed query only skips this instance.
    """
    rule = RULES.get(instance.kind)
    if rule is None:
        return None
    try:
        return rule(instance, query)
    except MissingPinError as e:
        logger.debug("No verdict for %s: %s", instance.title, e)
        return None
    except DeviceQueryError as e:
        logger.warning("Skipping diagnosis of %s: %s", instance.title, e)
        return None
