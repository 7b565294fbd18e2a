# tests/test_electrical.py
"""
Unit tests for the electrical query layer.
"""

import math
import unittest

from simulation.electrical import (
    ElectricalQuery, TransistorLeg, UnknownDeviceTypeError,
    TransistorLegError, InvalidPropertyError, DeviceQueryError
)
from simulation.netlist_index import build_session_index
from fakes import FakeEngine, make_part


RESISTOR_SPICE = "R{instanceTitle} {net connector0} {net connector1} {resistance}"
LED_SPICE = "D{instanceTitle} {net connector0} {net connector1} LED_RED"


class TestVoltage(unittest.TestCase):
    """Tests for node voltage queries."""

    def setUp(self):
        self.r1 = make_part(1, "R1", "Resistor", RESISTOR_SPICE, pins=["pin 1", "pin 2"])
        self.r2 = make_part(2, "R2", "Resistor", RESISTOR_SPICE, pins=["pin 1", "pin 2"])
        nets = [
            [self.r2.pins[1]],
            [self.r1.pins[0]],
            [self.r1.pins[1], self.r2.pins[0]],
        ]
        self.engine = FakeEngine(vectors={"v(1)": 9.0, "v(2)": 4.5, "v(0)": 123.0})
        self.query = ElectricalQuery(self.engine, build_session_index(nets, [self.r1, self.r2], []))

    def test_difference(self):
        self.assertAlmostEqual(self.query.voltage(self.r1.pins[0], self.r1.pins[1]), 4.5)
        self.assertAlmostEqual(self.query.voltage(self.r1.pins[1], self.r1.pins[0]), -4.5)

    def test_ground_is_not_queried(self):
        """Net 0 is always 0 V, whatever the engine says"""
        self.assertAlmostEqual(self.query.voltage(self.r2.pins[0], self.r2.pins[1]), 4.5)
        self.assertNotIn("v(0)", self.engine.queries)

    def test_same_net_is_zero(self):
        self.assertEqual(self.query.voltage(self.r1.pins[1], self.r2.pins[0]), 0.0)
        self.assertEqual(self.engine.queries, [])

    def test_missing_vector_defaults_to_zero(self):
        self.engine.vectors.clear()
        self.assertEqual(self.query.voltage(self.r1.pins[0], self.r2.pins[1]), 0.0)
        self.assertEqual(self.query.vector_value("v(7)", default=-1.0), -1.0)


class TestDeviceTypeCode(unittest.TestCase):
    """Tests for the type letter taken from the spice template."""

    def setUp(self):
        self.query = ElectricalQuery(FakeEngine(), build_session_index([], [], []))

    def test_letter_before_placeholder(self):
        r1 = make_part(1, "R1", "Resistor", RESISTOR_SPICE)
        self.assertEqual(self.query.device_type_code(r1), "r")
        led = make_part(2, "LED1", "LED", LED_SPICE)
        self.assertEqual(self.query.device_type_code(led), "d")

    def test_no_placeholder(self):
        part = make_part(3, "U1", "Resistor", "R1 1 2 100")
        with self.assertRaises(UnknownDeviceTypeError):
            self.query.device_type_code(part)

    def test_placeholder_at_start(self):
        part = make_part(4, "U1", "Resistor", "{instanceTitle} 1 2")
        with self.assertRaises(UnknownDeviceTypeError):
            self.query.device_type_code(part)

    def test_cached_per_instance(self):
        r1 = make_part(1, "R1", "Resistor", RESISTOR_SPICE)
        self.assertEqual(self.query.device_type_code(r1), "r")
        r1.spice = ""
        self.assertEqual(self.query.device_type_code(r1), "r")


class TestCurrentAndPower(unittest.TestCase):
    """Tests for current and power vector names."""

    def setUp(self):
        self.engine = FakeEngine(vectors={
            "@r1[i]": 0.01,
            "@r1[p]": 0.3,
            "@dled1[id]": 0.015,
            "@dled1[p]": 0.03,
            "@rpot1a[p]": 0.1,
            "@q1[ic]": 0.002,
        })
        self.query = ElectricalQuery(self.engine, build_session_index([], [], []))

    def test_title_already_starts_with_code(self):
        r1 = make_part(1, "R1", "Resistor", RESISTOR_SPICE)
        self.assertAlmostEqual(self.query.current(r1), 0.01)
        self.assertAlmostEqual(self.query.power(r1), 0.3)
        self.assertEqual(self.engine.queries, ["@r1[i]", "@r1[p]"])

    def test_code_is_prepended(self):
        led = make_part(2, "LED1", "LED", LED_SPICE)
        self.assertAlmostEqual(self.query.current(led), 0.015)
        self.assertAlmostEqual(self.query.power(led), 0.03)

    def test_subpart(self):
        pot = make_part(3, "Pot1", "Potentiometer", "R{instanceTitle}A 1 2 5k")
        self.assertAlmostEqual(self.query.power(pot, "A"), 0.1)
        self.assertEqual(self.query.power(pot, "B"), 0.0)
        self.assertEqual(self.engine.queries[-1], "@rpot1b[p]")

    def test_unknown_type_code(self):
        bjt = make_part(4, "Q1", "Transistor", "Q{instanceTitle} 1 2 3 NPN")
        with self.assertRaises(UnknownDeviceTypeError):
            self.query.current(bjt)

    def test_power_with_any_code(self):
        bjt = make_part(4, "Q1", "Transistor", "Q{instanceTitle} 1 2 3 NPN")
        self.assertEqual(self.query.power(bjt), 0.0)
        self.assertEqual(self.engine.queries, ["@q1[p]"])

    def test_transistor_leg(self):
        self.assertAlmostEqual(self.query.transistor_leg_current("Q1", TransistorLeg.COLLECTOR), 0.002)
        self.query.transistor_leg_current("q1", TransistorLeg.BASE)
        self.query.transistor_leg_current("q1", TransistorLeg.EMITTER)
        self.assertEqual(self.engine.queries[-2:], ["@q1[ib]", "@q1[ie]"])

    def test_transistor_leg_errors(self):
        with self.assertRaises(TransistorLegError):
            self.query.transistor_leg_current("r1", TransistorLeg.BASE)
        with self.assertRaises(TransistorLegError):
            self.query.transistor_leg_current("q1", "gate")

    def test_query_errors_share_a_base(self):
        self.assertTrue(issubclass(UnknownDeviceTypeError, DeviceQueryError))
        self.assertTrue(issubclass(TransistorLegError, DeviceQueryError))
        self.assertTrue(issubclass(InvalidPropertyError, DeviceQueryError))


class TestMaxPropertyValue(unittest.TestCase):
    """Tests for rated property lookup."""

    def setUp(self):
        self.query = ElectricalQuery(FakeEngine(), build_session_index([], [], []))

    def test_parsed_with_symbol(self):
        r1 = make_part(1, "R1", "Resistor", properties={"power": ("0.25W", "W")})
        self.assertAlmostEqual(self.query.max_property_value(r1, "power"), 0.25)

    def test_prefix(self):
        led = make_part(2, "LED1", "LED", properties={"current": ("20mA", "A")})
        self.assertAlmostEqual(self.query.max_property_value(led, "current"), 0.02)

    def test_unset_is_unlimited(self):
        r1 = make_part(1, "R1", "Resistor", properties={"power": ""})
        self.assertEqual(self.query.max_property_value(r1, "power"), math.inf)
        self.assertEqual(self.query.max_property_value(r1, "voltage"), math.inf)

    def test_invalid_value(self):
        r1 = make_part(1, "R1", "Resistor", properties={"power": "a lot"})
        with self.assertRaises(InvalidPropertyError):
            self.query.max_property_value(r1, "power")


if __name__ == "__main__":
    unittest.main()
