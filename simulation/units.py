# simulation/units.py
"""
Unit Conversion: Engineering-prefixed magnitudes.

Converts between floats and the prefixed text used in part properties
and multimeter readouts ("4.7kΩ" <-> 4700.0).
"""

import math
import re
from typing import Dict, List, Tuple

MICRO = "µ"

# Ordered from the smallest to the largest factor.
PREFIXES: List[Tuple[float, str]] = [
    (1e-12, "p"),
    (1e-9, "n"),
    (1e-6, MICRO),
    (1e-3, "m"),
    (1.0, ""),
    (1e3, "k"),
    (1e6, "M"),
    (1e9, "G"),
    (1e12, "T"),
]

MULTIPLIERS: Dict[str, float] = {prefix: factor for factor, prefix in PREFIXES}
MULTIPLIERS.update({
    "u": 1e-6,
    "μ": 1e-6,  # greek mu
    "K": 1e3,  # multimeter displays use an uppercase kilo
    "meg": 1e6,
})

_VALUE_RE = re.compile(
    r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*((?i:meg)|[pnuµμmkKMGT])?$"
)
_FALLBACK_STRIP_RE = re.compile(r"[^0-9.+\-pnuµμmkKMGT]")


def to_engineering(value: float, unit: str = "", precision: int = 3) -> str:
    """
    Formats a value with a magnitude prefix so that the mantissa is in [1, 1000).

    Args:
        value: The number to format.
        unit: Unit symbol appended after the prefix (e.g. "Ω").
        precision: Number of decimals of the mantissa.

    Returns:
        str: e.g. ``to_engineering(4700.0) == "4.700k"``.
    """
    if value == 0 or not math.isfinite(value):
        return f"{value:.{precision}f}{unit}"

    magnitude = abs(value)
    index = 0
    for i, (factor, _) in enumerate(PREFIXES):
        if magnitude >= factor:
            index = i

    factor, prefix = PREFIXES[index]
    text = f"{value / factor:.{precision}f}"

    # Rounding can push the mantissa to 1000 (999.9996 -> "1000.000")
    if abs(float(text)) >= 1000 and index + 1 < len(PREFIXES):
        factor, prefix = PREFIXES[index + 1]
        text = f"{value / factor:.{precision}f}"

    return f"{text}{prefix}{unit}"


def _parse_prefixed(text: str) -> float:
    match = _VALUE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid value: {text!r}")
    number, prefix = match.groups()
    if prefix is None:
        return float(number)
    if prefix.lower() == "meg":
        prefix = "meg"
    return float(number) * MULTIPLIERS[prefix]


def _keep_first_point(text: str) -> str:
    head, point, tail = text.partition(".")
    return head + point + tail.replace(".", "")


def from_engineering(text: str, symbol: str = "") -> float:
    """
    Parses prefixed text back into a float.

    If ``symbol`` is present in the text it is removed first. When that is
    not enough (unknown or missing symbol) every character other than digits,
    a single decimal point, signs and prefix letters is dropped and the
    remainder is parsed again. The fallback is best effort only.

    Raises:
        ValueError: If no number can be recovered from the text.
    """
    stripped = text.strip()
    if symbol and symbol in stripped:
        stripped = stripped.replace(symbol, "").strip()

    try:
        return _parse_prefixed(stripped)
    except ValueError:
        pass

    cleaned = _keep_first_point(_FALLBACK_STRIP_RE.sub("", stripped))
    try:
        return _parse_prefixed(cleaned)
    except ValueError:
        raise ValueError(f"Invalid value: {text!r}") from None
