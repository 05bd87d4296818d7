"""
Car class and setup parameter metadata.

Provides the fixed domain tables used to tag cars with a class and to place
converted setup values on a visual bar (parameter ranges and unit fallbacks).
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Tuple

from .naming import normalize_name


# =============================================================================
# CAR CLASSES
# =============================================================================

class CarCategory(Enum):
    """Coarse car class inferred from the car name."""
    GT3 = "gt3"
    GT4 = "gt4"
    GT2 = "gt2"
    CUP = "cup"
    CHALLENGE = "challenge"
    ST = "st"
    OTHER = "other"


# Tab order in the filter panel
CAR_CATEGORIES: Tuple[CarCategory, ...] = tuple(CarCategory)

DEFAULT_CAR_CATEGORY = CarCategory.GT3


def _is_super_trofeo(value: str) -> bool:
    return " st " in value or value.endswith(" st") or " super trofeo" in value


# Evaluated in order, first match wins
_CATEGORY_RULES: List[Tuple[Callable[[str], bool], CarCategory]] = [
    (lambda value: "gt3" in value, CarCategory.GT3),
    (lambda value: "gt4" in value, CarCategory.GT4),
    (lambda value: "gt2" in value, CarCategory.GT2),
    (lambda value: "cup" in value, CarCategory.CUP),
    (lambda value: "challenge" in value, CarCategory.CHALLENGE),
    (_is_super_trofeo, CarCategory.ST),
]


def classify(car_key: str) -> CarCategory:
    """
    Map a car key to its class.

    Args:
        car_key: Car key (e.g., "lamborghini huracan st evo2")

    Returns:
        The first matching category, or CarCategory.OTHER.
    """
    value = normalize_name(car_key or "")
    for predicate, category in _CATEGORY_RULES:
        if predicate(value):
            return category
    return CarCategory.OTHER


def parse_car_category(value: Optional[str]) -> CarCategory:
    """Validate a requested class, falling back to GT3."""
    try:
        return CarCategory(normalize_name(value or ""))
    except ValueError:
        return DEFAULT_CAR_CATEGORY


# =============================================================================
# PARAMETER RANGES
# =============================================================================

@dataclass(frozen=True)
class ParamRange:
    """Operating range of a setup parameter."""
    min: float
    max: float


PARAM_RANGES: Mapping[str, ParamRange] = MappingProxyType({
    # Tyres
    "PSI": ParamRange(19, 35),
    "Toe": ParamRange(-0.5, 0.5),
    "Camber": ParamRange(-5, 0),
    "Caster": ParamRange(6, 16),
    # Electronics
    "TC": ParamRange(0, 12),
    "ABS": ParamRange(0, 12),
    "ECUMap": ParamRange(1, 12),
    "TC2": ParamRange(0, 12),
    # Brakes / mechanical
    "Front": ParamRange(0, 6),
    "Rear": ParamRange(0, 6),
    "Antiroll Bar": ParamRange(0, 49),
    "Brake Power": ParamRange(80, 100),
    "Brake Bias": ParamRange(45, 70),
    "Steer Ratio": ParamRange(8, 20),
    "Wheel Rate": ParamRange(20000, 300000),
    "Bumpstop Rate": ParamRange(0, 2400),
    "Bumpstop Range": ParamRange(0, 60),
    "Preload": ParamRange(0, 400),
    # Dampers
    "Bump": ParamRange(0, 40),
    "Fast Bump": ParamRange(0, 40),
    "Rebound": ParamRange(0, 40),
    "Fast Rebound": ParamRange(0, 40),
    # Aero
    "Ride Height": ParamRange(40, 130),
    "Ride Height N24": ParamRange(40, 130),
    "Splitter": ParamRange(0, 20),
    "Brake Ducts": ParamRange(0, 6),
    "Rear Wing": ParamRange(0, 20),
})

# Fallback by the unit rendered in the value, first match wins
UNIT_RANGE_RULES: Tuple[Tuple[str, ParamRange], ...] = (
    ("%", ParamRange(0, 100)),
    ("N/m", ParamRange(20000, 300000)),
    (" N", ParamRange(0, 2400)),
    ("°", ParamRange(-5, 5)),
)


def get_param_range(label: str, display_value: str = "") -> Optional[ParamRange]:
    """
    Get the range for a parameter label.

    Labels missing from PARAM_RANGES fall back to a range inferred from the
    unit embedded in the display value.

    Args:
        label: Parameter label (e.g., "Wheel Rate")
        display_value: Formatted value (e.g., "125000 N/m")

    Returns:
        ParamRange or None if neither the label nor the unit is known.
    """
    known = PARAM_RANGES.get(label)
    if known is not None:
        return known

    for unit, fallback in UNIT_RANGE_RULES:
        if unit in display_value:
            return fallback
    return None


# =============================================================================
# LANGUAGES
# =============================================================================

SUPPORTED_LANGS: Tuple[str, ...] = ("en", "it", "es", "de", "fr")
DEFAULT_LANG = "en"


def normalize_lang(value: Optional[str]) -> str:
    """Return a supported language code, defaulting to English."""
    if value in SUPPORTED_LANGS:
        return value
    return DEFAULT_LANG
