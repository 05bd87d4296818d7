"""
Section layout of a setup's converted final values.

Turns the nested final-values mapping returned by the converter into the
fixed set of sections shown on the setup page, each item carrying its
formatted value and bar percentage.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .normalizer import format_value, normalize_to_percent

CORNERS: Tuple[str, ...] = ("LF", "RF", "LR", "RR")

# (display label, key in the final values)
TYRE_FIELDS = [("PSI", "PSI"), ("Toe", "Toe"), ("Camber", "Camber"), ("Caster", "Caster")]
ELECTRONICS_FIELDS = [("TC", "TC"), ("ABS", "ABS"), ("ECUMap", "ECUMap"), ("TC2", "TC2")]
BRAKE_FIELDS = [("Front", "Front"), ("Rear", "Rear")]
MECHANICAL_FRONT_FIELDS = [
    ("Antiroll Bar", "AntirollBar"),
    ("Brake Power", "BrakePower"),
    ("Brake Bias", "BrakeBias"),
    ("Steer Ratio", "SteerRatio"),
]
MECHANICAL_CORNER_FIELDS = [
    ("Wheel Rate", "WheelRate"),
    ("Bumpstop Rate", "BumpstopRate"),
    ("Bumpstop Range", "BumpstopRange"),
]
MECHANICAL_REAR_FIELDS = [("Antiroll Bar", "AntirollBar"), ("Preload", "Preload")]
DAMPER_FIELDS = [
    ("Bump", "Bump"),
    ("Fast Bump", "FastBump"),
    ("Rebound", "Rebound"),
    ("Fast Rebound", "FastRebound"),
]
AERO_FRONT_FIELDS = [
    ("Ride Height", "RideHeight"),
    ("Ride Height N24", "RideHeightN24"),
    ("Splitter", "Splitter"),
    ("Brake Ducts", "BrakeDucts"),
]
AERO_REAR_FIELDS = [
    ("Ride Height", "RideHeight"),
    ("Ride Height N24", "RideHeightN24"),
    ("Rear Wing", "RearWing"),
    ("Brake Ducts", "BrakeDucts"),
]


@dataclass
class DetailItem:
    """One parameter row."""
    label: str
    value: str
    percent: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value, "percent": self.percent}


@dataclass
class DetailGroup:
    """A titled block of rows (a corner, front axle, ...)."""
    name: str
    items: List[DetailItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "items": [item.to_dict() for item in self.items]}


@dataclass
class DetailSection:
    """A top-level card on the setup page."""
    name: str
    groups: List[DetailGroup] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "groups": [group.to_dict() for group in self.groups]}


def as_record(value: Any) -> Optional[Mapping[str, Any]]:
    """Return value if it is a JSON object, else None."""
    if isinstance(value, Mapping):
        return value
    return None


def _group(name: str, values: Optional[Mapping[str, Any]], fields) -> DetailGroup:
    items = []
    for label, key in fields:
        value = format_value(values.get(key) if values else None)
        items.append(DetailItem(label=label, value=value, percent=normalize_to_percent(label, value)))
    return DetailGroup(name=name, items=items)


def _corner_groups(node: Optional[Mapping[str, Any]], fields) -> List[DetailGroup]:
    return [_group(corner, as_record(node.get(corner)) if node else None, fields) for corner in CORNERS]


def build_setup_details(final_values: Any) -> Optional[List[DetailSection]]:
    """
    Lay out converted final values into display sections.

    Args:
        final_values: The converter's final values object.

    Returns:
        Sections in page order, or None if final_values is not an object.
    """
    values = as_record(final_values)
    if values is None:
        return None

    tyres = as_record(values.get("TYRES"))
    electronics = as_record(values.get("ELECTRONICS"))
    # The converter spells the key "BREAKS"
    brakes = as_record(values.get("BREAKS")) or as_record(values.get("BRAKES"))
    mechanical = as_record(values.get("MECHANICAL"))
    dampers = as_record(values.get("DAMPERS"))
    aero = as_record(values.get("AERO"))

    def child(node, key):
        return as_record(node.get(key)) if node else None

    return [
        DetailSection("TYRES", _corner_groups(tyres, TYRE_FIELDS)),
        DetailSection("ELECTRONICS_AND_BRAKES", [
            _group("ELECTRONICS", electronics, ELECTRONICS_FIELDS),
            _group("BRAKES", brakes, BRAKE_FIELDS),
        ]),
        DetailSection("MECHANICAL", [
            _group("FRONT", child(mechanical, "FRONT"), MECHANICAL_FRONT_FIELDS),
            *_corner_groups(mechanical, MECHANICAL_CORNER_FIELDS),
            _group("REAR", child(mechanical, "REAR"), MECHANICAL_REAR_FIELDS),
        ]),
        DetailSection("DAMPERS", _corner_groups(dampers, DAMPER_FIELDS)),
        DetailSection("AERO", [
            _group("FRONT", child(aero, "FRONT"), AERO_FRONT_FIELDS),
            _group("REAR", child(aero, "REAR"), AERO_REAR_FIELDS),
        ]),
    ]
