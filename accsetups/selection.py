"""
Selection resolver for the current car/track/file filters.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .catalog import CatalogIndex, SetupEntry, build_catalog_index
from .metadata import CarCategory, DEFAULT_CAR_CATEGORY, parse_car_category
from .naming import normalize_name


@dataclass
class Selection:
    """The resolved view: filtered entries and the chosen setup."""
    selected_car: str = ""
    selected_track: str = ""
    selected_car_class: CarCategory = DEFAULT_CAR_CATEGORY
    filtered_entries: List[SetupEntry] = field(default_factory=list)
    selected_file: str = ""
    selected_entry: Optional[SetupEntry] = None

    @property
    def has_primary_selection(self) -> bool:
        return bool(self.selected_car or self.selected_track)

    @property
    def group_by(self) -> Optional[str]:
        """How the presentation should group the filtered entries."""
        if self.selected_car and not self.selected_track:
            return "track"
        if self.selected_track and not self.selected_car:
            return "car"
        return None


def _to_param(value: Any) -> str:
    """Query values may be missing or repeated; only plain strings count."""
    return value if isinstance(value, str) else ""


def resolve_selection(
    entries: Sequence[SetupEntry],
    requested_car: Any = None,
    requested_track: Any = None,
    requested_car_class: Any = None,
    requested_file: Any = None,
    index: Optional[CatalogIndex] = None,
) -> Selection:
    """
    Resolve the setup to show from the requested filters.

    Unknown cars or tracks clear that filter, an unknown class falls back to
    GT3, and a file outside the filtered entries falls back to the first
    filtered entry. The car class is not checked against the selected car.

    Args:
        entries: All discovered entries, in discovery order.
        requested_car: Requested car (raw or normalized).
        requested_track: Requested track (raw or normalized).
        requested_car_class: Requested class tab.
        requested_file: Requested repository path.
        index: Catalog index for the entries; built when omitted.

    Returns:
        Selection with the filtered entries and the chosen file, if any.
    """
    if index is None:
        index = build_catalog_index(entries)

    car = normalize_name(_to_param(requested_car))
    track = normalize_name(_to_param(requested_track))
    selected_car = car if car and index.has_car(car) else ""
    selected_track = track if track and index.has_track(track) else ""
    selected_car_class = parse_car_category(_to_param(requested_car_class))

    filtered = [
        entry for entry in entries
        if (not selected_car or entry.car_key == selected_car)
        and (not selected_track or entry.track_key == selected_track)
    ]

    file = _to_param(requested_file)
    selected_entry = next((entry for entry in filtered if entry.path == file), None)
    if selected_entry is None and filtered:
        selected_entry = filtered[0]

    return Selection(
        selected_car=selected_car,
        selected_track=selected_track,
        selected_car_class=selected_car_class,
        filtered_entries=filtered,
        selected_file=selected_entry.path if selected_entry else "",
        selected_entry=selected_entry,
    )
