"""
Setup catalog derived from repository file paths.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .metadata import CarCategory, classify
from .naming import (
    collation_key,
    normalize_name,
    to_display_name,
    to_file_display_name,
)


@dataclass(frozen=True)
class SetupEntry:
    """One setup file, keyed by car and track."""
    path: str
    car: str
    track: str
    filename: str

    # Normalized keys
    car_key: str
    track_key: str

    # Display labels
    car_label: str
    track_label: str
    filename_label: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "path": self.path,
            "car": self.car,
            "track": self.track,
            "filename": self.filename,
            "carKey": self.car_key,
            "trackKey": self.track_key,
            "carLabel": self.car_label,
            "trackLabel": self.track_label,
            "filenameLabel": self.filename_label,
        }


@dataclass(frozen=True)
class FilterOption:
    """A distinct car or track value for the filter lists."""
    key: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "label": self.label}


@dataclass
class CatalogIndex:
    """Filter options and car classes for a set of entries."""
    cars: List[FilterOption] = field(default_factory=list)
    tracks: List[FilterOption] = field(default_factory=list)
    class_by_car: Dict[str, CarCategory] = field(default_factory=dict)

    def has_car(self, key: str) -> bool:
        return any(option.key == key for option in self.cars)

    def has_track(self, key: str) -> bool:
        return any(option.key == key for option in self.tracks)

    def car_label(self, key: str) -> Optional[str]:
        return next((option.label for option in self.cars if option.key == key), None)

    def track_label(self, key: str) -> Optional[str]:
        return next((option.label for option in self.tracks if option.key == key), None)

    def categories_in_use(self) -> List[CarCategory]:
        """Categories with at least one car, in tab order."""
        used = set(self.class_by_car.values())
        return [category for category in CarCategory if category in used]


@dataclass
class EntryGroup:
    """Entries sharing a track (or a car)."""
    key: str
    label: str
    entries: List[SetupEntry] = field(default_factory=list)


def split_setup_path(path: str) -> Optional[Dict[str, str]]:
    """
    Split a repository path into car, track and filename parts.

    Args:
        path: Repository path (e.g., "Audi_R8/Monza/race/setup1.json")

    Returns:
        Dict with car, track and filename, or None for paths with fewer
        than two segments.
    """
    segments = path.split("/")
    if len(segments) < 2:
        return None
    return {
        "car": segments[0],
        "track": segments[1],
        "filename": "/".join(segments[2:]),
    }


def derive_entries(paths: Iterable[str]) -> List[SetupEntry]:
    """
    Build setup entries from repository paths.

    Paths without a car, track and filename are dropped. Entries keep the
    order of the input paths.
    """
    entries: List[SetupEntry] = []
    for path in paths:
        if not isinstance(path, str):
            continue
        parts = split_setup_path(path)
        if parts is None:
            continue

        car_key = normalize_name(parts["car"])
        track_key = normalize_name(parts["track"])
        if not car_key or not track_key or not parts["filename"]:
            continue

        entries.append(SetupEntry(
            path=path,
            car=parts["car"],
            track=parts["track"],
            filename=parts["filename"],
            car_key=car_key,
            track_key=track_key,
            car_label=to_display_name(parts["car"]),
            track_label=to_display_name(parts["track"]),
            filename_label=to_file_display_name(parts["filename"]),
        ))
    return entries


def to_filter_options(
    entries: Iterable[SetupEntry],
    key_field: str,
    label_field: str,
) -> List[FilterOption]:
    """
    Fold entries into unique options sorted by label.

    The first label seen for a key wins.
    """
    labels: Dict[str, str] = {}
    for entry in entries:
        key = getattr(entry, key_field)
        label = getattr(entry, label_field)
        if not key or not label or key in labels:
            continue
        labels[key] = label

    options = [FilterOption(key=key, label=label) for key, label in labels.items()]
    options.sort(key=lambda option: collation_key(option.label))
    return options


def build_catalog_index(entries: Sequence[SetupEntry]) -> CatalogIndex:
    """Build car/track filter options and the car class lookup."""
    cars = to_filter_options(entries, "car_key", "car_label")
    tracks = to_filter_options(entries, "track_key", "track_label")
    class_by_car = {option.key: classify(option.key) for option in cars}
    return CatalogIndex(cars=cars, tracks=tracks, class_by_car=class_by_car)


def list_filter_options(paths: Iterable[str]) -> Dict[str, List[FilterOption]]:
    """Cars and tracks available in a set of repository paths."""
    index = build_catalog_index(derive_entries(paths))
    return {"cars": index.cars, "tracks": index.tracks}


def group_entries(entries: Iterable[SetupEntry], by: str = "track") -> List[EntryGroup]:
    """
    Group entries by track or by car.

    Args:
        entries: Entries to group (usually the filtered selection).
        by: "track" or "car".

    Returns:
        Groups sorted by label; entries inside a group keep their order.
    """
    if by not in ("track", "car"):
        raise ValueError(f"Cannot group entries by {by!r}")

    groups: Dict[str, EntryGroup] = {}
    for entry in entries:
        key = getattr(entry, f"{by}_key")
        group = groups.get(key)
        if group is None:
            group = EntryGroup(key=key, label=getattr(entry, f"{by}_label"))
            groups[key] = group
        group.entries.append(entry)

    return sorted(groups.values(), key=lambda group: collation_key(group.label))
