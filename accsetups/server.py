"""
HTTP API for the setup catalog and the converted setup values.

Serves the data behind the setup pages:
- Filter options (cars, tracks, car classes)
- The filtered setup list with links, grouped by track or car
- Converted final values with bar percentages for the selected setup
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from .catalog import group_entries
from .errors import DiscoveryError
from .main import SetupPage, SetupViewer
from .normalizer import normalize_to_percent

logger = logging.getLogger(__name__)


def build_href(car: str, track: str, file: str, car_class: str, lang: str) -> str:
    """Link to a page state; empty values are left out."""
    params = [
        (name, value) for name, value in (
            ("car", car),
            ("track", track),
            ("file", file),
            ("carClass", car_class),
            ("lang", lang),
        ) if value
    ]
    query = urlencode(params)
    return f"/?{query}" if query else "/"


def page_to_dict(page: SetupPage) -> Dict[str, Any]:
    """Serialize a page model to JSON-friendly data."""
    selection = page.selection
    car_class = selection.selected_car_class.value

    def href(entry_path: str) -> str:
        return build_href(selection.selected_car, selection.selected_track, entry_path, car_class, page.lang)

    def entry_dict(entry) -> Dict[str, Any]:
        data = entry.to_dict()
        data["href"] = href(entry.path)
        data["active"] = entry.path == selection.selected_file
        return data

    groups = None
    if selection.group_by:
        groups = [
            {
                "key": group.key,
                "label": group.label,
                "open": any(entry.path == selection.selected_file for entry in group.entries),
                "entries": [entry_dict(entry) for entry in group.entries],
            }
            for group in group_entries(selection.filtered_entries, by=selection.group_by)
        ]

    selected_entry = selection.selected_entry
    return {
        "lang": page.lang,
        "totalFiles": page.total_files,
        "filters": {
            "cars": [option.to_dict() for option in page.index.cars],
            "tracks": [option.to_dict() for option in page.index.tracks],
            "classByCar": {key: category.value for key, category in page.index.class_by_car.items()},
            "carClasses": [category.value for category in page.index.categories_in_use()],
        },
        "selection": {
            "car": selection.selected_car,
            "track": selection.selected_track,
            "carClass": car_class,
            "file": selection.selected_file,
            "carLabel": page.index.car_label(selection.selected_car) if selection.selected_car else None,
            "trackLabel": page.index.track_label(selection.selected_track) if selection.selected_track else None,
            "entry": selected_entry.to_dict() if selected_entry else None,
            "groupBy": selection.group_by,
        },
        "filteredCount": len(selection.filtered_entries),
        "entries": [entry_dict(entry) for entry in selection.filtered_entries],
        "groups": groups,
        "values": {
            "status": page.values_status.value,
            "finalValues": page.final_values,
            "details": [section.to_dict() for section in page.details] if page.details else None,
        },
        "loadError": page.load_error.to_dict() if page.load_error else None,
        "valuesError": page.values_error.to_dict() if page.values_error else None,
    }


def create_app(viewer: SetupViewer) -> FastAPI:
    """Create the FastAPI app around a viewer; the viewer is closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await viewer.close()

    app = FastAPI(title="ACC Setups Viewer", lifespan=lifespan)

    @app.get("/api/setup-catalog")
    async def setup_catalog():
        try:
            options = await viewer.list_filter_options()
        except DiscoveryError as e:
            return JSONResponse({"error": e.message}, status_code=502)
        except Exception:
            logger.exception("Unable to load setup catalog")
            return JSONResponse({"error": "Unable to load setup catalog."}, status_code=500)

        return {
            "cars": [option.to_dict() for option in options["cars"]],
            "tracks": [option.to_dict() for option in options["tracks"]],
        }

    @app.get("/api/setups")
    async def setups(
        car: Optional[str] = None,
        track: Optional[str] = None,
        car_class: Optional[str] = Query(None, alias="carClass"),
        file: Optional[str] = None,
        lang: Optional[str] = None,
    ):
        page = await viewer.load_page(car=car, track=track, car_class=car_class, file=file, lang=lang)
        return page_to_dict(page)

    @app.get("/api/normalize")
    async def normalize(label: str, value: str):
        return {"label": label, "value": value, "percent": normalize_to_percent(label, value)}

    return app
