"""
Tests for the HTTP API.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from config import Config
from accsetups.errors import DiscoveryError, RawFetchError
from accsetups.main import SetupViewer
from accsetups.server import build_href, create_app


PATHS = [
    "Audi_R8_GT3/Monza/setup1.json",
    "Audi_R8_GT3/Spa/setup2.json",
    "Porsche_Cayman_GT4/Spa/race.json",
]


@pytest.fixture
def viewer():
    return SetupViewer(Config())


@pytest.fixture
def client(viewer):
    return TestClient(create_app(viewer))


class TestBuildHref:
    """Tests for page links."""

    def test_omits_empty_values(self):
        assert build_href("audi r8", "", "", "gt3", "en") == "/?car=audi+r8&carClass=gt3&lang=en"

    def test_no_values(self):
        assert build_href("", "", "", "", "") == "/"

    def test_encodes_file_path(self):
        href = build_href("", "", "Audi/Monza/a b.json", "", "")
        assert href == "/?file=Audi%2FMonza%2Fa+b.json"


class TestSetupCatalog:
    """Tests for GET /api/setup-catalog."""

    def test_returns_options(self, viewer, client):
        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths:
            paths.return_value = PATHS
            response = client.get("/api/setup-catalog")

        assert response.status_code == 200
        assert response.json() == {
            "cars": [
                {"key": "audi r8 gt3", "label": "Audi R8 Gt3"},
                {"key": "porsche cayman gt4", "label": "Porsche Cayman Gt4"},
            ],
            "tracks": [
                {"key": "monza", "label": "Monza"},
                {"key": "spa", "label": "Spa"},
            ],
        }

    def test_discovery_error_is_502(self, viewer, client):
        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths:
            paths.side_effect = DiscoveryError.from_status(403)
            response = client.get("/api/setup-catalog")

        assert response.status_code == 502
        assert response.json() == {"error": "GitHub API error: 403"}

    def test_unexpected_error_is_500(self, viewer, client):
        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths:
            paths.side_effect = RuntimeError("boom")
            response = client.get("/api/setup-catalog")

        assert response.status_code == 500
        assert response.json() == {"error": "Unable to load setup catalog."}


class TestSetups:
    """Tests for GET /api/setups."""

    def test_page_model(self, viewer, client):
        final_values = {"ELECTRONICS": {"TC": 6}}

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.return_value = final_values
            response = client.get("/api/setups", params={"car": "audi_r8_gt3", "carClass": "gt3"})

        assert response.status_code == 200
        data = response.json()
        assert data["totalFiles"] == 3
        assert data["filteredCount"] == 2
        assert data["filters"]["classByCar"] == {
            "audi r8 gt3": "gt3",
            "porsche cayman gt4": "gt4",
        }
        assert data["filters"]["carClasses"] == ["gt3", "gt4"]
        assert data["selection"]["car"] == "audi r8 gt3"
        assert data["selection"]["carLabel"] == "Audi R8 Gt3"
        assert data["selection"]["file"] == "Audi_R8_GT3/Monza/setup1.json"
        assert data["selection"]["groupBy"] == "track"
        assert [group["label"] for group in data["groups"]] == ["Monza", "Spa"]
        assert data["groups"][0]["open"] is True
        assert data["entries"][0]["active"] is True
        assert data["entries"][0]["href"] == (
            "/?car=audi+r8+gt3&file=Audi_R8_GT3%2FMonza%2Fsetup1.json&carClass=gt3&lang=en"
        )
        assert data["values"]["status"] == "ok"
        electronics = data["values"]["details"][1]["groups"][0]
        assert electronics["items"][0] == {"label": "TC", "value": "6", "percent": 50.0}
        assert data["loadError"] is None
        assert data["valuesError"] is None

    def test_values_error_reported(self, viewer, client):
        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.side_effect = RawFetchError.from_timeout(8.0)
            response = client.get("/api/setups")

        data = response.json()
        assert data["values"]["status"] == "raw_fetch_failed"
        assert data["valuesError"] == {
            "kind": "raw_fetch",
            "message": "Raw setup fetch timeout (8s)",
            "status": None,
            "timed_out": True,
        }
        assert data["groups"] is None

    def test_load_error_reported(self, viewer, client):
        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths:
            paths.side_effect = DiscoveryError.from_timeout(8.0)
            response = client.get("/api/setups", params={"car": "audi r8 gt3"})

        assert response.status_code == 200
        data = response.json()
        assert data["loadError"]["message"] == "GitHub request timeout (8s)"
        assert data["entries"] == []
        assert data["selection"]["carClass"] == "gt3"
        assert data["values"]["status"] == "not_requested"


class TestNormalize:
    """Tests for GET /api/normalize."""

    def test_percent(self, client):
        response = client.get("/api/normalize", params={"label": "PSI", "value": "27.5 psi"})
        assert response.json()["percent"] == 53.125

    def test_not_applicable(self, client):
        response = client.get("/api/normalize", params={"label": "Unknown", "value": "12"})
        assert response.json()["percent"] is None
