"""
Tests for the SetupViewer pipeline.
"""

from unittest.mock import AsyncMock, patch

import pytest

from config import Config
from accsetups.errors import ConversionError, DiscoveryError, RawFetchError
from accsetups.main import SetupViewer, ValuesStatus
from accsetups.metadata import CarCategory


PATHS = [
    "Audi_R8/Monza/setup1.json",
    "Audi_R8/Monza/setup2.json",
    "BMW_M4_GT3/Spa/race.json",
]

FINAL_VALUES = {"TYRES": {"LF": {"PSI": 27.5}}}


def make_viewer() -> SetupViewer:
    """Helper to create a viewer with default config."""
    return SetupViewer(Config())


class TestConfig:
    """Tests for configuration defaults."""

    def test_conversion_timeout_defaults_to_double(self):
        config = Config(fetch_timeout_sec=5.0)
        assert config.conversion_timeout_sec == 10.0

    def test_explicit_conversion_timeout(self):
        config = Config(fetch_timeout_sec=5.0, conversion_timeout_sec=30.0)
        assert config.conversion_timeout_sec == 30.0

    def test_viewer_uses_config(self):
        viewer = SetupViewer(Config(fetch_timeout_sec=4.0, discovery_cache_sec=10))
        assert viewer.source.timeout == 4.0
        assert viewer.source.cache_ttl == 10
        assert viewer.converter.timeout == 8.0
        assert viewer.converter.source is viewer.source


class TestLoadPage:
    """Tests for load_page()."""

    @pytest.mark.asyncio
    async def test_full_pipeline(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.return_value = FINAL_VALUES
            page = await viewer.load_page(car="audi r8")

        assert page.total_files == 3
        assert len(page.selection.filtered_entries) == 2
        assert page.selection.selected_file == "Audi_R8/Monza/setup1.json"
        values.assert_awaited_once_with("Audi_R8/Monza/setup1.json")
        assert page.values_status == ValuesStatus.OK
        assert page.final_values == FINAL_VALUES
        assert page.details[0].name == "TYRES"
        assert page.load_error is None
        assert page.values_error is None

    @pytest.mark.asyncio
    async def test_discovery_failure_gives_empty_catalog(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.side_effect = DiscoveryError.from_timeout(8.0)
            page = await viewer.load_page(car="audi r8", file="Audi_R8/Monza/setup1.json")

        assert page.entries == []
        assert page.index.cars == []
        assert page.selection.selected_file == ""
        assert page.load_error.timed_out is True
        assert page.values_status == ValuesStatus.NOT_REQUESTED
        values.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_data(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.return_value = None
            page = await viewer.load_page()

        assert page.values_status == ValuesStatus.NO_DATA
        assert page.details is None
        assert page.values_error is None

    @pytest.mark.asyncio
    async def test_raw_fetch_failure(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.side_effect = RawFetchError.from_status(404)
            page = await viewer.load_page()

        assert page.values_status == ValuesStatus.RAW_FETCH_FAILED
        assert page.values_error.status == 404

    @pytest.mark.asyncio
    async def test_conversion_failure(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.side_effect = ConversionError.from_timeout(16.0)
            page = await viewer.load_page()

        assert page.values_status == ValuesStatus.CONVERSION_FAILED
        assert page.values_error.message == "GoSetups request timeout (16s)"

    @pytest.mark.asyncio
    async def test_invalid_params_fall_back(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            values.return_value = FINAL_VALUES
            page = await viewer.load_page(
                car="unknown", track="nowhere", car_class="lmp1", file="x/y/z.json", lang="xx",
            )

        assert page.lang == "en"
        assert page.selection.selected_car == ""
        assert page.selection.selected_car_class == CarCategory.GT3
        assert page.selection.selected_file == PATHS[0]

    @pytest.mark.asyncio
    async def test_empty_selection_skips_conversion(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths, \
                patch.object(viewer.converter, "fetch_converted_values", new_callable=AsyncMock) as values:
            paths.return_value = PATHS
            page = await viewer.load_page(car="bmw m4 gt3", track="monza")

        assert page.selection.filtered_entries == []
        assert page.values_status == ValuesStatus.NOT_REQUESTED
        values.assert_not_awaited()


class TestListFilterOptions:
    """Tests for list_filter_options()."""

    @pytest.mark.asyncio
    async def test_options(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths:
            paths.return_value = PATHS
            options = await viewer.list_filter_options()

        assert [option.key for option in options["cars"]] == ["audi r8", "bmw m4 gt3"]
        assert [option.key for option in options["tracks"]] == ["monza", "spa"]

    @pytest.mark.asyncio
    async def test_discovery_error_propagates(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "list_setup_paths", new_callable=AsyncMock) as paths:
            paths.side_effect = DiscoveryError.from_status(502)
            with pytest.raises(DiscoveryError):
                await viewer.list_filter_options()


class TestCleanup:
    """Tests for closing the clients."""

    @pytest.mark.asyncio
    async def test_close_closes_both_clients(self):
        viewer = make_viewer()

        with patch.object(viewer.source, "close", new_callable=AsyncMock) as source_close, \
                patch.object(viewer.converter, "close", new_callable=AsyncMock) as converter_close:
            async with viewer:
                pass

        source_close.assert_awaited_once()
        converter_close.assert_awaited_once()
