"""
Main integration for the ACC setups viewer.

Ties together discovery, the catalog, selection, conversion and the HTTP app.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from config import Config
from .catalog import (
    CatalogIndex,
    FilterOption,
    SetupEntry,
    build_catalog_index,
    derive_entries,
    list_filter_options,
)
from .converter_client import GoSetupsClient
from .details import DetailSection, build_setup_details
from .errors import ConversionError, DiscoveryError, RawFetchError, SetupSourceError
from .github_client import GitHubSetupSource
from .metadata import normalize_lang
from .selection import Selection, resolve_selection

logger = logging.getLogger(__name__)


class ValuesStatus(Enum):
    """Outcome of fetching converted values for the selected setup."""
    NOT_REQUESTED = "not_requested"
    OK = "ok"
    NO_DATA = "no_data"
    RAW_FETCH_FAILED = "raw_fetch_failed"
    CONVERSION_FAILED = "conversion_failed"


@dataclass
class SetupPage:
    """Everything the presentation layer needs for one request."""
    lang: str
    entries: List[SetupEntry]
    index: CatalogIndex
    selection: Selection
    values_status: ValuesStatus = ValuesStatus.NOT_REQUESTED
    final_values: Optional[Dict[str, Any]] = None
    details: Optional[List[DetailSection]] = None
    load_error: Optional[SetupSourceError] = None
    values_error: Optional[SetupSourceError] = None

    @property
    def total_files(self) -> int:
        return len(self.entries)


class SetupViewer:
    """Runs the discovery → selection → conversion pipeline."""

    def __init__(self, config: Config):
        self._config = config
        self._source = GitHubSetupSource(
            owner=config.repo_owner,
            repo=config.repo_name,
            branch=config.repo_branch,
            api_url=config.github_api_url,
            raw_base_url=config.raw_base_url,
            timeout=config.fetch_timeout_sec,
            cache_ttl=config.discovery_cache_sec,
            user_agent=config.user_agent,
        )
        self._converter = GoSetupsClient(
            source=self._source,
            converter_url=config.converter_url,
            timeout=config.conversion_timeout_sec,
            user_agent=config.user_agent,
        )

    @property
    def source(self) -> GitHubSetupSource:
        return self._source

    @property
    def converter(self) -> GoSetupsClient:
        return self._converter

    async def list_entries(self) -> List[SetupEntry]:
        """
        Discover setup entries.

        Raises:
            DiscoveryError: If the tree listing failed.
        """
        paths = await self._source.list_setup_paths()
        return derive_entries(paths)

    async def list_filter_options(self) -> Dict[str, List[FilterOption]]:
        """
        Cars and tracks available in the repository.

        Raises:
            DiscoveryError: If the tree listing failed.
        """
        paths = await self._source.list_setup_paths()
        return list_filter_options(paths)

    async def load_page(
        self,
        car: Any = None,
        track: Any = None,
        car_class: Any = None,
        file: Any = None,
        lang: Any = None,
    ) -> SetupPage:
        """
        Build the page model for one request.

        Discovery failures leave the catalog empty; fetch and conversion
        failures leave the values empty. Both are reported on the page.
        """
        load_error: Optional[DiscoveryError] = None
        try:
            entries = await self.list_entries()
        except DiscoveryError as e:
            logger.warning("Setup discovery failed: %s", e.message)
            load_error = e
            entries = []

        index = build_catalog_index(entries)
        selection = resolve_selection(entries, car, track, car_class, file, index=index)
        page = SetupPage(
            lang=normalize_lang(lang),
            entries=entries,
            index=index,
            selection=selection,
            load_error=load_error,
        )

        if selection.selected_file:
            await self._load_values(page)
        return page

    async def _load_values(self, page: SetupPage) -> None:
        """Fetch and lay out converted values for the selected file."""
        path = page.selection.selected_file
        try:
            final_values = await self._converter.fetch_converted_values(path)
        except RawFetchError as e:
            page.values_status = ValuesStatus.RAW_FETCH_FAILED
            page.values_error = e
            return
        except ConversionError as e:
            page.values_status = ValuesStatus.CONVERSION_FAILED
            page.values_error = e
            return

        if final_values is None:
            logger.info("No converted values for %s", path)
            page.values_status = ValuesStatus.NO_DATA
            return

        page.values_status = ValuesStatus.OK
        page.final_values = final_values
        page.details = build_setup_details(final_values)

    async def close(self) -> None:
        """Close both HTTP clients."""
        await self._converter.close()
        await self._source.close()

    async def __aenter__(self) -> "SetupViewer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def serve(config: Config) -> None:
    """Serve the HTTP app until interrupted."""
    import uvicorn

    from .server import create_app

    viewer = SetupViewer(config)
    app = create_app(viewer)
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level="warning",
    ))

    # uvicorn handles SIGINT/SIGTERM itself
    logger.info("Setup viewer listening on http://%s:%s", config.server_host, config.server_port)
    try:
        await server.serve()
    finally:
        await viewer.close()


def main():
    """Entry point."""
    config = Config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(levelname)s: %(message)s",
    )
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
