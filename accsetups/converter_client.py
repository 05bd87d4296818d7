"""
Async client for the GoSetups setup viewer/comparator.

The converter takes an uploaded ACC setup file and answers with an HTML page
that embeds the converted values as an inline ``const jsonSetupFiles = {...};``
assignment. Only that object is used.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, Iterable, Optional, Tuple

import aiohttp

from .details import as_record
from .errors import ConversionError
from .github_client import GitHubSetupSource

logger = logging.getLogger(__name__)

SETUP_FILES_PATTERN = re.compile(
    r"const jsonSetupFiles = (\{.*?\});\s*const jsonSetupFilesOrder =",
    re.DOTALL,
)

UPLOAD_FIELD = "fileToUpload"
DEFAULT_FILENAME = "setup.json"

_JSON_SUFFIX = re.compile(r"\.json$", re.IGNORECASE)


def match_key(keys: Iterable[str], wanted: str) -> Optional[str]:
    """
    Find the key that best matches a name.

    Tried in order: exact match, case-insensitive match, case-insensitive
    substring match, then the first key.

    Returns:
        Matching key, or None if there are no keys.
    """
    keys = list(keys)
    if not keys:
        return None

    lowered = wanted.lower()
    for predicate in (
        lambda key: key == wanted,
        lambda key: key.lower() == lowered,
        lambda key: lowered in key.lower(),
    ):
        found = next((key for key in keys if predicate(key)), None)
        if found is not None:
            return found
    return keys[0]


def extract_final_values(html: str, filename: str) -> Optional[Dict[str, Any]]:
    """
    Pull a setup's final values out of a converter response page.

    Args:
        html: Response body from the converter.
        filename: Name the setup was uploaded under (e.g., "race.json").

    Returns:
        The setupFinalValues object, or None if the page does not contain
        one in the expected shape.
    """
    match = SETUP_FILES_PATTERN.search(html or "")
    if not match:
        logger.info("Converter response has no jsonSetupFiles block")
        return None

    try:
        setup_files = json.loads(match.group(1))
    except ValueError as e:
        logger.info("Converter jsonSetupFiles block is not valid JSON: %s", e)
        return None

    setup_files = as_record(setup_files)
    if not setup_files:
        return None

    file_key = match_key(setup_files.keys(), filename)
    file_node = as_record(setup_files.get(file_key))
    data_node = as_record(file_node.get("data")) if file_node else None
    uploads = as_record(data_node.get("uploads")) if data_node else None
    if not uploads:
        logger.info("Converter response has no uploads for %s", filename)
        return None

    setup_key = match_key(uploads.keys(), _JSON_SUFFIX.sub("", filename))
    setup_node = as_record(uploads.get(setup_key))
    final_values = as_record(setup_node.get("setupFinalValues")) if setup_node else None
    if final_values is None:
        logger.info("Converter upload %r has no setupFinalValues", setup_key)
        return None
    return dict(final_values)


class GoSetupsClient:
    """Uploads setup files to GoSetups and reads back the converted values."""

    def __init__(
        self,
        source: GitHubSetupSource,
        converter_url: str = "https://gosetups.gg/acc-setup-viewer-comparator/",
        timeout: float = 16.0,
        user_agent: str = "accsetupsviewer",
    ):
        self.source = source
        self.converter_url = converter_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"User-Agent": self.user_agent})
        return self._session

    async def fetch_converted_values(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Download a setup file and convert it.

        Args:
            path: Repository path of the setup.

        Returns:
            Final values, or None if the converter had nothing for the file.

        Raises:
            RawFetchError: If the file could not be downloaded.
            ConversionError: If the converter request failed.
        """
        raw_text = await self.source.fetch_raw(path)
        filename = path.split("/")[-1] or DEFAULT_FILENAME
        return await self.convert(raw_text, filename)

    async def convert(self, raw_text: str, filename: str) -> Optional[Dict[str, Any]]:
        """
        Upload setup content and extract its final values.

        Raises:
            ConversionError: On timeout, connection failure or non-200 status.
        """
        try:
            status, html = await self._upload(raw_text, filename)
        except asyncio.TimeoutError:
            logger.warning("Conversion of %s timed out after %ss", filename, self.timeout)
            raise ConversionError.from_timeout(self.timeout)
        except aiohttp.ClientError as e:
            logger.warning("Conversion of %s failed: %s", filename, e)
            raise ConversionError.from_connection(e)

        if status != 200:
            logger.warning("Conversion of %s failed with status %s", filename, status)
            raise ConversionError.from_status(status)

        return extract_final_values(html, filename)

    async def _upload(self, raw_text: str, filename: str) -> Tuple[int, str]:
        """POST the setup as a multipart upload, returning (status, body)."""
        session = await self._ensure_session()

        form = aiohttp.FormData()
        form.add_field(
            UPLOAD_FIELD,
            raw_text.encode("utf-8"),
            filename=filename,
            content_type="application/json",
        )

        async with session.post(
            self.converter_url,
            data=form,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            return resp.status, await resp.text(errors="replace")

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "GoSetupsClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
