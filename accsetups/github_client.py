"""
Async client for the GitHub repository holding the setup files.
"""

import asyncio
import logging
import time
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import aiohttp

from .errors import DiscoveryError, RawFetchError
from .naming import collation_key

logger = logging.getLogger(__name__)


class GitHubSetupSource:
    """Lists setup files in a GitHub repository and downloads their content."""

    def __init__(
        self,
        owner: str = "Lon3035",
        repo: str = "ACC_Setups",
        branch: str = "master",
        api_url: str = "https://api.github.com",
        raw_base_url: str = "https://raw.githubusercontent.com",
        timeout: float = 8.0,
        cache_ttl: float = 60 * 30,
        user_agent: str = "accsetupsviewer",
    ):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.raw_base_url = raw_base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

        # Tree listing reuse window
        self._cached_paths: Optional[List[str]] = None
        self._cached_at: float = 0.0
        self._listing_lock = asyncio.Lock()

    @property
    def tree_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/git/trees/{self.branch}?recursive=1"

    def raw_url(self, path: str) -> str:
        """Raw content URL with every path segment percent-encoded."""
        encoded = "/".join(quote(segment, safe="") for segment in path.split("/"))
        return f"{self.raw_base_url}/{self.owner}/{self.repo}/{self.branch}/{encoded}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"User-Agent": self.user_agent})
        return self._session

    async def list_setup_paths(self) -> List[str]:
        """
        List the JSON setup files in the repository.

        The listing is reused for cache_ttl seconds. Failures are not cached.

        Returns:
            Repository paths of .json blobs, sorted.

        Raises:
            DiscoveryError: On timeout, connection failure or non-200 status.
        """
        async with self._listing_lock:
            if self._cached_paths is not None and (time.monotonic() - self._cached_at) < self.cache_ttl:
                logger.debug("Reusing tree listing (%d paths)", len(self._cached_paths))
                return list(self._cached_paths)

            try:
                status, payload = await self._get_json(self.tree_url)
            except asyncio.TimeoutError:
                logger.warning("Tree listing timed out after %ss", self.timeout)
                raise DiscoveryError.from_timeout(self.timeout)
            except aiohttp.ClientError as e:
                logger.warning("Tree listing connection error: %s", e)
                raise DiscoveryError.from_connection(e)
            except ValueError as e:
                logger.warning("Tree listing was not valid JSON: %s", e)
                raise DiscoveryError(f"{DiscoveryError.status_prefix()}: invalid JSON response")

            if status != 200:
                logger.warning("Tree listing failed with status %s", status)
                raise DiscoveryError.from_status(status)

            paths = self._extract_json_paths(payload)
            self._cached_paths = paths
            self._cached_at = time.monotonic()
            logger.info("Discovered %d setup files in %s/%s", len(paths), self.owner, self.repo)
            return list(paths)

    async def fetch_raw(self, path: str) -> str:
        """
        Download a setup file's content.

        Args:
            path: Repository path of the file.

        Returns:
            File content as text.

        Raises:
            RawFetchError: On timeout, connection failure or non-200 status.
        """
        try:
            status, text = await self._get_text(self.raw_url(path))
        except asyncio.TimeoutError:
            logger.warning("Raw fetch of %s timed out after %ss", path, self.timeout)
            raise RawFetchError.from_timeout(self.timeout)
        except aiohttp.ClientError as e:
            logger.warning("Raw fetch of %s failed: %s", path, e)
            raise RawFetchError.from_connection(e)

        if status != 200:
            logger.warning("Raw fetch of %s failed with status %s", path, status)
            raise RawFetchError.from_status(status)
        return text

    def invalidate(self) -> None:
        """Drop the cached tree listing."""
        self._cached_paths = None
        self._cached_at = 0.0

    async def _get_json(self, url: str) -> Tuple[int, Any]:
        """GET a JSON document, returning (status, payload)."""
        session = await self._ensure_session()
        async with session.get(
            url,
            headers={"Accept": "application/vnd.github+json"},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            if resp.status != 200:
                return resp.status, None
            return resp.status, await resp.json(content_type=None)

    async def _get_text(self, url: str) -> Tuple[int, str]:
        """GET a text document, returning (status, body)."""
        session = await self._ensure_session()
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            return resp.status, await resp.text(errors="replace")

    def _extract_json_paths(self, payload: Any) -> List[str]:
        """Pick .json blob paths out of a tree listing payload."""
        tree = payload.get("tree") if isinstance(payload, dict) else None
        if not isinstance(tree, list):
            return []

        paths = [
            item["path"] for item in tree
            if isinstance(item, dict)
            and item.get("type") == "blob"
            and isinstance(item.get("path"), str)
            and item["path"].endswith(".json")
        ]
        paths.sort(key=collation_key)
        return paths

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "GitHubSetupSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
