"""
Configuration for the ACC setups viewer.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv()


@dataclass
class Config:
    """Configuration with environment variable support."""

    # Setup repository - loaded from .env file
    repo_owner: str = field(
        default_factory=lambda: os.getenv("ACC_SETUPS_OWNER", "Lon3035")
    )
    repo_name: str = field(
        default_factory=lambda: os.getenv("ACC_SETUPS_REPO", "ACC_Setups")
    )
    repo_branch: str = field(
        default_factory=lambda: os.getenv("ACC_SETUPS_BRANCH", "master")
    )
    github_api_url: str = field(
        default_factory=lambda: os.getenv("GITHUB_API_URL", "https://api.github.com")
    )
    raw_base_url: str = field(
        default_factory=lambda: os.getenv("GITHUB_RAW_URL", "https://raw.githubusercontent.com")
    )

    # GoSetups converter
    converter_url: str = field(
        default_factory=lambda: os.getenv(
            "CONVERTER_URL", "https://gosetups.gg/acc-setup-viewer-comparator/"
        )
    )

    user_agent: str = "accsetupsviewer"

    # Timeouts (seconds)
    fetch_timeout_sec: float = 8.0
    conversion_timeout_sec: Optional[float] = None  # Defaults to 2x fetch timeout

    # Tree listing reuse window
    discovery_cache_sec: float = 60 * 30

    # Server
    server_host: str = field(
        default_factory=lambda: os.getenv("SERVER_HOST", "localhost")
    )
    server_port: int = field(
        default_factory=lambda: int(os.getenv("SERVER_PORT", "8080"))
    )

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )

    def __post_init__(self):
        """Derive the converter timeout from the raw fetch timeout."""
        if self.conversion_timeout_sec is None:
            self.conversion_timeout_sec = self.fetch_timeout_sec * 2
