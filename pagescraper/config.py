from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Process-wide configuration.

    Built once by an entry point (API app factory or CLI) and handed to the
    backends explicitly. Every value can be overridden with a
    ``PAGESCRAPER_``-prefixed environment variable or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGESCRAPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Which implementation executes a scrape
    backend: Literal["browser", "apify"] = "browser"

    # Browser session
    headless: bool = True
    viewport_width: int = 1366
    viewport_height: int = 900
    user_agent: str = UA
    locale: str = "en-US"

    # Timeouts (milliseconds unless noted)
    navigation_timeout_ms: int = 30000
    ready_timeout_ms: int = 15000
    auth_timeout_ms: int = 20000
    click_timeout_ms: int = 1500
    request_timeout_s: float = 120.0
    max_request_timeout_s: float = 300.0   # upper bound for a client-supplied timeout

    # Content loading
    max_rounds: int = 3
    settle_ms: int = 1500
    settle_jitter_ms: int = 800

    # Request defaults
    default_limit: int = 10
    max_limit: int = 100

    login_url: str = "https://www.facebook.com/login"

    # Apify delegation
    apify_token: Optional[str] = None
    apify_base_url: str = "https://api.apify.com/v2"
    upstream_timeout_s: float = 300.0

    # HTTP surface
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
