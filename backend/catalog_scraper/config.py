"""Application configuration via Pydantic Settings."""

from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global scraper settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Browser (render mode)
    BROWSER_HEADLESS: bool = True
    BROWSER_LOCALE: str = "en-IN"
    BROWSER_TIMEZONE: str = "Asia/Kolkata"
    BLOCK_HEAVY_RESOURCES: bool = False  # Images must load for lazy-load detection
    USER_AGENT: str = ""  # Empty string rotates through the built-in pool

    # Timeouts (milliseconds)
    DEFAULT_TIMEOUT_MS: int = 30000
    NETWORK_IDLE_TIMEOUT_MS: int = 15000
    CONTENT_WAIT_TIMEOUT_MS: int = 10000
    IMAGE_WAIT_TIMEOUT_MS: int = 10000
    SETTLE_DELAY_MS: int = 3000
    OVERLAY_CLICK_PAUSE_MS: int = 500

    # Lazy-load scrolling
    SCROLL_POLL_INTERVAL_MS: int = 500
    SCROLL_STABLE_POLLS: int = 5
    SCROLL_MAX_POLLS: int = 200

    # Lightweight fetch
    HTTP_MAX_REDIRECTS: int = 5

    # Debug artifacts
    DEBUG_ARTIFACTS_ENABLED: bool = True
    DEBUG_ARTIFACT_DIR: str = "debug_artifacts"

    @model_validator(mode="after")
    def check_scroll_bounds(self) -> "Settings":
        """Stable-poll threshold can never exceed the poll ceiling."""
        if self.SCROLL_STABLE_POLLS > self.SCROLL_MAX_POLLS:
            self.SCROLL_MAX_POLLS = self.SCROLL_STABLE_POLLS
        return self

    def get_debug_artifact_dir(self) -> Path:
        """Resolve DEBUG_ARTIFACT_DIR into a Path.

        Returns:
            Directory under which per-adapter debug artifacts are written
        """
        return Path(self.DEBUG_ARTIFACT_DIR).expanduser()


settings = Settings()
