"""Configuration management for plugin-catalog."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Catalog Configuration
    catalog_url: str = Field(
        default="https://vd-plugins.github.io/proxy/plugins-full.json",
        description="URL of the JSON plugin catalog; plugin links are resolved against it",
    )

    # Shareable Location Configuration
    public_url: str = Field(
        default="http://127.0.0.1:8000/", description="Public page URL used to build shareable search links"
    )
    initial_location: str | None = Field(
        default=None, description="Location to restore the search from at startup (e.g. a bookmarked link)"
    )

    # Search Configuration
    query_debounce_ms: int = Field(
        default=250, ge=0, description="Quiet period before the live query is written to the shareable link"
    )
    fuzzy_threshold: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Maximum fuzzy score (0=exact, 1=no match) for a result"
    )

    # Clipboard Configuration
    clipboard_command: list[str] | None = Field(
        default=None, description="Command reading text on stdin for the primary clipboard path (auto-detect)"
    )
    legacy_clipboard_command: list[str] | None = Field(
        default=None, description="Command used by the scratch-file clipboard fallback (auto-detect)"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Server Configuration
    host: str = Field(default="127.0.0.1", description="Interface the web UI binds to")
    port: int = Field(default=8000, description="Port the web UI listens on")

    @property
    def query_debounce_seconds(self) -> float:
        """Debounce interval converted to seconds."""
        return self.query_debounce_ms / 1000

    @property
    def start_location(self) -> str:
        """Location the query store reads its initial fragment from."""
        return self.initial_location or self.public_url


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30
    CLIPBOARD_TIMEOUT_SECONDS: int = 5

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_NO_CONTENT: int = 204
    HTTP_BAD_GATEWAY: int = 502
    HTTP_SERVICE_UNAVAILABLE: int = 503

    # Fixed user-facing messages
    PAGE_TITLE: str = "Vendetta plugins"
    CATALOG_LOAD_FAILED_MESSAGE: str = "Could not fetch plugins"

    # Clipboard
    CLIPBOARD_SCRATCH_PREFIX: str = "plugin-catalog-clip-"

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    TEMPLATES_DIR: Path = PROJECT_ROOT / "templates"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
