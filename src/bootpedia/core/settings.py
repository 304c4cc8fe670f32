"""Settings for the Bootpedia data layer.

``BootpediaSettings`` reads ``BOOTPEDIA_*`` environment variables and an
optional ``.env`` file. Stores, the resolver and the CLI take their
collection names, storage keys, TTL and retry policy from here unless a
caller passes explicit values.

Examples:
    >>> from bootpedia.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.image_cache_ttl_seconds
    1800

Tags:
    settings, configuration, pydantic, environment, bootpedia
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BootpediaSettings(BaseSettings):
    """Configuration shared by the stores, the image resolver and the CLI.

    Fields
    ──────
    log_level                     : structlog log level
    json_logs                     : force JSON (True) / console (False) logs; None = auto
    data_dir                      : directory for the CLI's local JSON stores
    tutorials_collection          : remote collection holding tutorials
    categories_collection         : remote collection holding categories
    links_collection              : remote collection holding useful links
    favorites_key                 : local key-value key for the favorites array
    image_path_prefix             : blob-store folder prepended to image identifiers
    image_cache_ttl_seconds       : lifetime of a cached image URL
    image_max_attempts            : attempts (first included) for transient image failures
    image_retry_base_delay        : first backoff delay (seconds)
    image_retry_increment         : backoff added per further retry (seconds)
    image_cache_entry_size_bytes  : per-entry size estimate for cache stats
    """

    model_config = SettingsConfigDict(
        env_prefix="BOOTPEDIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".bootpedia",
        description="Directory for local JSON stores used by the CLI",
    )
    tutorials_collection: str = "tutorials"
    categories_collection: str = "categories"
    links_collection: str = "usefulLinks"
    favorites_key: str = "bootpedia-favorites"

    # ── Images ───────────────────────────────────────────────────
    image_path_prefix: str = "tutorials/"
    image_cache_ttl_seconds: int = Field(default=30 * 60, gt=0)
    image_max_attempts: int = Field(default=3, ge=1)
    image_retry_base_delay: float = Field(default=1.0, ge=0)
    image_retry_increment: float = Field(default=1.0, ge=0)
    image_cache_entry_size_bytes: int = 1024

    @property
    def documents_path(self) -> Path:
        return self.data_dir / "bootpedia.json"

    @property
    def local_storage_path(self) -> Path:
        return self.data_dir / "local_storage.json"


@lru_cache(maxsize=1)
def get_settings() -> BootpediaSettings:
    """Load and cache settings from the environment."""
    return BootpediaSettings()


def reset_settings() -> None:
    """Drop the cached settings (tests, env changes)."""
    get_settings.cache_clear()


__all__ = ["BootpediaSettings", "get_settings", "reset_settings"]
