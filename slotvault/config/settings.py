"""
slotvault Configuration Module

Environment-based configuration with fail-fast validation.
All settings are loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_prefix="SLOTVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory for runtime data (db, key file)",
    )

    # Keys
    encryption_key: str = Field(
        default="",
        description="Fernet key for credential encryption (falls back to the key file)",
    )
    fingerprint_key: str = Field(
        default="slotvault-fingerprint",
        min_length=1,
        description="HMAC key used to derive credential fingerprints",
    )

    # Batch decryption
    decrypt_batch_size: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Concurrent decrypt calls per batch for the loaded window",
    )
    search_batch_size: int = Field(
        default=30,
        ge=1,
        le=100,
        description="Concurrent decrypt calls per batch for the global login index",
    )

    # Search
    search_index_limit: int = Field(
        default=1000,
        ge=1,
        description="Maximum records fetched for the global login index",
    )
    min_query_length: int = Field(
        default=2,
        ge=1,
        description="Queries shorter than this match nothing",
    )

    # Detail view retry
    detail_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Decrypt retries on the detail view after the first attempt",
    )
    detail_retry_base_delay: float = Field(
        default=0.6,
        ge=0.0,
        description="Base backoff in seconds, doubled per attempt",
    )

    @field_validator("data_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v)

    def ensure_data_dir(self) -> None:
        """Create data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "slotvault.db"

    @property
    def encryption_key_path(self) -> Path:
        """Path to encryption key file."""
        return self.data_dir / ".key"


def get_settings() -> Settings:
    """
    Get validated settings instance.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    settings = Settings()
    settings.ensure_data_dir()
    return settings
