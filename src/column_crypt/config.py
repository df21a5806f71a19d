"""Configuration management for Column Crypt."""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from column_crypt.constants import MAX_CACHE_SIZE


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COLUMN_CRYPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Encryption
    encryption_key: SecretStr = Field(description="Base64-encoded 32-byte AES-256 key")
    associated_data: SecretStr | None = Field(
        default=None,
        description="Base64-encoded 80-byte associated data (defaults to the legacy constant)",
    )
    fixed_nonce: bool = Field(
        default=False,
        description="Derive one nonce per epoch instead of salting each derivation",
    )

    # Cache
    cache_max_entries: int = Field(
        default=MAX_CACHE_SIZE, ge=0, description="Maximum cached decryptions"
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
