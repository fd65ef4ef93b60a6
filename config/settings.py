"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE STORAGE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (preferred for storage writes)"
    )
    storage_bucket: str = Field(
        default="inventory",
        min_length=1,
        description="Storage bucket holding CSVs and scan logs"
    )

    # ===================
    # SCANNER
    # ===================
    default_namespace: str = Field(
        default="default",
        min_length=1,
        description="Namespace (folder) used when none is given"
    )
    autosave_debounce_ms: int = Field(
        default=800,
        ge=0,
        le=10000,
        description="Quiet period before the scan log is persisted"
    )
    scan_log_key_templates: list[str] = Field(
        default=[
            "{prefix}/scans/{stem}.json",
            "{prefix}/scans/{name}.json",
            "{prefix}/{stem}.scans.json",
        ],
        min_length=1,
        description="Scan log keys tried in order; the first one is written"
    )
    diagnostic_snippet_chars: int = Field(
        default=200,
        ge=20,
        le=2000,
        description="Characters of the first line reported on parse failure"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        description="Origins allowed to call the API from a browser"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def autosave_debounce_seconds(self) -> float:
        return self.autosave_debounce_ms / 1000

    @property
    def storage_key(self) -> str:
        """Key used for storage calls (service key when available)."""
        return self.supabase_service_key or self.supabase_key


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
