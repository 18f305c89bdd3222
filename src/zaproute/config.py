"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
import logging

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ZAPROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "ZapRoute Manifest Import API"
    api_prefix: str = "/api"
    log_level: str = "INFO"
    data_root: Path = Field(default=Path("data"), description="Root directory for local data files.")
    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL of the tenant database. Defaults to a SQLite file under data_root.",
    )
    database_echo: bool = False

    # HTTP server
    host: str = "0.0.0.0"
    port: int = Field(
        default=8000,
        validation_alias=AliasChoices("ZAPROUTE_PORT", "PORT"),
        description="Listening port; hosting platforms provide it as PORT.",
    )

    # Import transaction budgets
    import_acquire_timeout_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Maximum time to wait for a database connection when starting an import.",
    )
    import_execution_timeout_seconds: float = Field(
        default=20.0,
        ge=0.0,
        description="Maximum wall-clock time for the whole import transaction.",
    )
    route_date_pin_hour_utc: int = Field(
        default=12,
        ge=0,
        le=23,
        description="Hour (UTC) every route date is pinned to, avoiding timezone day drift.",
    )
    default_layout: str = Field(default="diario_viagem", description="Manifest layout used when none is given.")

    # Driver notifications
    notify_drivers: bool = True
    notifications_table: str = "driver_notifications"

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("port", mode="before")
    @classmethod
    def _fallback_port(cls, value: Any) -> Any:
        try:
            return int(value)
        except (TypeError, ValueError):
            logging.warning(f"Invalid PORT value '{value}', using default 8000")
            return 8000

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        # Return empty tuple if value is None or empty
        return tuple()

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_root / 'zaproute.db'}"


settings = Settings()
