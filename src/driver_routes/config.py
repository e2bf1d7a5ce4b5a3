"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DRIVER_ROUTES_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Driver Routes API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for the session token file.")
    session_file_name: str = Field(default="session.json", description="Token file name under data_root.")

    backend_base_url: str = Field(
        default="https://manus-store-production.up.railway.app",
        description="Base URL of the route backend exposing tRPC procedures under /api/trpc.",
    )
    backend_timeout_seconds: float = Field(default=30.0, gt=0.0)

    directions_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/directions/json",
        description="Directions API endpoint returning step-level instructions.",
    )
    directions_api_key: Optional[str] = Field(default=None, description="API key for the directions service.")
    directions_max_retries: int = Field(default=3, ge=0)
    directions_backoff_seconds: float = Field(default=1.0, ge=0.0)

    maps_host: str = Field(default="www.google.com/maps", description="Host and path prefix for navigation links.")
    max_waypoints: int = Field(default=9, ge=0, description="Waypoint limit of the navigation deep link.")
    arrival_threshold_km: float = Field(default=0.1, gt=0.0)

    location_update_interval_seconds: float = Field(default=30.0, ge=0.0)
    location_distance_interval_m: float = Field(default=50.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("backend_base_url", "directions_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
