"""Application configuration and settings management."""

from typing import Annotated, Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Mapbox Optimization API accepts at most 12 coordinates per trip request.
MAPBOX_MAX_TRIP_STOPS = 12


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROMANA_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Romana Dispatch API"
    api_prefix: str = "/api"
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "https://www.romana-natural-products.org",
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

    # Mapbox configuration
    mapbox_access_token: Optional[str] = Field(
        default=None,
        description="Mapbox token used for trip optimization.",
    )
    mapbox_base_url: str = Field(default="https://api.mapbox.com")
    mapbox_profile: Literal["driving", "driving-traffic", "walking", "cycling"] = Field(
        default="driving",
        description="Mapbox routing profile used for optimized trips.",
    )
    mapbox_timeout_seconds: float = Field(default=30.0, gt=0.0)
    mapbox_max_retries: int = Field(default=2, ge=0)
    mapbox_backoff_seconds: float = Field(default=0.5, ge=0.0)

    # Dispatch location used as the start and end of every optimized trip.
    depot_latitude: float = Field(default=-6.7924, ge=-90.0, le=90.0)
    depot_longitude: float = Field(default=39.2083, ge=-180.0, le=180.0)
    max_stops_per_route: int = Field(
        default=MAPBOX_MAX_TRIP_STOPS,
        ge=1,
        le=MAPBOX_MAX_TRIP_STOPS,
        description=(
            "Orders per planned route. The depot is sent twice per trip, so only routes of "
            "at most 10 stops fit the Mapbox coordinate limit; larger ones keep input order."
        ),
    )

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
