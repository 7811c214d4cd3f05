from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_out_dir() -> str:
    # Keep logs in backend/out by default to avoid polluting source trees.
    return str(Path(__file__).resolve().parents[1] / "out")


class Settings(BaseSettings):
    """Validated settings (env-driven), keeping config out of code for easy extension."""

    model_config = SettingsConfigDict(
        # Support both "repo root/.env" and "backend/.env" (local dev)
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # The public OSRM demo server; point this at a local instance for real use.
    osrm_base_url: str = Field(default="https://router.project-osrm.org", alias="OSRM_BASE_URL")
    osrm_profile: str = Field(default="driving", alias="OSRM_PROFILE")
    osrm_timeout_s: float = Field(default=10.0, ge=0.5, le=120.0, alias="OSRM_TIMEOUT_S")

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # 1 keeps path resolution sequential, one request in flight at a time.
    route_resolve_concurrency: int = Field(default=1, ge=1, le=32, alias="ROUTE_RESOLVE_CONCURRENCY")
    route_cache_ttl_s: int = Field(default=600, alias="ROUTE_CACHE_TTL_S")
    route_cache_max_entries: int = Field(default=256, alias="ROUTE_CACHE_MAX_ENTRIES")

    timezone: str = Field(default="Asia/Tehran", alias="RISKMAP_TIMEZONE")
    locale: str = Field(default="fa", alias="RISKMAP_LOCALE")
    forecast_seed: int | None = Field(default=None, alias="FORECAST_SEED")

    date_window_buffer_h: float = Field(default=12.0, ge=0.0, le=72.0, alias="DATE_WINDOW_BUFFER_H")
    max_waypoints_per_route: int = Field(default=5, ge=1, le=25, alias="MAX_WAYPOINTS_PER_ROUTE")
    default_patrol_count: int = Field(default=3, ge=1, alias="DEFAULT_PATROL_COUNT")
    max_patrol_count: int = Field(default=20, ge=1, le=100, alias="MAX_PATROL_COUNT")

    @model_validator(mode="after")
    def _normalise(self) -> "Settings":
        loc = str(self.locale or "fa").strip().lower()
        if loc not in {"fa", "en"}:
            loc = "fa"
        self.locale = loc
        if self.default_patrol_count > self.max_patrol_count:
            self.default_patrol_count = self.max_patrol_count
        return self


settings = Settings()
