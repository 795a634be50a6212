from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ReservationSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="forbid")

    upstream_base_url: str = "https://production.tablecheck.com/v2"
    reservation_base_url: str = "https://www.tablecheck.com"
    shop_universe_id: str = "57e0b91744aea12988000001"
    log_level: str = "info"

    # Fallback search anchor (Tokyo) when a place name cannot be resolved.
    default_lat: float = 35.6762
    default_lng: float = 139.6503
    default_geo_distance: str = "5km"

    # Fixed upstream search parameters
    service_mode: str = "dining"
    venue_type: str = "all"
    per_page: int = 50
    availability_days_limit: int = 7

    # None leaves upstream calls unbounded.
    upstream_timeout_ms: int | None = None

    tracing_enabled: bool = True
    # Falls back to the OTEL_EXPORTER_OTLP_* environment when unset.
    otlp_endpoint: str | None = None


SETTINGS = ReservationSettings()
