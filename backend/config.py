"""Backend configuration."""
from datetime import date
from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Data paths
    project_root: Path = Path(__file__).parent.parent
    data_dir: Path = project_root / "data"
    cache_dir: Path = data_dir / "outlook_cache"

    # API settings
    api_title: str = "Climate Outlook API"
    api_version: str = "1.0.0"
    cors_origins: list = ["http://localhost:5173", "http://localhost:3000"]
    log_level: str = "INFO"

    # Request defaults and bounds
    default_window_days: int = 15
    min_window_days: int = 1
    max_window_days: int = 30
    max_lead_days: int = 366
    default_units: str = "metric"
    raw_snapshot_days: int = 5

    # Provider coverage
    forecast_horizon_days: int = 16
    near_term_past_days: int = 7
    history_years: int = 10
    archive_start: date = date(1940, 1, 1)
    archive_lag_days: int = 5

    # Weather provider
    weather_provider: str = "open-meteo"  # open-meteo | synthetic
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    archive_url: str = "https://archive-api.open-meteo.com/v1/archive"
    request_timeout: float = 20.0
    synthetic_seed: int = 42

    # Outlook cache
    cache_backend: str = "memory"  # memory | file | none
    cache_capacity: int = 256

    class Config:
        env_prefix = "OUTLOOK_"


settings = Settings()
