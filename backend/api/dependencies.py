"""FastAPI dependencies for dependency injection."""
from functools import lru_cache

from backend.config import settings
from backend.data.outlook_cache_repository import build_outlook_cache
from backend.data.synthetic_weather_repository import SyntheticWeatherRepository
from backend.data.weather_repository import OpenMeteoWeatherRepository
from backend.services.export_service import ExportService
from backend.services.outlook_service import OutlookService


@lru_cache()
def get_weather_repository():
    """Get cached weather provider for the configured backend."""
    if settings.weather_provider == "synthetic":
        return SyntheticWeatherRepository()
    if settings.weather_provider == "open-meteo":
        return OpenMeteoWeatherRepository()
    raise ValueError(f"Unknown weather provider: {settings.weather_provider}")


@lru_cache()
def get_outlook_cache():
    """Get cached outlook cache store (None when caching is disabled)."""
    return build_outlook_cache()


@lru_cache()
def get_outlook_service() -> OutlookService:
    """Get cached outlook service instance."""
    return OutlookService(
        provider=get_weather_repository(),
        cache=get_outlook_cache(),
    )


def get_export_service() -> ExportService:
    """Get export service instance."""
    return ExportService()
