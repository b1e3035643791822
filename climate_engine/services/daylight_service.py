"""Service for resolving the day/night boundary of a local calendar day."""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from astral import Observer
from astral.sun import sun

from climate_engine.config import (
    DAYLIGHT_DEPRESSION_ANGLE,
    FALLBACK_SUNRISE_HOUR,
    FALLBACK_SUNSET_HOUR,
)
from climate_engine.models.observation import SunWindow

logger = logging.getLogger(__name__)


class DaylightService:
    """
    Resolves a SunWindow for each local calendar day.

    This is the single place where missing or invalid sunrise/sunset data is
    replaced. Resolution order:
      1. provider sunrise/sunset, when both are present and valid
      2. astronomical sunrise/sunset from astral, shifted to local time
      3. fixed 06:00-18:00 local boundary
    """

    def __init__(
        self,
        depression_angle: float = DAYLIGHT_DEPRESSION_ANGLE,
        fallback_sunrise_hour: float = FALLBACK_SUNRISE_HOUR,
        fallback_sunset_hour: float = FALLBACK_SUNSET_HOUR,
    ):
        """
        Initialize the daylight service.

        Args:
            depression_angle: Sun depression angle for the astronomical estimate.
                             0 = geometric sunrise/sunset
                             6 = civil twilight
            fallback_sunrise_hour: Local hour used when nothing else is available
            fallback_sunset_hour: Local hour used when nothing else is available
        """
        self.depression_angle = depression_angle
        self.fallback_sunrise_hour = fallback_sunrise_hour
        self.fallback_sunset_hour = fallback_sunset_hour

        # (lat, lon, offset, date) -> (sunrise_local, sunset_local) or None
        self._cache: dict = {}

    def resolve_sun_window(
        self,
        day: date,
        sunrise: Optional[datetime] = None,
        sunset: Optional[datetime] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        utc_offset_seconds: int = 0,
    ) -> SunWindow:
        """
        Build the SunWindow for a local calendar day.

        Args:
            day: Local calendar day
            sunrise: Provider sunrise (local, naive) if available
            sunset: Provider sunset (local, naive) if available
            latitude: Location latitude for the astronomical estimate
            longitude: Location longitude for the astronomical estimate
            utc_offset_seconds: Offset of local time from UTC

        Returns:
            SunWindow with `source` set to provider, astronomical or fixed
        """
        if self._is_valid(day, sunrise, sunset):
            return SunWindow(day=day, sunrise=sunrise, sunset=sunset, source="provider")

        if latitude is not None and longitude is not None:
            local = self.get_sunrise_sunset_local(latitude, longitude, day, utc_offset_seconds)
            if local is not None and self._is_valid(day, *local):
                logger.debug("Using astronomical sun times for %s", day)
                return SunWindow(day=day, sunrise=local[0], sunset=local[1], source="astronomical")

        logger.debug("Using fixed day/night boundary for %s", day)
        return self.fixed_window(day)

    def fixed_window(self, day: date) -> SunWindow:
        """Fixed local boundary used when sunrise/sunset are unavailable."""
        midnight = datetime.combine(day, time.min)
        return SunWindow(
            day=day,
            sunrise=midnight + timedelta(hours=self.fallback_sunrise_hour),
            sunset=midnight + timedelta(hours=self.fallback_sunset_hour),
            source="fixed",
        )

    def get_sunrise_sunset_local(
        self,
        latitude: float,
        longitude: float,
        day: date,
        utc_offset_seconds: int = 0,
    ) -> Optional[Tuple[datetime, datetime]]:
        """
        Calculate sunrise and sunset as naive local datetimes.

        Returns:
            (sunrise, sunset) or None for polar day / polar night.
        """
        cache_key = (round(latitude, 2), round(longitude, 2), utc_offset_seconds, day)
        if cache_key in self._cache:
            return self._cache[cache_key]

        observer = Observer(latitude=latitude, longitude=longitude)
        local_tz = timezone(timedelta(seconds=utc_offset_seconds))

        try:
            sun_times = sun(
                observer,
                date=day,
                tzinfo=local_tz,
                dawn_dusk_depression=self.depression_angle,
            )
            if self.depression_angle > 0:
                rise, set_ = sun_times["dawn"], sun_times["dusk"]
            else:
                rise, set_ = sun_times["sunrise"], sun_times["sunset"]
            result = (
                rise.replace(tzinfo=None),
                set_.replace(tzinfo=None),
            )
        except ValueError:
            # Polar day or polar night - sun doesn't rise/set
            result = None

        self._cache[cache_key] = result
        return result

    @staticmethod
    def _is_valid(day: date, sunrise: Optional[datetime], sunset: Optional[datetime]) -> bool:
        if sunrise is None or sunset is None:
            return False
        if sunrise.date() != day or sunset.date() != day:
            return False
        return sunrise < sunset

    def clear_cache(self) -> None:
        """Clear the sunrise/sunset cache."""
        self._cache.clear()
