"""Observation-level data structures: raw samples, sun windows and daily metrics."""
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple
from attrs import define, field


@define(frozen=True)
class RawObservation:
    """One hourly measurement at local (wall clock) time."""

    timestamp: datetime
    temperature: Optional[float] = None  # °C
    precipitation: Optional[float] = None  # mm
    rain: Optional[float] = None  # mm
    snowfall: Optional[float] = None  # mm water equivalent
    wind_speed: Optional[float] = None  # m/s
    wind_gusts: Optional[float] = None  # m/s
    cloud_cover: Optional[float] = None  # %
    humidity: Optional[float] = None  # %
    uv_index: Optional[float] = None


@define(frozen=True)
class SunWindow:
    """Day/night boundary for one local calendar day."""

    day: date
    sunrise: datetime
    sunset: datetime
    source: str = "provider"  # provider | astronomical | fixed

    @property
    def sunrise_hour(self) -> float:
        """Sunrise as local decimal hours."""
        return _decimal_hours(self.sunrise)

    @property
    def sunset_hour(self) -> float:
        """Sunset as local decimal hours."""
        return _decimal_hours(self.sunset)

    def is_daytime(self, timestamp: datetime) -> bool:
        """True if timestamp falls in [sunrise, sunset)."""
        hour = _decimal_hours(timestamp)
        return self.sunrise_hour <= hour < self.sunset_hour


@define
class WeatherSeries:
    """Provider payload for one date range, already parsed at the ingestion boundary."""

    observations: List[RawObservation]
    # day -> (sunrise, sunset); either side may be missing
    sun_times: Dict[date, Tuple[Optional[datetime], Optional[datetime]]] = field(factory=dict)
    utc_offset_seconds: int = 0
    source: str = "unknown"
    synthetic: bool = False


@define(frozen=True)
class DailyMetrics:
    """Per-day reduction of the hourly observations."""

    day: date
    temp_min: float
    temp_max: float
    temp_mean: float
    day_mean_temp: float
    night_mean_temp: float
    precipitation_sum: float
    rain_sum: float
    snow_sum: float
    wind_speed_mean: Optional[float] = None
    wind_speed_max: Optional[float] = None
    wind_gusts_max: Optional[float] = None
    cloud_cover_mean: Optional[float] = None
    humidity_mean: Optional[float] = None
    uv_index_max: Optional[float] = None
    dew_point_mean: Optional[float] = None
    heat_index_max: Optional[float] = None
    wind_chill_min: Optional[float] = None
    observation_count: int = 0
    day_sample_count: int = 0
    night_sample_count: int = 0
    sun_source: str = "provider"


def _decimal_hours(ts: datetime) -> float:
    return ts.hour + ts.minute / 60.0 + ts.second / 3600.0
