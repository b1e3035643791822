"""Repository for hourly weather data from the Open-Meteo API."""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import requests

from backend.config import settings
from climate_engine.errors import UpstreamDataError
from climate_engine.models.observation import RawObservation, WeatherSeries

logger = logging.getLogger(__name__)

# Open-Meteo hourly variable -> RawObservation field
HOURLY_VARIABLES = {
    "temperature_2m": "temperature",
    "relative_humidity_2m": "humidity",
    "precipitation": "precipitation",
    "rain": "rain",
    "snowfall": "snowfall",
    "wind_speed_10m": "wind_speed",
    "wind_gusts_10m": "wind_gusts",
    "cloud_cover": "cloud_cover",
    "uv_index": "uv_index",
}
DAILY_VARIABLES = ["sunrise", "sunset"]

# Snowfall is reported in cm of snow; 7 cm of snow ~ 10 mm of water
SNOW_CM_TO_MM_WATER = 10.0 / 7.0


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        raise ValueError("hourly time axis has a missing timestamp")
    return datetime.fromisoformat(value)


class OpenMeteoWeatherRepository:
    """
    Fetches hourly observations for a date range.

    Historical ranges go to the archive endpoint, near-term ranges to the
    forecast endpoint. Every failure (transport, status, payload shape)
    surfaces as UpstreamDataError; nothing is retried here.
    """

    name = "open-meteo"

    def __init__(
        self,
        forecast_url: str = None,
        archive_url: str = None,
        timeout: float = None,
        session: requests.Session = None,
    ):
        self.forecast_url = forecast_url or settings.forecast_url
        self.archive_url = archive_url or settings.archive_url
        self.timeout = timeout or settings.request_timeout
        self.session = session

    def fetch_series(
        self,
        latitude: float,
        longitude: float,
        start_date: date,
        end_date: date,
        historical: bool = False,
    ) -> WeatherSeries:
        """
        Fetch hourly data for [start_date, end_date] at local wall-clock time.

        Raises:
            UpstreamDataError: on any provider failure
        """
        url = self.archive_url if historical else self.forecast_url
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": ",".join(HOURLY_VARIABLES),
            "daily": ",".join(DAILY_VARIABLES),
            "temperature_unit": "celsius",
            "wind_speed_unit": "ms",
            "precipitation_unit": "mm",
            "timezone": "auto",
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        }

        logger.info("Fetching %s to %s from %s", start_date, end_date, url)
        get = self.session.get if self.session is not None else requests.get
        try:
            resp = get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.error("Weather provider request failed: %s", e)
            raise UpstreamDataError(
                f"Weather provider request failed: {e}",
                details={"url": url, "start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            ) from e
        except ValueError as e:
            logger.error("Weather provider returned invalid JSON: %s", e)
            raise UpstreamDataError(
                "Weather provider returned invalid JSON",
                details={"url": url},
            ) from e

        return self.parse_payload(payload, source=f"{self.name}-{'archive' if historical else 'forecast'}")

    def parse_payload(self, payload: Dict[str, Any], source: str = "open-meteo") -> WeatherSeries:
        """
        Convert an Open-Meteo JSON payload to a WeatherSeries.

        Raises:
            UpstreamDataError: if the payload does not have the expected shape
        """
        if not isinstance(payload, dict):
            raise UpstreamDataError("Weather payload is not a JSON object")
        if payload.get("error"):
            raise UpstreamDataError(
                f"Weather provider error: {payload.get('reason', 'unknown')}",
                details={"reason": payload.get("reason")},
            )

        hourly = payload.get("hourly")
        if not isinstance(hourly, dict) or not isinstance(hourly.get("time"), list):
            raise UpstreamDataError("Weather payload has no hourly time axis")

        try:
            observations = self._parse_hourly(hourly)
            sun_times = self._parse_daily(payload.get("daily") or {})
            utc_offset = int(payload.get("utc_offset_seconds", 0))
        except (TypeError, ValueError) as e:
            raise UpstreamDataError(f"Malformed weather payload: {e}") from e

        return WeatherSeries(
            observations=observations,
            sun_times=sun_times,
            utc_offset_seconds=utc_offset,
            source=source,
            synthetic=False,
        )

    @staticmethod
    def _parse_hourly(hourly: Dict[str, Any]) -> List[RawObservation]:
        times = hourly["time"]
        columns: Dict[str, List[Optional[float]]] = {}
        for api_name, field_name in HOURLY_VARIABLES.items():
            values = hourly.get(api_name)
            if values is None:
                # Variable not served for this range
                values = [None] * len(times)
            if len(values) != len(times):
                raise ValueError(f"{api_name} has {len(values)} values for {len(times)} timestamps")
            columns[field_name] = values

        observations = []
        for i, ts in enumerate(times):
            row = {
                name: (None if values[i] is None else float(values[i]))
                for name, values in columns.items()
            }
            if row["snowfall"] is not None:
                row["snowfall"] *= SNOW_CM_TO_MM_WATER
            observations.append(RawObservation(timestamp=_parse_timestamp(ts), **row))
        return observations

    @staticmethod
    def _parse_daily(daily: Dict[str, Any]) -> Dict[date, tuple]:
        days = daily.get("time") or []
        sunrises = daily.get("sunrise") or [None] * len(days)
        sunsets = daily.get("sunset") or [None] * len(days)
        sun_times = {}
        for day, rise, set_ in zip(days, sunrises, sunsets):
            sun_times[date.fromisoformat(day)] = (_parse_time(rise), _parse_time(set_))
        return sun_times
