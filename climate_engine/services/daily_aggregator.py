"""Service for reducing hourly observations into per-day metrics."""
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple
import numpy as np

from climate_engine.errors import InsufficientData
from climate_engine.models.observation import DailyMetrics, RawObservation, SunWindow, WeatherSeries
from climate_engine.services.daylight_service import DaylightService
from climate_engine.utils.meteo_utils import dew_point, heat_index, wind_chill

logger = logging.getLogger(__name__)


def _mean(values: List[float]) -> Optional[float]:
    return float(np.mean(values)) if values else None


def _max(values: List[float]) -> Optional[float]:
    return float(np.max(values)) if values else None


def _present(observations: List[RawObservation], attr: str) -> List[float]:
    return [getattr(o, attr) for o in observations if getattr(o, attr) is not None]


def _sum_zero_filled(observations: List[RawObservation], attr: str) -> float:
    return float(sum(getattr(o, attr) or 0.0 for o in observations))


class DailyAggregator:
    """Service for building DailyMetrics from one day of hourly observations.

    Sum-type fields (precipitation, rain, snow) treat a missing reading as 0.
    Mean-type fields exclude missing readings from the denominator and are
    None when every reading is missing.
    """

    def __init__(self, daylight_service: DaylightService = None):
        self.daylight_service = daylight_service or DaylightService()

    def aggregate_day(
        self,
        observations: List[RawObservation],
        sun_window: SunWindow,
    ) -> DailyMetrics:
        """
        Reduce one local calendar day of observations.

        Args:
            observations: Observations whose timestamp falls on sun_window.day
            sun_window: Day/night boundary for the day

        Returns:
            DailyMetrics for the day

        Raises:
            InsufficientData: if no observation carries a temperature
        """
        with_temp = [o for o in observations if o.temperature is not None]
        if not with_temp:
            raise InsufficientData(
                f"No temperature observations for {sun_window.day.isoformat()}",
                details={"day": sun_window.day.isoformat()},
            )

        temps = np.array([o.temperature for o in with_temp], dtype=np.float64)
        temp_min = float(temps.min())
        temp_max = float(temps.max())

        day_temps = [o.temperature for o in with_temp if sun_window.is_daytime(o.timestamp)]
        night_temps = [o.temperature for o in with_temp if not sun_window.is_daytime(o.timestamp)]

        # Empty bucket falls back to the day's extreme; bucket means are clipped
        # into [temp_min, temp_max] to absorb float summation error.
        day_mean = _mean(day_temps)
        night_mean = _mean(night_temps)
        day_mean = temp_max if day_mean is None else min(max(day_mean, temp_min), temp_max)
        night_mean = temp_min if night_mean is None else min(max(night_mean, temp_min), temp_max)
        temp_mean = min(max(float(temps.mean()), temp_min), temp_max)

        wind_mean = _mean(_present(observations, "wind_speed"))
        humidity_mean = _mean(_present(observations, "humidity"))

        return DailyMetrics(
            day=sun_window.day,
            temp_min=temp_min,
            temp_max=temp_max,
            temp_mean=temp_mean,
            day_mean_temp=day_mean,
            night_mean_temp=night_mean,
            precipitation_sum=_sum_zero_filled(observations, "precipitation"),
            rain_sum=_sum_zero_filled(observations, "rain"),
            snow_sum=_sum_zero_filled(observations, "snowfall"),
            wind_speed_mean=wind_mean,
            wind_speed_max=_max(_present(observations, "wind_speed")),
            wind_gusts_max=_max(_present(observations, "wind_gusts")),
            cloud_cover_mean=_mean(_present(observations, "cloud_cover")),
            humidity_mean=humidity_mean,
            uv_index_max=_max(_present(observations, "uv_index")),
            dew_point_mean=dew_point(temp_mean, humidity_mean) if humidity_mean is not None else None,
            heat_index_max=heat_index(temp_max, humidity_mean) if humidity_mean is not None else None,
            # Missing wind is treated as calm air
            wind_chill_min=wind_chill(temp_min, wind_mean if wind_mean is not None else 0.0),
            observation_count=len(observations),
            day_sample_count=len(day_temps),
            night_sample_count=len(night_temps),
            sun_source=sun_window.source,
        )

    def aggregate_series(
        self,
        series: WeatherSeries,
        days: Iterable[date],
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Tuple[List[DailyMetrics], List[date]]:
        """
        Aggregate every requested day of a provider series.

        Days without usable observations are skipped, not fabricated.

        Returns:
            (daily metrics in day order, skipped days)
        """
        by_day: Dict[date, List[RawObservation]] = defaultdict(list)
        for obs in series.observations:
            by_day[obs.timestamp.date()].append(obs)

        metrics: List[DailyMetrics] = []
        skipped: List[date] = []

        for day in days:
            sunrise, sunset = series.sun_times.get(day, (None, None))
            sun_window = self.daylight_service.resolve_sun_window(
                day,
                sunrise,
                sunset,
                latitude=latitude,
                longitude=longitude,
                utc_offset_seconds=series.utc_offset_seconds,
            )
            observations = sorted(by_day.get(day, []), key=lambda o: o.timestamp)
            try:
                metrics.append(self.aggregate_day(observations, sun_window))
            except InsufficientData as e:
                logger.warning("Skipping day: %s", e.message)
                skipped.append(day)

        return metrics, skipped
