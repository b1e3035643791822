"""Deterministic synthetic weather for demos and tests."""
from datetime import date, datetime, time, timedelta
from typing import List
import numpy as np

from backend.config import settings
from climate_engine.models.observation import RawObservation, WeatherSeries


class SyntheticWeatherRepository:
    """
    Generates plausible hourly weather from a seasonal + diurnal model.

    The generator for each request is seeded from the configured seed and
    the request itself, so the same (location, range) always yields the
    same series. Sun times are left to the astronomical fallback.
    """

    name = "synthetic"

    def __init__(self, seed: int = None):
        self.seed = settings.synthetic_seed if seed is None else seed

    def _rng(self, latitude: float, longitude: float, start_date: date) -> np.random.Generator:
        return np.random.default_rng(
            [
                self.seed,
                int(round((latitude + 90.0) * 1e4)),
                int(round((longitude + 180.0) * 1e4)),
                start_date.toordinal(),
            ]
        )

    def fetch_series(
        self,
        latitude: float,
        longitude: float,
        start_date: date,
        end_date: date,
        historical: bool = False,
    ) -> WeatherSeries:
        """Build an hourly series for [start_date, end_date]."""
        rng = self._rng(latitude, longitude, start_date)
        hemisphere = 1.0 if latitude >= 0 else -1.0
        base = 27.0 - 0.45 * abs(latitude)
        amplitude = 2.0 + 0.25 * abs(latitude)

        observations: List[RawObservation] = []
        current = start_date
        while current <= end_date:
            doy = current.timetuple().tm_yday
            season = hemisphere * np.cos(2.0 * np.pi * (doy - 200) / 365.25)
            day_offset = rng.normal(0.0, 2.5)
            humidity_base = float(np.clip(rng.normal(65.0, 12.0), 20.0, 98.0))
            wet_day = rng.random() < 0.3
            rain_total = rng.exponential(6.0) if wet_day else 0.0
            rain_hours = rng.choice(24, size=6, replace=False) if wet_day else np.array([], dtype=int)
            wind_base = rng.gamma(2.0, 1.8)
            cloud_base = rng.uniform(0.0, 100.0)

            for hour in range(24):
                diurnal = np.sin(2.0 * np.pi * (hour - 9) / 24.0)
                temperature = base + amplitude * season + 5.0 * diurnal + day_offset + rng.normal(0.0, 0.6)
                humidity = float(np.clip(humidity_base - 12.0 * diurnal + rng.normal(0.0, 3.0), 5.0, 100.0))
                precipitation = rain_total / 6.0 if hour in rain_hours else 0.0
                snowfall = precipitation if temperature < 0.0 else 0.0
                wind = max(0.0, wind_base + 1.5 * diurnal + rng.normal(0.0, 0.8))
                uv = max(0.0, 10.0 * np.cos(np.radians(latitude)) * diurnal * (1.0 - cloud_base / 200.0))
                observations.append(
                    RawObservation(
                        timestamp=datetime.combine(current, time(hour=hour)),
                        temperature=round(float(temperature), 1),
                        precipitation=round(float(precipitation), 2),
                        rain=round(float(precipitation - snowfall), 2),
                        snowfall=round(float(snowfall), 2),
                        wind_speed=round(float(wind), 1),
                        wind_gusts=round(float(wind * rng.uniform(1.2, 1.8)), 1),
                        cloud_cover=round(float(np.clip(cloud_base + rng.normal(0.0, 10.0), 0.0, 100.0)), 0),
                        humidity=round(humidity, 0),
                        uv_index=round(float(uv), 1),
                    )
                )
            current += timedelta(days=1)

        return WeatherSeries(
            observations=observations,
            sun_times={},
            utc_offset_seconds=int(round(longitude / 15.0)) * 3600,
            source=self.name,
            synthetic=True,
        )
