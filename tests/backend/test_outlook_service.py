"""Tests for the outlook service."""
from datetime import date, datetime, timedelta, timezone

import pytest

from backend.data.outlook_cache_repository import InMemoryOutlookCache
from backend.data.synthetic_weather_repository import SyntheticWeatherRepository
from backend.services.outlook_service import OutlookService
from climate_engine.config import RISK_TYPES
from climate_engine.errors import InsufficientData, InvalidParameter, UpstreamDataError
from climate_engine.models.observation import RawObservation, WeatherSeries

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


class CountingProvider:
    """Synthetic provider that records its calls."""

    def __init__(self, seed=7):
        self.inner = SyntheticWeatherRepository(seed=seed)
        self.calls = []

    def fetch_series(self, latitude, longitude, start_date, end_date, historical=False):
        self.calls.append((start_date, end_date, historical))
        return self.inner.fetch_series(latitude, longitude, start_date, end_date, historical)


class FailingProvider:
    def fetch_series(self, latitude, longitude, start_date, end_date, historical=False):
        raise UpstreamDataError("provider down")


class BrokenCache:
    def get(self, key):
        raise RuntimeError("cache offline")

    def put(self, key, value):
        raise RuntimeError("cache offline")


class StaleCache:
    """Returns a row written with an older response layout."""

    def __init__(self):
        self.stored = {}

    def get(self, key):
        return {"metadata": {"latitude": 1.0}}

    def put(self, key, value):
        self.stored[key] = value


class GappyProvider:
    """Every third day has no temperature readings."""

    def fetch_series(self, latitude, longitude, start_date, end_date, historical=False):
        observations = []
        day = start_date
        index = 0
        while day <= end_date:
            for hour in range(24):
                observations.append(
                    RawObservation(
                        timestamp=datetime(day.year, day.month, day.day, hour),
                        temperature=None if index % 3 == 2 else 15.0 + hour * 0.3,
                        precipitation=0.0,
                    )
                )
            day += timedelta(days=1)
            index += 1
        return WeatherSeries(observations=observations, source="gappy")


class EmptyProvider:
    def fetch_series(self, latitude, longitude, start_date, end_date, historical=False):
        return WeatherSeries(observations=[], source="empty")


@pytest.fixture
def provider():
    return CountingProvider()


@pytest.fixture
def service(provider):
    return OutlookService(provider=provider, cache=InMemoryOutlookCache(), clock=fixed_clock)


class TestValidation:
    """Tests for input validation."""

    @pytest.mark.parametrize("window", [0, 45, -3])
    def test_window_out_of_bounds(self, service, window):
        """Test windows outside [1, 30] are rejected, not clamped."""
        with pytest.raises(InvalidParameter):
            service.compute_outlook(52.37, 4.89, "2025-06-05", window)

    @pytest.mark.parametrize("lat,lon", [(95.0, 0.0), (-90.5, 0.0), (0.0, 181.0), (0.0, -200.0)])
    def test_coordinates_out_of_range(self, service, lat, lon):
        """Test latitude and longitude bounds."""
        with pytest.raises(InvalidParameter):
            service.compute_outlook(lat, lon, "2025-06-05", 7)

    @pytest.mark.parametrize("value", ["2025-13-01", "tomorrow", "2025/06/05", "2025-02-30"])
    def test_unparseable_date(self, service, value):
        """Test dates that are not valid YYYY-MM-DD."""
        with pytest.raises(InvalidParameter):
            service.compute_outlook(52.37, 4.89, value, 7)

    def test_unknown_units(self, service):
        """Test only metric and imperial are accepted."""
        with pytest.raises(InvalidParameter):
            service.compute_outlook(52.37, 4.89, "2025-06-05", 7, "kelvin")

    def test_date_beyond_lead_time(self, service):
        """Test targets more than a year ahead are rejected."""
        with pytest.raises(InvalidParameter):
            service.compute_outlook(52.37, 4.89, "2027-01-01", 7)

    def test_invalid_input_does_not_call_provider(self, service, provider):
        """Test validation happens before any fetch."""
        with pytest.raises(InvalidParameter):
            service.compute_outlook(52.37, 4.89, "2025-06-05", 0)
        assert provider.calls == []


class TestComputeOutlook:
    """Tests for end-to-end outlook computation."""

    def test_forecast_outlook(self, service, provider):
        """Test a near-term target samples consecutive forecast days."""
        result = service.compute_outlook(52.37, 4.89, "2025-06-03", 7)

        assert result.metadata.mode == "forecast"
        assert result.metadata.samples_n == 7
        assert result.metadata.sample_start == "2025-06-03"
        assert result.metadata.sample_end == "2025-06-09"
        assert result.metadata.synthetic is True
        assert result.metadata.generated_at == NOW.isoformat()
        assert provider.calls == [(date(2025, 6, 3), date(2025, 6, 9), False)]
        assert [label.risk_type for label in result.risk_labels] == RISK_TYPES

    def test_historical_outlook(self, service, provider):
        """Test a distant target samples the same days across prior years."""
        result = service.compute_outlook(52.37, 4.89, "2025-12-25", 15)

        assert result.metadata.mode == "historical"
        assert result.metadata.years_used == list(range(2015, 2025))
        assert result.metadata.samples_n == 150
        assert result.metadata.doy == 359
        assert len(provider.calls) == 10
        assert all(historical for _, _, historical in provider.calls)

    def test_summary_invariants(self, service):
        """Test percentile order, non-negative std and bounded probabilities."""
        result = service.compute_outlook(-33.87, 151.21, "2025-12-25", 15)

        assert [s.variable for s in result.summary][:3] == ["t_mean", "t_max", "t_min"]
        for s in result.summary:
            assert s.p10 <= s.p25 <= s.p50 <= s.p75 <= s.p90
            assert s.std >= 0.0
        for p in result.probabilities:
            assert 0.0 <= p.probability_percent <= 100.0
        for label in result.risk_labels:
            assert 0.0 <= label.probability_percent <= 100.0

    def test_risk_probability_matches_exceedance(self, service):
        """Test very_hot reports the t_max >= 33°C exceedance."""
        result = service.compute_outlook(25.0, 55.0, "2025-12-25", 15)

        hot = next(label for label in result.risk_labels if label.risk_type == "very_hot")
        exceedance = next(p for p in result.probabilities if p.metric == "t_max" and p.threshold == 33.0)
        assert hot.probability_percent == exceedance.probability_percent

    def test_idempotent_without_cache(self):
        """Test identical inputs give identical summaries and labels."""
        service = OutlookService(provider=SyntheticWeatherRepository(seed=11), cache=None, clock=fixed_clock)

        first = service.compute_outlook(40.0, -3.7, "2025-10-10", 9)
        second = service.compute_outlook(40.0, -3.7, "2025-10-10", 9)

        assert first.summary == second.summary
        assert first.risk_labels == second.risk_labels
        assert first.probabilities == second.probabilities

    def test_imperial_units(self):
        """Test imperial output converts summaries and labels."""
        metric_service = OutlookService(provider=SyntheticWeatherRepository(seed=5), clock=fixed_clock)
        metric = metric_service.compute_outlook(40.0, -3.7, "2025-10-10", 9, "metric")
        imperial = metric_service.compute_outlook(40.0, -3.7, "2025-10-10", 9, "imperial")

        m = next(s for s in metric.summary if s.variable == "t_max")
        i = next(s for s in imperial.summary if s.variable == "t_max")
        assert i.unit == "°F"
        assert i.mean == pytest.approx(m.mean * 9 / 5 + 32, abs=0.02)
        assert imperial.metadata.units == "imperial"
        assert "°F" in imperial.risk_labels[0].rule_applied

    def test_raw_sample_snapshot(self, service):
        """Test the snapshot echoes the last sampled days."""
        result = service.compute_outlook(52.37, 4.89, "2025-06-03", 7)

        assert [row.day for row in result.raw_sample_snapshot] == [
            "2025-06-05", "2025-06-06", "2025-06-07", "2025-06-08", "2025-06-09",
        ]
        assert result.raw_sample_snapshot[0].values["t_max"] is not None


class TestFailures:
    """Tests for error propagation and degraded inputs."""

    def test_upstream_error_propagates(self):
        """Test a provider failure fails the whole request."""
        service = OutlookService(provider=FailingProvider(), clock=fixed_clock)
        with pytest.raises(UpstreamDataError):
            service.compute_outlook(52.37, 4.89, "2025-06-03", 7)

    def test_days_without_temperature_are_skipped(self):
        """Test skipped days are counted, not fabricated."""
        service = OutlookService(provider=GappyProvider(), clock=fixed_clock)
        result = service.compute_outlook(52.37, 4.89, "2025-06-03", 9)

        assert result.metadata.samples_n == 6
        assert result.metadata.skipped_days == 3

    def test_no_usable_days(self):
        """Test InsufficientData when every day is empty."""
        service = OutlookService(provider=EmptyProvider(), clock=fixed_clock)
        with pytest.raises(InsufficientData):
            service.compute_outlook(52.37, 4.89, "2025-06-03", 7)

    def test_single_day_is_degraded(self, service):
        """Test a one-day window flags its summaries as degraded."""
        result = service.compute_outlook(52.37, 4.89, "2025-06-03", 1)

        assert result.metadata.samples_n == 1
        assert "t_max" in result.metadata.degraded_variables
        assert all(s.degenerate for s in result.summary)


class TestCaching:
    """Tests for cache interaction."""

    def test_second_call_served_from_cache(self, service, provider):
        """Test the provider is not called again for a cached key."""
        first = service.compute_outlook(52.37, 4.89, "2025-06-03", 7)
        calls = len(provider.calls)
        second = service.compute_outlook(52.37, 4.89, "2025-06-03", 7)

        assert len(provider.calls) == calls
        assert second == first

    def test_units_are_part_of_the_key(self, service, provider):
        """Test metric and imperial are cached separately."""
        service.compute_outlook(52.37, 4.89, "2025-06-03", 7, "metric")
        service.compute_outlook(52.37, 4.89, "2025-06-03", 7, "imperial")

        assert len(provider.calls) == 2

    def test_broken_cache_is_bypassed(self, provider):
        """Test a failing cache store never fails the request."""
        service = OutlookService(provider=provider, cache=BrokenCache(), clock=fixed_clock)
        result = service.compute_outlook(52.37, 4.89, "2025-06-03", 7)

        assert result.metadata.samples_n == 7

    def test_stale_cache_row_is_recomputed(self, provider):
        """Test a cached row with the wrong shape is ignored and replaced."""
        cache = StaleCache()
        service = OutlookService(provider=provider, cache=cache, clock=fixed_clock)
        result = service.compute_outlook(52.37, 4.89, "2025-06-03", 7, "metric")

        assert result.metadata.samples_n == 7
        assert len(provider.calls) == 1
        assert len(cache.stored) == 1
