"""Tests for the Open-Meteo weather repository."""
from datetime import date, datetime

import pytest
import requests

from backend.data import weather_repository
from backend.data.weather_repository import OpenMeteoWeatherRepository
from climate_engine.errors import UpstreamDataError


def payload(**overrides):
    data = {
        "latitude": 52.375,
        "longitude": 4.875,
        "utc_offset_seconds": 7200,
        "hourly": {
            "time": ["2025-07-14T00:00", "2025-07-14T01:00", "2025-07-14T02:00"],
            "temperature_2m": [15.2, 14.8, None],
            "relative_humidity_2m": [80, 82, 85],
            "precipitation": [0.0, 0.4, 0.1],
            "rain": [0.0, 0.4, 0.1],
            "snowfall": [0.0, 0.0, 0.7],
            "wind_speed_10m": [3.1, 2.9, 2.5],
            "wind_gusts_10m": [6.0, 5.5, 5.1],
            "cloud_cover": [100, 90, 75],
            "uv_index": [0.0, 0.0, 0.0],
        },
        "daily": {
            "time": ["2025-07-14"],
            "sunrise": ["2025-07-14T05:39"],
            "sunset": ["2025-07-14T22:00"],
        },
    }
    data.update(overrides)
    return data


class FakeResponse:
    def __init__(self, body=None, status_code=200, invalid_json=False):
        self.body = body
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.body


@pytest.fixture
def captured(monkeypatch):
    """Patch requests.get and record the calls."""
    calls = []

    def install(response=None, exc=None):
        def fake_get(url, params=None, timeout=None):
            calls.append({"url": url, "params": params, "timeout": timeout})
            if exc is not None:
                raise exc
            return response

        monkeypatch.setattr(weather_repository.requests, "get", fake_get)
        return calls

    return install


class TestParsePayload:
    """Tests for payload parsing."""

    def test_observations_and_sun_times(self):
        """Test hourly rows become observations and daily rows become sun times."""
        series = OpenMeteoWeatherRepository().parse_payload(payload())

        assert len(series.observations) == 3
        first = series.observations[0]
        assert first.timestamp == datetime(2025, 7, 14, 0, 0)
        assert first.temperature == 15.2
        assert first.humidity == 80.0
        assert series.observations[2].temperature is None
        assert series.sun_times[date(2025, 7, 14)] == (
            datetime(2025, 7, 14, 5, 39),
            datetime(2025, 7, 14, 22, 0),
        )
        assert series.utc_offset_seconds == 7200
        assert series.synthetic is False

    def test_snowfall_converted_to_water_equivalent(self):
        """Test 0.7 cm of snow becomes 1 mm of water."""
        series = OpenMeteoWeatherRepository().parse_payload(payload())
        assert series.observations[2].snowfall == pytest.approx(1.0)

    def test_missing_variable_is_none(self):
        """Test a variable absent from the payload becomes None, not zero."""
        body = payload()
        del body["hourly"]["uv_index"]
        series = OpenMeteoWeatherRepository().parse_payload(body)

        assert all(o.uv_index is None for o in series.observations)

    def test_missing_sun_times(self):
        """Test empty sunrise/sunset strings parse to None."""
        body = payload(daily={"time": ["2025-07-14"], "sunrise": [""], "sunset": [None]})
        series = OpenMeteoWeatherRepository().parse_payload(body)

        assert series.sun_times[date(2025, 7, 14)] == (None, None)

    def test_length_mismatch_is_malformed(self):
        """Test a column shorter than the time axis is rejected."""
        body = payload()
        body["hourly"]["temperature_2m"] = [15.0]

        with pytest.raises(UpstreamDataError):
            OpenMeteoWeatherRepository().parse_payload(body)

    def test_missing_timestamp_is_malformed(self):
        """Test a null or empty entry on the hourly time axis is rejected."""
        for bad in (None, ""):
            body = {"hourly": {"time": ["2025-07-14T00:00", bad], "temperature_2m": [10.0, 11.0]}}
            with pytest.raises(UpstreamDataError):
                OpenMeteoWeatherRepository().parse_payload(body)

    def test_missing_hourly_block(self):
        """Test a payload without hourly data is rejected."""
        with pytest.raises(UpstreamDataError):
            OpenMeteoWeatherRepository().parse_payload({"latitude": 1.0})

    def test_provider_error_body(self):
        """Test Open-Meteo's error object surfaces as UpstreamDataError."""
        with pytest.raises(UpstreamDataError) as exc_info:
            OpenMeteoWeatherRepository().parse_payload({"error": True, "reason": "Latitude out of range"})
        assert "Latitude out of range" in exc_info.value.message


class TestFetchSeries:
    """Tests for the HTTP call."""

    def test_forecast_endpoint_and_params(self, captured):
        """Test near-term ranges query the forecast endpoint with metric units."""
        calls = captured(FakeResponse(payload()))
        repo = OpenMeteoWeatherRepository(forecast_url="https://forecast.test", archive_url="https://archive.test")

        series = repo.fetch_series(52.37, 4.89, date(2025, 7, 14), date(2025, 7, 14))

        assert calls[0]["url"] == "https://forecast.test"
        params = calls[0]["params"]
        assert params["start_date"] == "2025-07-14"
        assert params["wind_speed_unit"] == "ms"
        assert params["timezone"] == "auto"
        assert "temperature_2m" in params["hourly"]
        assert series.source == "open-meteo-forecast"

    def test_archive_endpoint_for_history(self, captured):
        """Test historical ranges query the archive endpoint."""
        calls = captured(FakeResponse(payload()))
        repo = OpenMeteoWeatherRepository(forecast_url="https://forecast.test", archive_url="https://archive.test")

        series = repo.fetch_series(52.37, 4.89, date(2015, 7, 7), date(2015, 7, 21), historical=True)

        assert calls[0]["url"] == "https://archive.test"
        assert series.source == "open-meteo-archive"

    def test_http_error(self, captured):
        """Test a non-success status raises UpstreamDataError."""
        captured(FakeResponse(status_code=503))
        with pytest.raises(UpstreamDataError) as exc_info:
            OpenMeteoWeatherRepository().fetch_series(52.37, 4.89, date(2025, 7, 14), date(2025, 7, 14))
        assert exc_info.value.retryable is True

    def test_timeout(self, captured):
        """Test a timeout raises UpstreamDataError."""
        captured(exc=requests.Timeout("read timed out"))
        with pytest.raises(UpstreamDataError):
            OpenMeteoWeatherRepository().fetch_series(52.37, 4.89, date(2025, 7, 14), date(2025, 7, 14))

    def test_invalid_json(self, captured):
        """Test an unparseable body raises UpstreamDataError."""
        captured(FakeResponse(invalid_json=True))
        with pytest.raises(UpstreamDataError):
            OpenMeteoWeatherRepository().fetch_series(52.37, 4.89, date(2025, 7, 14), date(2025, 7, 14))
