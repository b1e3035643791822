"""Tests for meteorological indices."""
import pytest

from climate_engine.utils.meteo_utils import dew_point, heat_index, wind_chill


class TestDewPoint:
    """Tests for the Magnus dew point."""

    def test_saturated_air(self):
        """Test that the dew point equals the temperature at 100% humidity."""
        assert dew_point(20.0, 100.0) == pytest.approx(20.0)

    def test_mid_humidity(self):
        """Test a textbook value: 20°C at 50% is about 9.3°C."""
        assert dew_point(20.0, 50.0) == pytest.approx(9.26, abs=0.05)

    def test_never_above_temperature(self):
        """Test dew point stays at or below air temperature."""
        for rh in (5.0, 30.0, 60.0, 90.0):
            assert dew_point(-5.0, rh) <= -5.0 + 1e-9


class TestHeatIndex:
    """Tests for the NWS heat index."""

    def test_hot_humid_day(self):
        """Test 90°F at 50% humidity feels like about 95°F."""
        assert 34.0 < heat_index(32.2, 50.0) < 35.5

    def test_mild_day_uses_simple_formula(self):
        """Test the Steadman average below 80°F."""
        assert heat_index(20.0, 50.0) == pytest.approx(19.36, abs=0.05)


class TestWindChill:
    """Tests for the wind chill index."""

    def test_cold_windy(self):
        """Test -10°C at 20 km/h is about -17.9°C."""
        assert wind_chill(-10.0, 20.0 / 3.6) == pytest.approx(-17.86, abs=0.05)

    def test_warm_air_unchanged(self):
        """Test that the temperature is returned above 10°C."""
        assert wind_chill(15.0, 10.0) == 15.0

    def test_calm_air_unchanged(self):
        """Test that the temperature is returned below 4.8 km/h."""
        assert wind_chill(-5.0, 1.0) == -5.0
