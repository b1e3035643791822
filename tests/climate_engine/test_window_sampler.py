"""Tests for the day-window sampler."""
from datetime import date

import pytest

from climate_engine.errors import DataUnavailable, InvalidParameter
from climate_engine.models.window import DataAvailability
from climate_engine.services.window_sampler import WindowSampler, anchor_date

TODAY = date(2025, 6, 1)


@pytest.fixture
def sampler():
    return WindowSampler()


@pytest.fixture
def availability():
    return DataAvailability(today=TODAY)


class TestForecastWindow:
    """Tests for targets inside the forecast horizon."""

    def test_forward_contiguous_window(self, sampler, availability):
        """Test the window starts at the target and runs forward."""
        window = sampler.select_window(date(2025, 6, 5), 7, availability)

        assert window.uses_historical_years is False
        assert window.mode == "forecast"
        assert window.start_date == date(2025, 6, 5)
        assert window.end_date == date(2025, 6, 11)
        assert len(window.days()) == 7

    def test_window_cut_at_horizon(self, sampler, availability):
        """Test the window stops at the last forecast day."""
        window = sampler.select_window(date(2025, 6, 14), 7, availability)

        assert window.end_date == availability.forecast_end == date(2025, 6, 16)
        assert len(window.days()) == 3

    def test_recent_past_uses_forecast(self, sampler, availability):
        """Test that days just before today are served by the forecast endpoint."""
        window = sampler.select_window(date(2025, 5, 28), 3, availability)
        assert window.mode == "forecast"


class TestHistoricalWindow:
    """Tests for targets beyond the forecast horizon."""

    def test_same_day_across_prior_years(self, sampler, availability):
        """Test one ±7 day range per year, ten years, oldest first."""
        window = sampler.select_window(date(2025, 12, 25), 15, availability)

        assert window.uses_historical_years is True
        assert window.years == list(range(2015, 2025))
        assert len(window.ranges) == 10
        for year, span in zip(window.years, window.ranges):
            assert span.start == date(year, 12, 18)
            assert span.end == date(year + 1, 1, 1)
        assert len(window.days()) == 150

    def test_anchored_clamp_keeps_month_day(self, sampler, availability):
        """Test a year whose window passes the archive end is replaced by an earlier year."""
        window = sampler.select_window(date(2026, 5, 26), 15, availability)

        # 2025-05-26 + 7 days is past the archive end (2025-05-27)
        assert window.years[-1] == 2024
        for year, span in zip(window.years, window.ranges):
            assert span.start == date(year, 5, 19)
            assert span.end == date(year, 6, 2)
        assert all(span.end <= availability.archive_end for span in window.ranges)

    def test_leap_day_maps_to_feb_28(self, sampler, availability):
        """Test Feb 29 anchors on Feb 28 in common years."""
        window = sampler.select_window(date(2024, 2, 29), 1, availability)

        by_year = {span.start.year: span.start for span in window.ranges}
        assert by_year[2023] == date(2023, 2, 28)
        assert by_year[2020] == date(2020, 2, 29)

    def test_target_before_archive_moves_forward(self, sampler, availability):
        """Test a target older than the archive is anchored at its first valid year."""
        window = sampler.select_window(date(1900, 7, 1), 15, availability)

        assert window.years[0] == 1940
        assert window.ranges[0].start == date(1940, 6, 24)
        assert window.ranges[0].start >= availability.archive_start

    def test_no_coverage_raises(self, sampler):
        """Test DataUnavailable when the archive is too short for the window."""
        tiny = DataAvailability(today=TODAY, archive_start=date(2025, 5, 22))

        with pytest.raises(DataUnavailable):
            sampler.select_window(date(2025, 1, 15), 15, tiny)

    def test_history_years_configurable(self, sampler):
        """Test the number of sampled years follows the availability setting."""
        availability = DataAvailability(today=TODAY, history_years=3)
        window = sampler.select_window(date(2025, 9, 1), 5, availability)

        assert window.years == [2022, 2023, 2024]


class TestValidation:
    """Tests for window-size validation."""

    def test_zero_window_rejected(self, sampler, availability):
        """Test that an empty window is rejected."""
        with pytest.raises(InvalidParameter):
            sampler.select_window(date(2025, 6, 5), 0, availability)

    def test_anchor_date_regular_day(self):
        """Test anchor_date keeps month and day."""
        assert anchor_date(date(2025, 7, 14), 2001) == date(2001, 7, 14)
