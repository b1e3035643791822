"""Service for choosing which calendar days feed an outlook."""
import calendar
import logging
from datetime import date, timedelta
from typing import List

from climate_engine.errors import DataUnavailable, InvalidParameter
from climate_engine.models.window import DataAvailability, DateRange, SampleWindow

logger = logging.getLogger(__name__)


def anchor_date(target: date, year: int) -> date:
    """Same month/day as `target` in another year (Feb 29 maps to Feb 28)."""
    if target.month == 2 and target.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return target.replace(year=year)


class WindowSampler:
    """
    Selects the sampling window for a target date.

    Forecast mode: the target lies inside the forecast endpoint's coverage;
    the window is `window_days` consecutive days starting at the target,
    cut at the last forecast day.

    Historical mode: for each prior year, the same month/day +/- window_days // 2.
    Years whose neighborhood leaves the archive are replaced by the nearest
    year that fits, keeping month/day (anchored clamp).
    """

    def select_window(
        self,
        target_date: date,
        window_days: int,
        availability: DataAvailability,
    ) -> SampleWindow:
        """
        Args:
            target_date: Requested day
            window_days: Window size in days (>= 1)
            availability: Provider coverage relative to today

        Returns:
            SampleWindow with one range (forecast) or one range per year (historical)

        Raises:
            InvalidParameter: if window_days < 1
            DataUnavailable: if no range fits inside provider coverage
        """
        if window_days < 1:
            raise InvalidParameter(
                f"Window must be at least 1 day, got {window_days}",
                details={"window_days": window_days},
            )

        if availability.forecast_start <= target_date <= availability.forecast_end:
            return self._forecast_window(target_date, window_days, availability)
        return self._historical_window(target_date, window_days, availability)

    def _forecast_window(
        self,
        target_date: date,
        window_days: int,
        availability: DataAvailability,
    ) -> SampleWindow:
        end = min(target_date + timedelta(days=window_days - 1), availability.forecast_end)
        if end - target_date < timedelta(days=window_days - 1):
            logger.info(
                "Forecast window for %s cut at horizon end %s (%d of %d days)",
                target_date,
                end,
                (end - target_date).days + 1,
                window_days,
            )
        span = DateRange(start=target_date, end=end)
        return SampleWindow(
            start_date=span.start,
            end_date=span.end,
            uses_historical_years=False,
            ranges=[span],
            years=[target_date.year],
        )

    def _historical_window(
        self,
        target_date: date,
        window_days: int,
        availability: DataAvailability,
    ) -> SampleWindow:
        half = timedelta(days=window_days // 2)
        archive_start = availability.archive_start
        archive_end = availability.archive_end

        latest = archive_end.year
        while latest >= archive_start.year and anchor_date(target_date, latest) + half > archive_end:
            latest -= 1

        earliest = archive_start.year
        while earliest <= latest and anchor_date(target_date, earliest) - half < archive_start:
            earliest += 1

        if earliest > latest:
            raise DataUnavailable(
                f"No {window_days}-day window around {target_date.strftime('%m-%d')} "
                f"fits inside archive coverage {archive_start} to {archive_end}",
                details={
                    "target_date": target_date.isoformat(),
                    "archive_start": archive_start.isoformat(),
                    "archive_end": archive_end.isoformat(),
                },
            )

        history = max(availability.history_years, 1)
        start_year = target_date.year - 1
        if start_year > latest:
            start_year = latest
        if start_year < earliest:
            logger.info("Target year %d predates archive; anchoring at %d", target_date.year, earliest)
            years = list(range(earliest, min(earliest + history, latest + 1)))
        else:
            years = list(range(max(start_year - history + 1, earliest), start_year + 1))

        ranges: List[DateRange] = []
        for year in years:
            anchor = anchor_date(target_date, year)
            ranges.append(DateRange(start=anchor - half, end=anchor + half))

        return SampleWindow(
            start_date=ranges[0].start,
            end_date=ranges[-1].end,
            uses_historical_years=True,
            ranges=ranges,
            years=years,
        )
