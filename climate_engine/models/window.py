"""Sampling window data structures."""
from datetime import date, timedelta
from typing import Iterator, List
from attrs import define, field


@define(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def days(self) -> Iterator[date]:
        """Iterate over every calendar day in the range."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1


@define(frozen=True)
class DataAvailability:
    """Coverage of the weather-data provider relative to "today"."""

    today: date
    forecast_horizon_days: int = 16
    near_term_past_days: int = 7
    archive_start: date = date(1940, 1, 1)
    archive_lag_days: int = 5
    history_years: int = 10

    @property
    def forecast_start(self) -> date:
        return self.today - timedelta(days=self.near_term_past_days)

    @property
    def forecast_end(self) -> date:
        """Last day served by the forecast endpoint."""
        return self.today + timedelta(days=self.forecast_horizon_days - 1)

    @property
    def archive_end(self) -> date:
        """Most recent day available in the historical archive."""
        return self.today - timedelta(days=self.archive_lag_days)


@define(frozen=True)
class SampleWindow:
    """Days selected for one outlook."""

    start_date: date
    end_date: date
    uses_historical_years: bool
    ranges: List[DateRange] = field(factory=list)
    years: List[int] = field(factory=list)

    @property
    def mode(self) -> str:
        return "historical" if self.uses_historical_years else "forecast"

    def days(self) -> List[date]:
        """All sampled calendar days, range by range."""
        return [d for r in self.ranges for d in r.days()]
