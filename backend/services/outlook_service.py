"""Service for computing climate outlooks."""
import logging
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple, Union
import numpy as np
from pydantic import ValidationError

from backend.config import Settings, settings as default_settings
from backend.data.outlook_cache_repository import OutlookCacheKey
from backend.data.weather_repository import OpenMeteoWeatherRepository
from backend.schemas.outlook import (
    ExceedanceProbabilitySchema,
    OutlookMetadata,
    OutlookResponse,
    RawSampleDay,
    RiskLabelSchema,
    VariableSummarySchema,
)
from climate_engine.config import DISCLAIMER, REQUIRED_VARIABLES, VARIABLES
from climate_engine.errors import InsufficientData, InvalidParameter
from climate_engine.models.observation import DailyMetrics
from climate_engine.models.outlook import ExceedanceProbability, VariableSummary
from climate_engine.models.window import DataAvailability, SampleWindow
from climate_engine.services.daily_aggregator import DailyAggregator
from climate_engine.services.risk_classifier import RiskClassifier
from climate_engine.services.summarizer import Summarizer, metrics_frame
from climate_engine.services.unit_converter import (
    UnitSystem,
    convert_probability,
    convert_summary,
    convert_value,
    quantity_of,
    unit_label,
)
from climate_engine.services.window_sampler import WindowSampler

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return round(float(value), digits)


class OutlookService:
    """
    Computes an outlook end to end: validate, sample, fetch, aggregate,
    summarize, classify, convert, cache.

    The provider, cache store and clock are injected. A cache store that
    fails is logged and bypassed; a provider that fails fails the request.
    """

    def __init__(
        self,
        provider=None,
        cache=None,
        clock: Callable[[], datetime] = None,
        config: Settings = None,
        sampler: WindowSampler = None,
        aggregator: DailyAggregator = None,
        summarizer: Summarizer = None,
        classifier: RiskClassifier = None,
    ):
        self.provider = provider or OpenMeteoWeatherRepository()
        self.cache = cache
        self.clock = clock or _utc_now
        self.config = config or default_settings
        self.sampler = sampler or WindowSampler()
        self.aggregator = aggregator or DailyAggregator()
        self.summarizer = summarizer or Summarizer()
        self.classifier = classifier or RiskClassifier()

    # Validation

    def _validate(
        self,
        lat: float,
        lon: float,
        target_date: Union[str, date],
        window_days: int,
        units: Union[str, UnitSystem],
        today: date,
    ) -> Tuple[date, UnitSystem]:
        if lat is None or not math.isfinite(lat) or not -90.0 <= lat <= 90.0:
            raise InvalidParameter("Latitude must be between -90 and 90", details={"lat": lat})
        if lon is None or not math.isfinite(lon) or not -180.0 <= lon <= 180.0:
            raise InvalidParameter("Longitude must be between -180 and 180", details={"lon": lon})

        if isinstance(target_date, date):
            target = target_date
        else:
            if not isinstance(target_date, str) or not _DATE_PATTERN.match(target_date):
                raise InvalidParameter("Date must be in YYYY-MM-DD format", details={"date": target_date})
            try:
                target = date.fromisoformat(target_date)
            except ValueError as e:
                raise InvalidParameter(f"Invalid date: {target_date}", details={"date": target_date}) from e

        lo, hi = self.config.min_window_days, self.config.max_window_days
        if isinstance(window_days, bool) or not isinstance(window_days, int) or not lo <= window_days <= hi:
            raise InvalidParameter(
                f"Window must be between {lo} and {hi} days",
                details={"window": window_days, "min": lo, "max": hi},
            )

        try:
            unit_system = UnitSystem(units)
        except ValueError as e:
            raise InvalidParameter("Units must be 'metric' or 'imperial'", details={"units": units}) from e

        latest = today + timedelta(days=self.config.max_lead_days)
        if target > latest:
            raise InvalidParameter(
                f"Date must be on or before {latest.isoformat()}",
                details={"date": target.isoformat(), "latest": latest.isoformat()},
            )

        return target, unit_system

    def _availability(self, today: date) -> DataAvailability:
        return DataAvailability(
            today=today,
            forecast_horizon_days=self.config.forecast_horizon_days,
            near_term_past_days=self.config.near_term_past_days,
            archive_start=self.config.archive_start,
            archive_lag_days=self.config.archive_lag_days,
            history_years=self.config.history_years,
        )

    # Cache

    def _cache_get(self, key: OutlookCacheKey) -> Optional[OutlookResponse]:
        if self.cache is None:
            return None
        try:
            cached = self.cache.get(key)
        except Exception as e:
            logger.warning("Outlook cache read failed, recomputing: %s", e)
            return None
        if cached is None:
            logger.debug("Outlook cache miss for %s", key)
            return None
        try:
            response = OutlookResponse.model_validate(cached)
        except ValidationError as e:
            logger.warning("Outlook cache entry for %s is unreadable, recomputing: %s", key, e)
            return None
        logger.debug("Outlook cache hit for %s", key)
        return response

    def _cache_put(self, key: OutlookCacheKey, response: OutlookResponse) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(key, response.model_dump(mode="json"))
        except Exception as e:
            logger.warning("Outlook cache write failed: %s", e)

    # Pipeline

    def _collect_daily_metrics(
        self,
        lat: float,
        lon: float,
        window: SampleWindow,
    ) -> Tuple[List[DailyMetrics], int, List[str], bool]:
        """Fetch and aggregate every range; any provider failure propagates."""
        metrics: List[DailyMetrics] = []
        skipped = 0
        sources: List[str] = []
        synthetic = False

        for span in window.ranges:
            series = self.provider.fetch_series(
                lat, lon, span.start, span.end, historical=window.uses_historical_years
            )
            day_metrics, skipped_days = self.aggregator.aggregate_series(
                series, span.days(), latitude=lat, longitude=lon
            )
            metrics.extend(day_metrics)
            skipped += len(skipped_days)
            if series.source not in sources:
                sources.append(series.source)
            synthetic = synthetic or series.synthetic

        return metrics, skipped, sources, synthetic

    def compute_outlook(
        self,
        lat: float,
        lon: float,
        target_date: Union[str, date],
        window_days: int = None,
        units: Union[str, UnitSystem] = None,
    ) -> OutlookResponse:
        """
        Compute the climate outlook for a location and day.

        Raises:
            InvalidParameter: bad coordinates, date, window or units
            DataUnavailable: no window fits inside provider coverage
            UpstreamDataError: the weather provider failed
            InsufficientData: no sampled day had usable observations
        """
        now = self.clock()
        today = now.date()
        window_days = self.config.default_window_days if window_days is None else window_days
        units = units or self.config.default_units
        target, unit_system = self._validate(lat, lon, target_date, window_days, units, today)

        key = OutlookCacheKey.build(lat, lon, target.isoformat(), window_days, unit_system.value)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        window = self.sampler.select_window(target, window_days, self._availability(today))
        logger.info(
            "Outlook %.4f,%.4f %s: %s window, %d range(s)",
            lat, lon, target, window.mode, len(window.ranges),
        )

        daily_metrics, skipped, sources, synthetic = self._collect_daily_metrics(lat, lon, window)
        if not daily_metrics:
            raise InsufficientData(
                "No sampled day had usable observations",
                details={"skipped_days": skipped},
            )

        frame = metrics_frame(daily_metrics)
        metric_labels = {v: unit_label(quantity_of(v), UnitSystem.METRIC) for v in VARIABLES}
        summaries, omitted = self.summarizer.summarize_frame(frame, metric_labels)
        missing = [v for v in REQUIRED_VARIABLES if v not in summaries]
        if missing:
            raise InsufficientData(
                f"No samples for required variables: {', '.join(missing)}",
                details={"variables": missing},
            )

        queries = self.classifier.exceedance_queries(summaries)
        exceedances = [
            self.summarizer.exceedance(frame[q.metric].to_numpy(), q, summaries[q.metric])
            for q in queries
        ]
        labels = self.classifier.classify(summaries, exceedances, unit_system)

        approximated = {e.metric for e in exceedances if not e.empirical}
        degraded = [
            v for v, s in summaries.items() if s.degenerate or v in approximated
        ]

        days = sorted(m.day for m in daily_metrics)
        metadata = OutlookMetadata(
            latitude=round(lat, 4),
            longitude=round(lon, 4),
            date_requested=target.isoformat(),
            doy=target.timetuple().tm_yday,
            window_days=window_days,
            mode=window.mode,
            years_used=window.years,
            samples_n=len(daily_metrics),
            skipped_days=skipped,
            units=unit_system.value,
            sample_start=days[0].isoformat(),
            sample_end=days[-1].isoformat(),
            data_source=", ".join(sources),
            synthetic=synthetic,
            uses_extrapolation=False,
            degraded_variables=degraded,
            disclaimer=DISCLAIMER,
            generated_at=now.isoformat(),
        )

        response = OutlookResponse(
            metadata=metadata,
            summary=[self._summary_schema(s, unit_system) for s in summaries.values()],
            probabilities=[self._probability_schema(e, unit_system) for e in exceedances],
            risk_labels=[RiskLabelSchema(**label.to_dict()) for label in labels],
            raw_sample_snapshot=self._snapshot(frame, unit_system),
        )
        if omitted:
            logger.info("Variables without samples: %s", ", ".join(omitted))

        self._cache_put(key, response)
        return response

    # Output formatting

    @staticmethod
    def _summary_schema(summary: VariableSummary, units: UnitSystem) -> VariableSummarySchema:
        converted = convert_summary(summary, UnitSystem.METRIC, units)
        data = converted.to_dict()
        for name in ("mean", "std", "p10", "p25", "p50", "p75", "p90"):
            data[name] = _round(data[name])
        return VariableSummarySchema(**data)

    @staticmethod
    def _probability_schema(result: ExceedanceProbability, units: UnitSystem) -> ExceedanceProbabilitySchema:
        converted = convert_probability(result, UnitSystem.METRIC, units)
        return ExceedanceProbabilitySchema(
            metric=converted.metric,
            threshold=_round(converted.threshold),
            comparator=converted.comparator,
            unit=unit_label(quantity_of(converted.metric), units),
            probability_percent=converted.probability_percent,
            empirical=converted.empirical,
        )

    def _snapshot(self, frame, units: UnitSystem) -> List[RawSampleDay]:
        """Last K sampled days, values in the requested units."""
        tail = frame.sort_values("day").tail(self.config.raw_snapshot_days)
        rows = []
        for record in tail.to_dict(orient="records"):
            values: Dict[str, Optional[float]] = {}
            for variable in VARIABLES:
                value = record[variable]
                if value is None or np.isnan(value):
                    values[variable] = None
                    continue
                values[variable] = _round(
                    convert_value(float(value), quantity_of(variable), UnitSystem.METRIC, units)
                )
            rows.append(RawSampleDay(day=record["day"].isoformat(), values=values))
        return rows
