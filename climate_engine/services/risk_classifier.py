"""Service for mapping window statistics to categorical risk labels."""
import logging
from typing import Dict, List, Optional, Sequence

from climate_engine.config import (
    COMPOSITE_PERCENTILE,
    LOWER_TAIL_PERCENTILE,
    UPPER_TAIL_PERCENTILE,
)
from climate_engine.models.outlook import (
    ExceedanceProbability,
    ExceedanceQuery,
    RiskLabel,
    VariableSummary,
)
from climate_engine.models.rules import RiskThresholds, ThresholdRule
from climate_engine.services.unit_converter import (
    UnitSystem,
    convert_spread,
    convert_value,
    quantity_of,
    unit_label,
)

logger = logging.getLogger(__name__)

SYMBOLS = {">=": "≥", ">": ">", "<=": "≤", "<": "<"}

LOW = "low"
MEDIUM = "medium"
HIGH = "high"


class RiskClassifier:
    """
    Stateless rule table producing one RiskLabel per canonical risk type.

    Output is always the five labels in the order very_hot, very_cold,
    very_windy, very_wet, very_uncomfortable. Every probability is the
    exceedance probability of the rule's threshold over the sampled days.
    Summaries and thresholds are metric; only rule texts are rendered in
    the requested unit system.
    """

    def __init__(self, thresholds: RiskThresholds = None):
        self.thresholds = thresholds or RiskThresholds()

    # Queries

    def windy_threshold(self, summaries: Dict[str, VariableSummary]) -> float:
        """Effective windy threshold: the local p75, never below the floor."""
        summary = summaries.get(self.thresholds.windy_metric)
        if summary is None:
            return self.thresholds.windy_floor
        return max(self.thresholds.windy_floor, summary.p75)

    def _uncomfortable_query(self, summaries: Dict[str, VariableSummary]) -> ExceedanceQuery:
        # Without humidity there is no heat index; fall back to the air temperature
        metric = "heat_index" if "heat_index" in summaries else "t_max"
        return ExceedanceQuery(metric, self.thresholds.uncomfortable_heat_index, ">=")

    def _rule_queries(self, summaries: Dict[str, VariableSummary]) -> Dict[str, ExceedanceQuery]:
        t = self.thresholds
        return {
            t.hot.risk_type: ExceedanceQuery(t.hot.metric, t.hot.threshold, t.hot.comparator),
            t.cold.risk_type: ExceedanceQuery(t.cold.metric, t.cold.threshold, t.cold.comparator),
            "very_windy": ExceedanceQuery(t.windy_metric, self.windy_threshold(summaries), ">="),
            t.wet.risk_type: ExceedanceQuery(t.wet.metric, t.wet.threshold, t.wet.comparator),
            "very_uncomfortable": self._uncomfortable_query(summaries),
        }

    def exceedance_queries(self, summaries: Dict[str, VariableSummary]) -> List[ExceedanceQuery]:
        """
        Threshold questions to evaluate over the window.

        One per risk type plus the rain chance (`precip_mm >= 1`), restricted
        to variables that have a summary.
        """
        queries = list(self._rule_queries(summaries).values())
        queries.append(ExceedanceQuery("precip_mm", self.thresholds.rain_chance_threshold, ">="))
        return [q for q in queries if q.metric in summaries]

    # Classification

    def classify(
        self,
        summaries: Dict[str, VariableSummary],
        exceedances: Sequence[ExceedanceProbability],
        units: UnitSystem = UnitSystem.METRIC,
    ) -> List[RiskLabel]:
        """
        Classify the window.

        Args:
            summaries: Metric summaries keyed by variable
            exceedances: Results for `exceedance_queries(summaries)`
            units: Unit system of the rule texts

        Returns:
            Five RiskLabels in canonical order
        """
        queries = self._rule_queries(summaries)
        t = self.thresholds
        return [
            self._classify_threshold(t.hot, summaries, exceedances, queries, units),
            self._classify_threshold(t.cold, summaries, exceedances, queries, units),
            self._classify_windy(summaries, exceedances, queries["very_windy"], units),
            self._classify_threshold(t.wet, summaries, exceedances, queries, units),
            self._classify_uncomfortable(summaries, exceedances, queries["very_uncomfortable"], units),
        ]

    @staticmethod
    def _probability(
        exceedances: Sequence[ExceedanceProbability],
        query: ExceedanceQuery,
    ) -> Optional[float]:
        for result in exceedances:
            if result.matches(query):
                return result.probability_percent
        return None

    def _classify_threshold(
        self,
        rule: ThresholdRule,
        summaries: Dict[str, VariableSummary],
        exceedances: Sequence[ExceedanceProbability],
        queries: Dict[str, ExceedanceQuery],
        units: UnitSystem,
    ) -> RiskLabel:
        summary = summaries.get(rule.metric)
        probability = self._probability(exceedances, queries[rule.risk_type])
        if summary is None or probability is None:
            return self._no_data(rule.risk_type, rule.label, rule.metric)

        if rule.upper_tail:
            tail = summary.percentile(UPPER_TAIL_PERCENTILE)
            level = self._level(tail >= rule.breakpoint(HIGH), tail >= rule.breakpoint(MEDIUM))
        else:
            tail = summary.percentile(LOWER_TAIL_PERCENTILE)
            level = self._level(tail <= rule.breakpoint(HIGH), tail <= rule.breakpoint(MEDIUM))

        return RiskLabel(
            risk_type=rule.risk_type,
            level=level,
            probability_percent=probability,
            rule_applied=f"{rule.label} {self._describe(rule.metric, rule.comparator, rule.threshold, units)}",
            metric=rule.metric,
        )

    def _classify_windy(
        self,
        summaries: Dict[str, VariableSummary],
        exceedances: Sequence[ExceedanceProbability],
        query: ExceedanceQuery,
        units: UnitSystem,
    ) -> RiskLabel:
        t = self.thresholds
        summary = summaries.get(t.windy_metric)
        probability = self._probability(exceedances, query)
        if summary is None or probability is None:
            return self._no_data("very_windy", "Daily max wind speed", t.windy_metric)

        tail = summary.percentile(UPPER_TAIL_PERCENTILE)
        level = self._level(tail >= query.threshold + t.windy_high_margin, tail >= t.windy_floor)

        floor = self._format(t.windy_metric, t.windy_floor, units)
        margin = convert_spread(t.windy_high_margin, quantity_of(t.windy_metric), UnitSystem.METRIC, units)
        return RiskLabel(
            risk_type="very_windy",
            level=level,
            probability_percent=probability,
            rule_applied=(
                f"Daily max wind speed {self._describe(t.windy_metric, '>=', query.threshold, units)} "
                f"(local 75th percentile, floor {floor}); high when the 90th percentile "
                f"is {round(margin, 1):g} above"
            ),
            metric=t.windy_metric,
        )

    def _classify_uncomfortable(
        self,
        summaries: Dict[str, VariableSummary],
        exceedances: Sequence[ExceedanceProbability],
        query: ExceedanceQuery,
        units: UnitSystem,
    ) -> RiskLabel:
        t = self.thresholds
        t_max = summaries.get("t_max")
        probability = self._probability(exceedances, query)
        if t_max is None or probability is None:
            return self._no_data("very_uncomfortable", "Heat and humidity", query.metric)

        warm = t_max.percentile(COMPOSITE_PERCENTILE) >= t.uncomfortable_warm
        warm_text = f"75th percentile max temperature {self._describe('t_max', '>=', t.uncomfortable_warm, units)}"

        dew = summaries.get("dew_point")
        if dew is not None:
            second = dew.percentile(COMPOSITE_PERCENTILE) >= t.uncomfortable_dew_point
            second_text = (
                "75th percentile dew point "
                f"{self._describe('dew_point', '>=', t.uncomfortable_dew_point, units)}"
            )
        else:
            precip = summaries.get("precip_mm")
            second = precip is not None and precip.percentile(COMPOSITE_PERCENTILE) >= t.uncomfortable_wet
            second_text = (
                "75th percentile precipitation "
                f"{self._describe('precip_mm', '>=', t.uncomfortable_wet, units)}"
            )

        level = self._level(warm and second, warm or second)
        index_label = "Heat index" if query.metric == "heat_index" else "Daily max temperature"
        return RiskLabel(
            risk_type="very_uncomfortable",
            level=level,
            probability_percent=probability,
            rule_applied=(
                f"{index_label} {self._describe(query.metric, '>=', query.threshold, units)}; "
                f"level from {warm_text} and {second_text}"
            ),
            metric=query.metric,
        )

    # Helpers

    @staticmethod
    def _level(high: bool, medium: bool) -> str:
        if high:
            return HIGH
        if medium:
            return MEDIUM
        return LOW

    @staticmethod
    def _no_data(risk_type: str, label: str, metric: str) -> RiskLabel:
        logger.info("No %s samples; %s reported as low", metric, risk_type)
        return RiskLabel(
            risk_type=risk_type,
            level=LOW,
            probability_percent=0.0,
            rule_applied=f"{label}: no {metric} data in the sampled window",
            metric=metric,
        )

    @staticmethod
    def _format(metric: str, value: float, units: UnitSystem) -> str:
        quantity = quantity_of(metric)
        converted = convert_value(value, quantity, UnitSystem.METRIC, units)
        label = unit_label(quantity, units)
        sep = "" if label.startswith("°") else " "
        return f"{round(converted, 1):g}{sep}{label}"

    def _describe(self, metric: str, comparator: str, value: float, units: UnitSystem) -> str:
        return f"{SYMBOLS[comparator]} {self._format(metric, value, units)}"
