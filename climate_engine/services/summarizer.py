"""Service for distribution summaries and exceedance probabilities."""
import logging
from typing import Dict, Iterable, List, Sequence, Tuple
import numpy as np
import pandas as pd
from scipy import stats

from climate_engine.config import (
    ASSUMED_STD,
    MIN_EMPIRICAL_SAMPLES,
    PERCENTILES,
    VARIABLES,
)
from climate_engine.errors import EmptySample, InvalidParameter
from climate_engine.models.observation import DailyMetrics
from climate_engine.models.outlook import ExceedanceProbability, ExceedanceQuery, VariableSummary

logger = logging.getLogger(__name__)

COMPARATORS = {
    ">=": np.greater_equal,
    ">": np.greater,
    "<=": np.less_equal,
    "<": np.less,
}


def metrics_frame(daily_metrics: Sequence[DailyMetrics]) -> pd.DataFrame:
    """
    Build a frame with one row per sampled day and one column per variable.

    Missing values are NaN.
    """
    rows = []
    for m in daily_metrics:
        row = {"day": m.day}
        for variable, (attr, _) in VARIABLES.items():
            value = getattr(m, attr)
            row[variable] = np.nan if value is None else float(value)
        rows.append(row)
    return pd.DataFrame(rows, columns=["day", *VARIABLES.keys()])


class Summarizer:
    """
    Computes mean, population std and percentiles of per-day samples.

    std divides by N (population convention). With N=1 the std is the
    configured assumed spread for the variable's quantity, every percentile
    equals the single value and the summary is flagged `degenerate`.
    """

    def __init__(
        self,
        percentiles: List[int] = None,
        assumed_std: Dict[str, float] = None,
        min_empirical_samples: int = MIN_EMPIRICAL_SAMPLES,
    ):
        self.percentiles = percentiles or PERCENTILES
        self.assumed_std = assumed_std or ASSUMED_STD
        self.min_empirical_samples = min_empirical_samples

    def _clean(self, values: Iterable[float]) -> np.ndarray:
        arr = np.asarray(list(values), dtype=np.float64)
        return arr[np.isfinite(arr)]

    def summarize(self, values: Iterable[float], variable: str, unit: str = "") -> VariableSummary:
        """
        Summarize one variable's samples.

        Raises:
            EmptySample: if there is no finite value to summarize
        """
        arr = self._clean(values)
        if arr.size == 0:
            raise EmptySample(
                f"No samples for variable '{variable}'",
                details={"variable": variable},
            )

        mean = float(arr.mean())
        if arr.size == 1:
            quantity = VARIABLES[variable][1] if variable in VARIABLES else None
            std = float(self.assumed_std.get(quantity, 0.0))
            pct = np.full(len(self.percentiles), arr[0])
            degenerate = True
        else:
            std = float(arr.std(ddof=0))
            pct = np.percentile(arr, self.percentiles, method="linear")
            # p10 <= p25 <= ... <= p90 must survive float rounding
            pct = np.maximum.accumulate(pct)
            degenerate = False

        values_by_p = {f"p{p}": float(v) for p, v in zip(self.percentiles, pct)}
        return VariableSummary(
            variable=variable,
            unit=unit,
            mean=mean,
            std=std,
            n=int(arr.size),
            degenerate=degenerate,
            **values_by_p,
        )

    def exceedance(
        self,
        values: Iterable[float],
        query: ExceedanceQuery,
        summary: VariableSummary = None,
    ) -> ExceedanceProbability:
        """
        Probability (0-100) that a sampled day satisfies `metric <comparator> threshold`.

        Empirical fraction when at least `min_empirical_samples` days were
        sampled; otherwise a normal approximation from the summary mean/std,
        marked `empirical=False`.
        """
        compare = COMPARATORS.get(query.comparator)
        if compare is None:
            raise InvalidParameter(
                f"Unsupported comparator '{query.comparator}'",
                details={"comparator": query.comparator},
            )

        arr = self._clean(values)
        if arr.size == 0:
            raise EmptySample(
                f"No samples for variable '{query.metric}'",
                details={"variable": query.metric},
            )

        if arr.size >= self.min_empirical_samples:
            count = int(np.count_nonzero(compare(arr, query.threshold)))
            probability = count * 100.0 / arr.size
            empirical = True
        else:
            summary = summary or self.summarize(arr, query.metric)
            probability = self._normal_probability(summary.mean, summary.std, query)
            empirical = False

        return ExceedanceProbability(
            metric=query.metric,
            threshold=query.threshold,
            comparator=query.comparator,
            probability_percent=round(min(max(probability, 0.0), 100.0), 1),
            empirical=empirical,
        )

    @staticmethod
    def _normal_probability(mean: float, std: float, query: ExceedanceQuery) -> float:
        if std <= 0:
            hit = COMPARATORS[query.comparator](mean, query.threshold)
            return 100.0 if hit else 0.0
        dist = stats.norm(loc=mean, scale=std)
        if query.comparator in (">=", ">"):
            return float(dist.sf(query.threshold)) * 100.0
        return float(dist.cdf(query.threshold)) * 100.0

    def summarize_frame(
        self,
        frame: pd.DataFrame,
        unit_labels: Dict[str, str] = None,
    ) -> Tuple[Dict[str, VariableSummary], List[str]]:
        """
        Summarize every variable column of a metrics frame.

        Returns:
            (summaries in canonical variable order, variables omitted for lack of samples)
        """
        unit_labels = unit_labels or {}
        summaries: Dict[str, VariableSummary] = {}
        omitted: List[str] = []
        for variable in VARIABLES:
            try:
                summaries[variable] = self.summarize(
                    frame[variable].to_numpy(), variable, unit_labels.get(variable, "")
                )
            except EmptySample:
                logger.info("Omitting variable %s: no samples in window", variable)
                omitted.append(variable)
        return summaries, omitted
