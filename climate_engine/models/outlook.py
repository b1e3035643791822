"""Statistical summary and risk data structures."""
from typing import Optional
from attrs import define, asdict


@define(frozen=True)
class VariableSummary:
    """Distribution summary of one variable across the sampled days."""

    variable: str
    unit: str
    mean: float
    std: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    n: int
    degenerate: bool = False  # N=1: std is assumed, percentiles collapsed

    def percentile(self, p: int) -> float:
        """Return one of the reported percentiles."""
        return getattr(self, f"p{p}")

    def to_dict(self) -> dict:
        """Convert to serializable dictionary."""
        return asdict(self)


@define(frozen=True)
class ExceedanceQuery:
    """A threshold question asked of one variable's samples."""

    metric: str
    threshold: float
    comparator: str  # >=, >, <=, <


@define(frozen=True)
class ExceedanceProbability:
    """Fraction of sampled days where `metric <comparator> threshold`, in percent."""

    metric: str
    threshold: float
    comparator: str
    probability_percent: float
    empirical: bool = True

    def matches(self, query: ExceedanceQuery) -> bool:
        return (
            self.metric == query.metric
            and self.comparator == query.comparator
            and self.threshold == query.threshold
        )

    def to_dict(self) -> dict:
        """Convert to serializable dictionary."""
        return asdict(self)


@define(frozen=True)
class RiskLabel:
    """Categorical risk for one canonical risk type."""

    risk_type: str
    level: str  # low | medium | high
    probability_percent: float
    rule_applied: str
    metric: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to serializable dictionary."""
        return asdict(self)
