"""Pydantic schemas for climate outlooks."""
from pydantic import BaseModel
from typing import Dict, List, Optional


class OutlookMetadata(BaseModel):
    """Request echo and provenance of an outlook."""

    latitude: float
    longitude: float
    date_requested: str  # "YYYY-MM-DD"
    doy: int
    window_days: int
    mode: str  # forecast | historical
    years_used: List[int]
    samples_n: int
    skipped_days: int = 0
    units: str
    sample_start: str
    sample_end: str
    data_source: str
    synthetic: bool = False
    uses_extrapolation: bool = False
    degraded_variables: List[str] = []
    disclaimer: str
    generated_at: str


class VariableSummarySchema(BaseModel):
    """Distribution of one variable across the sampled days."""

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
    degenerate: bool = False


class ExceedanceProbabilitySchema(BaseModel):
    """Share of sampled days crossing a threshold."""

    metric: str
    threshold: float
    comparator: str
    unit: str
    probability_percent: float
    empirical: bool = True


class RiskLabelSchema(BaseModel):
    """Risk level for one canonical risk type."""

    risk_type: str
    level: str
    probability_percent: float
    rule_applied: str
    metric: Optional[str] = None


class RawSampleDay(BaseModel):
    """Daily values of one sampled day."""

    day: str
    values: Dict[str, Optional[float]]


class OutlookResponse(BaseModel):
    """Response schema for a climate outlook."""

    metadata: OutlookMetadata
    summary: List[VariableSummarySchema]
    probabilities: List[ExceedanceProbabilitySchema]
    risk_labels: List[RiskLabelSchema]
    raw_sample_snapshot: List[RawSampleDay] = []
