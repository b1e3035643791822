"""Risk rule configuration."""
from typing import Dict
from attrs import define, field

from climate_engine import config


@define(frozen=True)
class ThresholdRule:
    """A single-variable rule: `metric <comparator> threshold` plus level breakpoints."""

    risk_type: str
    metric: str
    threshold: float
    comparator: str
    label: str
    breakpoints: Dict[str, float] = field(factory=lambda: {"medium": 0.0, "high": 0.0}, converter=dict)

    @property
    def upper_tail(self) -> bool:
        return self.comparator in (">=", ">")

    def breakpoint(self, level: str) -> float:
        """Absolute value at which `level` starts."""
        return self.threshold + self.breakpoints[level]


@define(frozen=True)
class RiskThresholds:
    """Canonical rule thresholds in metric units."""

    hot: ThresholdRule = ThresholdRule(
        risk_type="very_hot",
        metric="t_max",
        threshold=config.HOT_THRESHOLD_C,
        comparator=">=",
        label="Daily max temperature",
        breakpoints=config.HOT_BREAKPOINTS,
    )
    cold: ThresholdRule = ThresholdRule(
        risk_type="very_cold",
        metric="wind_chill",
        threshold=config.COLD_WIND_CHILL_C,
        comparator="<=",
        label="Wind chill",
        breakpoints=config.COLD_BREAKPOINTS,
    )
    wet: ThresholdRule = ThresholdRule(
        risk_type="very_wet",
        metric="precip_mm",
        threshold=config.WET_THRESHOLD_MM,
        comparator=">=",
        label="Daily precipitation",
        breakpoints=config.WET_BREAKPOINTS,
    )
    windy_metric: str = "wind10m_max"
    windy_floor: float = config.WINDY_FLOOR_MS
    windy_high_margin: float = config.WINDY_HIGH_MARGIN_MS
    uncomfortable_heat_index: float = config.UNCOMFORTABLE_HEAT_INDEX_C
    uncomfortable_warm: float = config.UNCOMFORTABLE_WARM_C
    uncomfortable_dew_point: float = config.UNCOMFORTABLE_DEW_POINT_C
    uncomfortable_wet: float = config.UNCOMFORTABLE_WET_MM
    rain_chance_threshold: float = config.RAIN_CHANCE_THRESHOLD_MM
