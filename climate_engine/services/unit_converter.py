"""Conversion between metric and imperial units."""
from enum import Enum
from typing import Dict

from climate_engine.config import (
    TEMPERATURE,
    PRECIPITATION,
    WIND_SPEED,
    METRIC_UNITS,
    IMPERIAL_UNITS,
    VARIABLES,
)
from climate_engine.models.outlook import VariableSummary, ExceedanceProbability

MM_PER_INCH = 25.4
MS_TO_MPH = 2.2369362920544


class UnitSystem(str, Enum):
    """Unit system requested by the caller."""

    METRIC = "metric"
    IMPERIAL = "imperial"


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9.0 / 5.0 + 32.0


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32.0) * 5.0 / 9.0


def mm_to_inches(value: float) -> float:
    return value / MM_PER_INCH


def inches_to_mm(value: float) -> float:
    return value * MM_PER_INCH


def ms_to_mph(value: float) -> float:
    return value * MS_TO_MPH


def mph_to_ms(value: float) -> float:
    return value / MS_TO_MPH


_TO_IMPERIAL = {
    TEMPERATURE: celsius_to_fahrenheit,
    PRECIPITATION: mm_to_inches,
    WIND_SPEED: ms_to_mph,
}
_TO_METRIC = {
    TEMPERATURE: fahrenheit_to_celsius,
    PRECIPITATION: inches_to_mm,
    WIND_SPEED: mph_to_ms,
}


def unit_label(quantity: str, units: UnitSystem) -> str:
    """Display unit for a quantity in the given system."""
    table = METRIC_UNITS if UnitSystem(units) == UnitSystem.METRIC else IMPERIAL_UNITS
    return table[quantity]


def quantity_of(variable: str) -> str:
    """Physical quantity of a summary variable."""
    return VARIABLES[variable][1]


def convert_value(value: float, quantity: str, from_units: UnitSystem, to_units: UnitSystem) -> float:
    """Convert an absolute value (a reading, a mean, a percentile, a threshold)."""
    from_units, to_units = UnitSystem(from_units), UnitSystem(to_units)
    if from_units == to_units:
        return value
    table = _TO_IMPERIAL if to_units == UnitSystem.IMPERIAL else _TO_METRIC
    fn = table.get(quantity)
    return fn(value) if fn else value


def convert_spread(value: float, quantity: str, from_units: UnitSystem, to_units: UnitSystem) -> float:
    """
    Convert a spread (std, margin).

    Temperature spreads scale by 9/5 without the 32° offset; every other
    quantity is a pure scale factor so spreads convert like values.
    """
    if quantity == TEMPERATURE:
        return convert_value(value, quantity, from_units, to_units) - convert_value(
            0.0, quantity, from_units, to_units
        )
    return convert_value(value, quantity, from_units, to_units)


def convert_summary(
    summary: VariableSummary,
    from_units: UnitSystem,
    to_units: UnitSystem,
) -> VariableSummary:
    """Convert every statistic of a summary to another unit system."""
    quantity = quantity_of(summary.variable)
    values: Dict[str, float] = {
        name: convert_value(getattr(summary, name), quantity, from_units, to_units)
        for name in ("mean", "p10", "p25", "p50", "p75", "p90")
    }
    return VariableSummary(
        variable=summary.variable,
        unit=unit_label(quantity, to_units),
        std=convert_spread(summary.std, quantity, from_units, to_units),
        n=summary.n,
        degenerate=summary.degenerate,
        **values,
    )


def convert_probability(
    probability: ExceedanceProbability,
    from_units: UnitSystem,
    to_units: UnitSystem,
) -> ExceedanceProbability:
    """Convert the threshold of an exceedance result; the percentage is unit-free."""
    quantity = quantity_of(probability.metric)
    return ExceedanceProbability(
        metric=probability.metric,
        threshold=convert_value(probability.threshold, quantity, from_units, to_units),
        comparator=probability.comparator,
        probability_percent=probability.probability_percent,
        empirical=probability.empirical,
    )
