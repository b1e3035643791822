"""Meteorological composite indices.

References:
  - Alduchov & Eskridge 1996: Magnus-form dew point constants (Buck 1981 over ice)
  - Rothfusz 1990 / NWS: heat index regression with Steadman low-range average
  - NWS / Environment Canada 2001: wind chill temperature index
"""
import math

from climate_engine.services.unit_converter import celsius_to_fahrenheit, fahrenheit_to_celsius


def dew_point(temp_c: float, humidity: float) -> float:
    """Magnus-formula dew point in °C.

    Over water (T >= 0): a=17.625, b=243.04
    Over ice   (T <  0): a=22.587, b=273.86
    """
    if temp_c >= 0:
        a, b = 17.625, 243.04
    else:
        a, b = 22.587, 273.86
    rh = max(1.0, min(100.0, humidity))
    gamma = (a * temp_c) / (b + temp_c) + math.log(rh / 100.0)
    return (b * gamma) / (a - gamma)


def heat_index(temp_c: float, humidity: float) -> float:
    """NWS heat index in °C.

    Below ~80°F the Steadman average is used; above it the Rothfusz
    regression with the low-humidity and high-humidity adjustments.
    """
    t = celsius_to_fahrenheit(temp_c)
    rh = max(0.0, min(100.0, humidity))

    simple = 0.5 * (t + 61.0 + (t - 68.0) * 1.2 + rh * 0.094)
    if (simple + t) / 2.0 < 80.0:
        return fahrenheit_to_celsius(simple)

    hi = (
        -42.379
        + 2.04901523 * t
        + 10.14333127 * rh
        - 0.22475541 * t * rh
        - 0.00683783 * t * t
        - 0.05481717 * rh * rh
        + 0.00122874 * t * t * rh
        + 0.00085282 * t * rh * rh
        - 0.00000199 * t * t * rh * rh
    )
    if rh < 13.0 and 80.0 <= t <= 112.0:
        hi -= ((13.0 - rh) / 4.0) * math.sqrt((17.0 - abs(t - 95.0)) / 17.0)
    elif rh > 85.0 and 80.0 <= t <= 87.0:
        hi += ((rh - 85.0) / 10.0) * ((87.0 - t) / 5.0)
    return fahrenheit_to_celsius(hi)


def wind_chill(temp_c: float, wind_speed_ms: float) -> float:
    """Wind chill temperature in °C.

    Defined for T <= 10°C and V >= 4.8 km/h; outside that domain the air
    temperature is returned unchanged.
    """
    v_kmh = max(0.0, wind_speed_ms) * 3.6
    if temp_c > 10.0 or v_kmh < 4.8:
        return temp_c
    v = v_kmh ** 0.16
    return 13.12 + 0.6215 * temp_c - 11.37 * v + 0.3965 * temp_c * v
