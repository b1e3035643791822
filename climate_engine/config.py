"""Configuration constants for the climate statistics engine."""

# Percentiles reported for every variable summary
PERCENTILES = [10, 25, 50, 75, 90]

# Day/night boundary used when sunrise/sunset cannot be determined (local hours)
FALLBACK_SUNRISE_HOUR = 6.0
FALLBACK_SUNSET_HOUR = 18.0

# 0 = geometric sunrise/sunset (sun center at horizon)
DAYLIGHT_DEPRESSION_ANGLE = 0.0

# Minimum number of sampled days before probabilities are estimated empirically
MIN_EMPIRICAL_SAMPLES = 5

# Physical quantities handled by the unit converter
TEMPERATURE = "temperature"
PRECIPITATION = "precipitation"
WIND_SPEED = "wind_speed"
PERCENT = "percent"
INDEX = "index"

# Std assumed when only a single day is sampled (metric units)
ASSUMED_STD = {
    TEMPERATURE: 3.0,
    PRECIPITATION: 2.0,
    WIND_SPEED: 1.5,
    PERCENT: 10.0,
    INDEX: 1.0,
}

# Variable table: name -> (DailyMetrics attribute, quantity)
# Order is the canonical order of the summary table.
VARIABLES = {
    "t_mean": ("temp_mean", TEMPERATURE),
    "t_max": ("temp_max", TEMPERATURE),
    "t_min": ("temp_min", TEMPERATURE),
    "t_day": ("day_mean_temp", TEMPERATURE),
    "t_night": ("night_mean_temp", TEMPERATURE),
    "dew_point": ("dew_point_mean", TEMPERATURE),
    "heat_index": ("heat_index_max", TEMPERATURE),
    "wind_chill": ("wind_chill_min", TEMPERATURE),
    "precip_mm": ("precipitation_sum", PRECIPITATION),
    "rain_mm": ("rain_sum", PRECIPITATION),
    "snow_mm": ("snow_sum", PRECIPITATION),
    "wind10m": ("wind_speed_mean", WIND_SPEED),
    "wind10m_max": ("wind_speed_max", WIND_SPEED),
    "wind_gust": ("wind_gusts_max", WIND_SPEED),
    "rh_mean": ("humidity_mean", PERCENT),
    "cloud_cover": ("cloud_cover_mean", PERCENT),
    "uv_index_max": ("uv_index_max", INDEX),
}

# Variables whose absence fails the whole outlook
REQUIRED_VARIABLES = ["t_mean", "t_max", "t_min"]

# Display units per quantity
METRIC_UNITS = {
    TEMPERATURE: "°C",
    PRECIPITATION: "mm/d",
    WIND_SPEED: "m/s",
    PERCENT: "%",
    INDEX: "index",
}
IMPERIAL_UNITS = {
    TEMPERATURE: "°F",
    PRECIPITATION: "in/d",
    WIND_SPEED: "mph",
    PERCENT: "%",
    INDEX: "index",
}

# Risk rule defaults (metric). Level breakpoints are offsets added to the
# base threshold; the level is read off the tail percentile of the variable
# (p90 for upper-tail rules, p10 for lower-tail rules).
UPPER_TAIL_PERCENTILE = 90
LOWER_TAIL_PERCENTILE = 10
COMPOSITE_PERCENTILE = 75

HOT_THRESHOLD_C = 33.0
HOT_BREAKPOINTS = {"medium": 0.0, "high": 5.0}

COLD_WIND_CHILL_C = -10.0
COLD_BREAKPOINTS = {"medium": 0.0, "high": -10.0}

WINDY_FLOOR_MS = 10.8  # Beaufort 6, strong breeze
WINDY_HIGH_MARGIN_MS = 3.0

WET_THRESHOLD_MM = 10.0
WET_BREAKPOINTS = {"medium": -5.0, "high": 0.0}

UNCOMFORTABLE_HEAT_INDEX_C = 32.0
UNCOMFORTABLE_WARM_C = 27.0
UNCOMFORTABLE_DEW_POINT_C = 18.0
UNCOMFORTABLE_WET_MM = 1.0

# Reported alongside the risk probabilities
RAIN_CHANCE_THRESHOLD_MM = 1.0

RISK_TYPES = ["very_hot", "very_cold", "very_windy", "very_wet", "very_uncomfortable"]

DISCLAIMER = "Climate-based outlook. Not a short-term forecast."
