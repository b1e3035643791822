"""
Command-line outlook computation.

Runs the same pipeline as the HTTP endpoint and prints the result as JSON
or sectioned CSV:

    python -m backend.cli --lat 52.37 --lon 4.89 --date 2025-07-14 --window 15
"""
import sys

import orjson

from backend.config import settings
from backend.data.synthetic_weather_repository import SyntheticWeatherRepository
from backend.data.weather_repository import OpenMeteoWeatherRepository
from backend.logging_config import setup_logging
from backend.services.export_service import ExportService
from backend.services.outlook_service import OutlookService
from climate_engine.errors import OutlookError


def main(argv=None) -> int:
    """Compute one outlook and write it to stdout."""
    import argparse

    parser = argparse.ArgumentParser(description="Compute a climate outlook for a location and day")
    parser.add_argument("--lat", type=float, required=True, help="Latitude in degrees")
    parser.add_argument("--lon", type=float, required=True, help="Longitude in degrees")
    parser.add_argument("--date", required=True, help="Target date (YYYY-MM-DD)")
    parser.add_argument(
        "--window",
        type=int,
        default=settings.default_window_days,
        help=f"Window size in days (default {settings.default_window_days})",
    )
    parser.add_argument(
        "--units",
        choices=["metric", "imperial"],
        default=settings.default_units,
        help="Unit system of the output",
    )
    parser.add_argument(
        "--format",
        choices=["json", "csv"],
        default="json",
        help="Output format",
    )
    parser.add_argument(
        "--synthetic",
        action="store_true",
        help="Use the seeded synthetic provider instead of Open-Meteo",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    args = parser.parse_args(argv)
    # stdout carries the result
    setup_logging(args.log_level, stream=sys.stderr)

    provider = SyntheticWeatherRepository() if args.synthetic else OpenMeteoWeatherRepository()
    service = OutlookService(provider=provider)

    try:
        result = service.compute_outlook(args.lat, args.lon, args.date, args.window, args.units)
    except OutlookError as e:
        sys.stderr.write(orjson.dumps({"error": e.to_dict()}).decode() + "\n")
        return 2 if e.kind == "invalid_parameter" else 1

    if args.format == "csv":
        sys.stdout.write(ExportService().to_csv(result))
    else:
        sys.stdout.write(orjson.dumps(result.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode() + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
