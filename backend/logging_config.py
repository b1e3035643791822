"""Logging configuration for the API process and the CLI."""
import logging
import sys


def setup_logging(level: str = "INFO", stream=None) -> None:
    """
    Configure the root logger with a single stream handler (stdout by default).

    Safe to call more than once; existing handlers are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
