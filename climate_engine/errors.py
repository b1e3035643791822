"""Error taxonomy for outlook computation."""
from typing import Any, Dict, Optional


class OutlookError(Exception):
    """Base class for structured outlook errors."""

    kind = "outlook_error"
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to serializable dictionary."""
        return {
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class InvalidParameter(OutlookError):
    """Bad caller input (coordinates, date, window, units)."""

    kind = "invalid_parameter"


class UpstreamDataError(OutlookError):
    """The weather-data provider failed or returned a malformed payload."""

    kind = "upstream_data_error"
    retryable = True


class InsufficientData(OutlookError):
    """A day (or the whole window) had no usable observations."""

    kind = "insufficient_data"


class EmptySample(OutlookError):
    """A variable had zero samples to summarize."""

    kind = "empty_sample"


class DataUnavailable(OutlookError):
    """No valid date range could be built inside provider coverage."""

    kind = "data_unavailable"
