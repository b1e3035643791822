"""Service for rendering outlooks as downloadable CSV."""
import io
from typing import List
import pandas as pd

from backend.schemas.outlook import OutlookResponse

SECTIONS = ["metadata", "summary", "probabilities", "risk_labels"]


class ExportService:
    """Renders an OutlookResponse as a sectioned CSV document."""

    def _metadata_frame(self, response: OutlookResponse) -> pd.DataFrame:
        rows = []
        for key, value in response.metadata.model_dump().items():
            if isinstance(value, list):
                value = ";".join(str(v) for v in value)
            rows.append({"key": key, "value": value})
        return pd.DataFrame(rows, columns=["key", "value"])

    def _frames(self, response: OutlookResponse) -> List[pd.DataFrame]:
        return [
            self._metadata_frame(response),
            pd.DataFrame([s.model_dump() for s in response.summary]),
            pd.DataFrame([p.model_dump() for p in response.probabilities]),
            pd.DataFrame([r.model_dump() for r in response.risk_labels]),
        ]

    def to_csv(self, response: OutlookResponse) -> str:
        """
        CSV with one block per section.

        Each block starts with a `[section]` line, followed by a header row
        and the section's rows; blocks are separated by a blank line.
        """
        buffer = io.StringIO()
        for i, (name, frame) in enumerate(zip(SECTIONS, self._frames(response))):
            if i:
                buffer.write("\n")
            buffer.write(f"[{name}]\n")
            frame.to_csv(buffer, index=False, lineterminator="\n")
        return buffer.getvalue()

    def filename(self, response: OutlookResponse) -> str:
        meta = response.metadata
        return f"outlook_{meta.latitude}_{meta.longitude}_{meta.date_requested}.csv"
