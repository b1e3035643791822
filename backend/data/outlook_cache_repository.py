"""Repositories memoizing computed outlooks."""
import hashlib
import logging
import os
import tempfile
from collections import OrderedDict
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional
import orjson
from attrs import define

from backend.config import settings

logger = logging.getLogger(__name__)


@define(frozen=True)
class OutlookCacheKey:
    """Unique key of a cached outlook."""

    lat: float
    lon: float
    target_date: str  # YYYY-MM-DD
    day_window: int
    units: str

    @classmethod
    def build(cls, lat: float, lon: float, target_date: str, day_window: int, units: str) -> "OutlookCacheKey":
        """Normalize coordinates so nearby float noise maps to the same row."""
        return cls(round(lat, 4), round(lon, 4), target_date, int(day_window), units)

    def slug(self) -> str:
        raw = f"{self.lat:.4f}|{self.lon:.4f}|{self.target_date}|{self.day_window}|{self.units}"
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class InMemoryOutlookCache:
    """Bounded FIFO cache held in process memory."""

    def __init__(self, capacity: int = None):
        self.capacity = capacity or settings.cache_capacity
        self._entries: OrderedDict[OutlookCacheKey, dict] = OrderedDict()

    def get(self, key: OutlookCacheKey) -> Optional[dict]:
        return self._entries.get(key)

    def put(self, key: OutlookCacheKey, value: dict) -> None:
        self._entries[key] = value
        if len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


class JsonFileOutlookCache:
    """
    One JSON file per cache row under `cache_dir`.

    Row layout: lat, lon, target_date, day_window, units, response,
    created_at, updated_at. Writes go to a temp file renamed over the
    target, so concurrent writers of the same key leave the last complete
    row on disk.
    """

    def __init__(
        self,
        cache_dir: Path = None,
        clock: Callable[[], datetime] = None,
    ):
        self.cache_dir = Path(cache_dir or settings.cache_dir)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _path(self, key: OutlookCacheKey) -> Path:
        return self.cache_dir / f"{key.slug()}.json"

    def _read_row(self, key: OutlookCacheKey) -> Optional[dict]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            row = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError as e:
            logger.warning("Ignoring unreadable cache row %s: %s", path.name, e)
            return None
        # Guard against slug collisions
        if (row.get("lat"), row.get("lon"), row.get("target_date"), row.get("day_window"), row.get("units")) != (
            key.lat,
            key.lon,
            key.target_date,
            key.day_window,
            key.units,
        ):
            return None
        return row

    def get(self, key: OutlookCacheKey) -> Optional[dict]:
        row = self._read_row(key)
        return None if row is None else row.get("response")

    def put(self, key: OutlookCacheKey, value: dict) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        now = self.clock().isoformat()
        existing = self._read_row(key)
        row = {
            "lat": key.lat,
            "lon": key.lon,
            "target_date": key.target_date,
            "day_window": key.day_window,
            "units": key.units,
            "response": value,
            "created_at": existing["created_at"] if existing else now,
            "updated_at": now,
        }

        # Write to temp file first, then rename for atomicity
        fd, temp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(orjson.dumps(row, option=orjson.OPT_INDENT_2))
            os.replace(temp_name, self._path(key))
        except OSError:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

    def clear(self) -> None:
        """Remove every cached row."""
        if not self.cache_dir.exists():
            return
        for path in self.cache_dir.glob("*.json"):
            path.unlink()


def build_outlook_cache(backend: str = None):
    """Cache store for the configured backend, or None when caching is off."""
    backend = backend or settings.cache_backend
    if backend == "memory":
        return InMemoryOutlookCache()
    if backend == "file":
        return JsonFileOutlookCache()
    if backend == "none":
        return None
    raise ValueError(f"Unknown cache backend: {backend}")
