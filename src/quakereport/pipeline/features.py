"""
Feature derivation: raw catalogue rows -> immutable EarthquakeRecords.

Each row either becomes a fully enriched record or is dropped. Dropping is
silent per record (DEBUG only); the aggregate count is returned and logged.
"""
import logging
import math
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

import pandas as pd

from quakereport.config import DEPTH_INTERMEDIATE, MAGNITUDE_MODERATE
from quakereport.errors import DerivationError
from quakereport.pipeline.locations import in_ring_of_fire, normalize_location
from quakereport.pipeline.solar import Ephemeris, sun_window

logger = logging.getLogger(__name__)

DAY = "Day"
NIGHT = "Night"

MAGNITUDE_LEVELS = ("Minor", "Moderate", "Major")
DEPTH_LEVELS = ("Shallow", "Intermediate", "Deep")
TIME_OF_DAY_LEVELS = (DAY, NIGHT)

REQUIRED_FIELDS = (
    "timestamp_utc", "magnitude", "depth_km", "location_raw", "latitude", "longitude",
)


@dataclass(frozen=True)
class EarthquakeRecord:
    timestamp_utc: datetime
    magnitude: float
    depth_km: float
    location_raw: str
    latitude: float
    longitude: float
    location_normalized: str
    in_ring_of_fire: bool
    time_of_day: str
    magnitude_category: str
    depth_category: str


RECORD_COLUMNS = tuple(f.name for f in fields(EarthquakeRecord))


@dataclass(frozen=True)
class DerivedDataset:
    """Enriched records plus how many raw rows were dropped."""
    records: Tuple[EarthquakeRecord, ...]
    n_dropped: int

    def __len__(self) -> int:
        return len(self.records)

    def to_frame(self) -> pd.DataFrame:
        if not self.records:
            return pd.DataFrame(columns=list(RECORD_COLUMNS))
        df = pd.DataFrame([asdict(r) for r in self.records], columns=list(RECORD_COLUMNS))
        df["timestamp_utc"] = pd.to_datetime(df["timestamp_utc"], utc=True)
        return df


def _three_way(value: float, bounds: Tuple[float, float], levels: Tuple[str, str, str]) -> str:
    low, high = bounds
    if value < low:
        return levels[0]
    if value <= high:
        return levels[1]
    return levels[2]


def magnitude_category(magnitude: float) -> str:
    """Minor (<4), Moderate ([4, 7]), Major (>7)."""
    if magnitude is None or math.isnan(magnitude):
        raise DerivationError("Magnitude is missing")
    return _three_way(magnitude, MAGNITUDE_MODERATE, MAGNITUDE_LEVELS)


def depth_category(depth_km: float) -> str:
    """Shallow (<70), Intermediate ([70, 300]), Deep (>300)."""
    if depth_km is None or math.isnan(depth_km):
        raise DerivationError("Depth is missing")
    return _three_way(depth_km, DEPTH_INTERMEDIATE, DEPTH_LEVELS)


def classify_time_of_day(
    latitude: float,
    longitude: float,
    timestamp_utc: datetime,
    ephemeris: Ephemeris = sun_window,
) -> str:
    """Day iff sunrise <= timestamp <= sunset at that place and local date."""
    window = ephemeris(latitude, longitude, timestamp_utc)
    return DAY if window.contains(timestamp_utc) else NIGHT


def _required(row: Mapping[str, Any], name: str) -> Any:
    value = row.get(name)
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        raise DerivationError(f"Missing required field: {name}")
    return value


def _as_utc(value: Any) -> datetime:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert("UTC").to_pydatetime()


def derive_record(row: Mapping[str, Any], ephemeris: Ephemeris = sun_window) -> EarthquakeRecord:
    """
    Enrich one raw row.

    Raises DerivationError if a required field is missing or any derived
    field cannot be computed.
    """
    values = {name: _required(row, name) for name in REQUIRED_FIELDS}

    try:
        timestamp = _as_utc(values["timestamp_utc"])
        magnitude = float(values["magnitude"])
        depth = float(values["depth_km"])
        latitude = float(values["latitude"])
        longitude = float(values["longitude"])
    except (TypeError, ValueError) as e:
        raise DerivationError(f"Unparsable field: {e}") from e

    location = normalize_location(values["location_raw"])

    return EarthquakeRecord(
        timestamp_utc=timestamp,
        magnitude=magnitude,
        depth_km=depth,
        location_raw=values["location_raw"],
        latitude=latitude,
        longitude=longitude,
        location_normalized=location,
        in_ring_of_fire=in_ring_of_fire(location),
        time_of_day=classify_time_of_day(latitude, longitude, timestamp, ephemeris),
        magnitude_category=magnitude_category(magnitude),
        depth_category=depth_category(depth),
    )


def derive_features(df: pd.DataFrame, ephemeris: Optional[Ephemeris] = None) -> DerivedDataset:
    """Derive every row of a loaded catalogue, dropping incomplete ones."""
    ephemeris = ephemeris or sun_window
    records = []
    n_dropped = 0

    for row in df.to_dict(orient="records"):
        try:
            records.append(derive_record(row, ephemeris))
        except DerivationError as e:
            n_dropped += 1
            logger.debug("Dropped record: %s", e)

    logger.info("Derived %d records, dropped %d incomplete rows", len(records), n_dropped)
    return DerivedDataset(records=tuple(records), n_dropped=n_dropped)
