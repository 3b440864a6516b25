import io
import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd
import requests

from quakereport.config import PROCESSED_FILE, RAW_FILE
from quakereport.errors import DataSourceError
from quakereport.pipeline.features import derive_features

logger = logging.getLogger(__name__)

# Upstream column -> record field
COLUMNS = {
    "time": "timestamp_utc",
    "mag": "magnitude",
    "depth": "depth_km",
    "place": "location_raw",
    "latitude": "latitude",
    "longitude": "longitude",
}


def _is_url(source: Union[str, Path]) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def _read_csv(source: Union[str, Path]) -> pd.DataFrame:
    try:
        if _is_url(source):
            r = requests.get(source, timeout=60)
            r.raise_for_status()
            return pd.read_csv(io.StringIO(r.text))
        return pd.read_csv(source)
    except requests.RequestException as e:
        raise DataSourceError(f"Catalogue unreachable: {source} ({e})") from e
    except FileNotFoundError as e:
        raise DataSourceError(f"Catalogue not found: {source}. Run download first.") from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataSourceError(f"Catalogue is not a readable CSV: {source} ({e})") from e


def load_catalog(source: Union[str, Path] = RAW_FILE) -> pd.DataFrame:
    """
    Load the raw catalogue (local path or URL) into the record shape.

    Raises DataSourceError if the source cannot be read or a required
    column is missing. Column names are case-sensitive.
    """
    df = _read_csv(source)

    missing = [c for c in COLUMNS if c not in df.columns]
    if missing:
        raise DataSourceError(f"Catalogue is missing required columns: {missing}")

    df = df[list(COLUMNS)].rename(columns=COLUMNS)

    # Unparsable values become NaT/NaN and are dropped during derivation
    df["timestamp_utc"] = pd.to_datetime(
        df["timestamp_utc"], utc=True, errors="coerce", format="ISO8601"
    )
    for col in ("magnitude", "depth_km", "latitude", "longitude"):
        df[col] = pd.to_numeric(df[col], errors="coerce")

    logger.info("Loaded %d rows from %s", len(df), source)
    return df


def ingest_catalog(
    source: Optional[Union[str, Path]] = None,
    out_path: Path = PROCESSED_FILE,
):
    """Load, derive features and persist the enriched dataset as Parquet."""
    raw = load_catalog(source if source is not None else RAW_FILE)
    dataset = derive_features(raw)
    df = dataset.to_frame()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(out_path, index=False)

    return {
        "rows": len(df),
        "dropped": dataset.n_dropped,
        "columns": list(df.columns),
        "output_file": str(out_path),
    }


def load_processed(path: Path = PROCESSED_FILE) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError("Processed dataset not found. Run ingest first.")
    return pd.read_parquet(path)
