import json
from pathlib import Path
from typing import Any, Dict, Sequence

import pandas as pd

from quakereport.config import PROCESSED_FILE, REPORTS
from quakereport.pipeline.features import DEPTH_LEVELS, MAGNITUDE_LEVELS
from quakereport.pipeline.ingest import load_processed
from quakereport.utils.serialization import NumpyEncoder


def distribution_summary(values: pd.Series) -> Dict[str, float]:
    values = values.dropna()
    q1 = float(values.quantile(0.25))
    q3 = float(values.quantile(0.75))
    return {
        "min": float(values.min()),
        "max": float(values.max()),
        "median": float(values.median()),
        "q1": q1,
        "q3": q3,
        "iqr": q3 - q1,
    }


def counts_descending(series: pd.Series, levels: Sequence[str] = ()) -> Dict[str, int]:
    """Value counts ordered by descending count; listed levels appear even when zero."""
    counts = series.value_counts()
    for level in levels:
        if level not in counts.index:
            counts[level] = 0
    counts = counts.sort_values(ascending=False, kind="stable")
    return {str(k): int(v) for k, v in counts.items()}


def split_by_time_of_day(df: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    out = {}
    for tod, group in df.groupby("time_of_day"):
        out[str(tod)] = {
            "n": int(len(group)),
            "magnitude_mean": float(group["magnitude"].mean()),
            "magnitude_sd": float(group["magnitude"].std()),
            "depth_mean": float(group["depth_km"].mean()),
            "depth_sd": float(group["depth_km"].std()),
        }
    return out


def summarize(df: pd.DataFrame) -> Dict[str, Any]:
    """
    Descriptive summary of the enriched dataset.

    Pure reduction over the frame; display order of grouped counts is by
    descending count.
    """
    if len(df) == 0:
        return {"global": {"n_records": 0}}

    return {
        "global": {
            "n_records": int(len(df)),
            "magnitude": distribution_summary(df["magnitude"]),
            "depth_km": distribution_summary(df["depth_km"]),
        },
        "by_magnitude_category": counts_descending(df["magnitude_category"], MAGNITUDE_LEVELS),
        "by_depth_category": counts_descending(df["depth_category"], DEPTH_LEVELS),
        "by_time_of_day": split_by_time_of_day(df),
        "by_ring_of_fire": {
            "in_ring_of_fire": int(df["in_ring_of_fire"].sum()),
            "outside": int((~df["in_ring_of_fire"].astype(bool)).sum()),
        },
        "by_location": counts_descending(df["location_normalized"]),
    }


def compute_metrics(dataset: Path = PROCESSED_FILE, reports_dir: Path = REPORTS):
    df = load_processed(dataset)
    results = summarize(df)

    reports_dir.mkdir(parents=True, exist_ok=True)

    # --- Location table ---
    location_path = reports_dir / "location_counts.csv"
    pd.DataFrame(
        list(results.get("by_location", {}).items()),
        columns=["location", "count"],
    ).to_csv(location_path, index=False)

    # --- Save summary ---
    summary_path = reports_dir / "metrics_summary.json"
    with open(summary_path, "w") as f:
        json.dump(results, f, indent=2, cls=NumpyEncoder)

    return {
        "summary": str(summary_path),
        "location_table": str(location_path),
        "details": results,
    }
