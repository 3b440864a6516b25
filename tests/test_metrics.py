import json

import pandas as pd
import pytest

from quakereport.pipeline.metrics import compute_metrics, counts_descending, summarize


def test_summary_sections(enriched_frame):
    s = summarize(enriched_frame)

    assert s["global"]["n_records"] == len(enriched_frame)
    mag = s["global"]["magnitude"]
    assert mag["iqr"] == pytest.approx(mag["q3"] - mag["q1"])
    assert mag["min"] <= mag["q1"] <= mag["median"] <= mag["q3"] <= mag["max"]

    assert set(s["by_magnitude_category"]) == {"Minor", "Moderate", "Major"}
    assert sum(s["by_depth_category"].values()) == len(enriched_frame)
    assert set(s["by_time_of_day"]) == {"Day", "Night"}
    night = enriched_frame[enriched_frame["time_of_day"] == "Night"]
    assert s["by_time_of_day"]["Night"]["depth_mean"] == pytest.approx(night["depth_km"].mean())
    assert s["by_ring_of_fire"]["in_ring_of_fire"] + s["by_ring_of_fire"]["outside"] == len(enriched_frame)


def test_counts_are_descending():
    counts = counts_descending(pd.Series(["b", "a", "b", "c", "b", "a"]), levels=["z"])
    assert list(counts) == ["b", "a", "c", "z"]
    assert counts["z"] == 0


def test_metrics_outputs_created(enriched_frame, tmp_path):
    dataset = tmp_path / "earthquakes.parquet"
    enriched_frame.to_parquet(dataset, index=False)

    info = compute_metrics(dataset=dataset, reports_dir=tmp_path)

    assert (tmp_path / "metrics_summary.json").exists()
    assert (tmp_path / "location_counts.csv").exists()
    summary = json.loads((tmp_path / "metrics_summary.json").read_text())
    assert summary["global"]["n_records"] == len(enriched_frame)
    assert pd.read_csv(info["location_table"])["count"].sum() == len(enriched_frame)
