from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from quakereport.config import PROCESSED_FILE, REPORTS
from quakereport.pipeline.features import DEPTH_LEVELS, MAGNITUDE_LEVELS
from quakereport.pipeline.ingest import load_processed


def _save(path: Path, outputs: list):
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()
    outputs.append(str(path))


def visualize(dataset: Path = PROCESSED_FILE, reports_dir: Path = REPORTS, top_locations: int = 15):
    df = load_processed(dataset)
    reports_dir.mkdir(parents=True, exist_ok=True)

    outputs = []

    # --- Magnitude distribution ---
    plt.figure(figsize=(8, 5))
    plt.hist(df["magnitude"], bins=40, edgecolor="black")
    plt.xlabel("Magnitude")
    plt.ylabel("Frequency")
    _save(reports_dir / "magnitude_distribution.png", outputs)

    # --- Depth distribution ---
    plt.figure(figsize=(8, 5))
    plt.hist(df["depth_km"], bins=50, edgecolor="black")
    plt.yscale("log")
    plt.xlabel("Depth (km)")
    plt.ylabel("Frequency (log scale)")
    _save(reports_dir / "depth_distribution.png", outputs)

    # --- Category counts ---
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    mag = df["magnitude_category"].value_counts().reindex(MAGNITUDE_LEVELS, fill_value=0)
    depth = df["depth_category"].value_counts().reindex(DEPTH_LEVELS, fill_value=0)
    axes[0].bar(mag.index, mag.values)
    axes[0].set_title("Magnitude category")
    axes[0].set_ylabel("Count")
    axes[1].bar(depth.index, depth.values)
    axes[1].set_title("Depth category")
    _save(reports_dir / "category_counts.png", outputs)

    # --- Magnitude and depth by time of day ---
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    groups = sorted(df["time_of_day"].unique())
    ticks = range(1, len(groups) + 1)
    axes[0].boxplot([df.loc[df["time_of_day"] == g, "magnitude"] for g in groups])
    axes[0].set_xticks(ticks, groups)
    axes[0].set_ylabel("Magnitude")
    axes[1].boxplot([df.loc[df["time_of_day"] == g, "depth_km"] for g in groups])
    axes[1].set_xticks(ticks, groups)
    axes[1].set_ylabel("Depth (km)")
    _save(reports_dir / "time_of_day_boxplots.png", outputs)

    # --- Top locations ---
    loc = df["location_normalized"].value_counts().head(top_locations)
    plt.figure(figsize=(10, 6))
    plt.barh(loc.index[::-1], loc.values[::-1])
    plt.xlabel("Count")
    _save(reports_dir / "top_locations.png", outputs)

    # --- Epicentres ---
    plt.figure(figsize=(12, 6))
    ring = df["in_ring_of_fire"].astype(bool)
    plt.scatter(df.loc[~ring, "longitude"], df.loc[~ring, "latitude"],
                s=4, alpha=0.4, c="gray", label="Outside Ring of Fire")
    plt.scatter(df.loc[ring, "longitude"], df.loc[ring, "latitude"],
                s=4, alpha=0.6, c="red", label="Ring of Fire")
    plt.xlim(-180, 180)
    plt.ylim(-90, 90)
    plt.xlabel("Longitude")
    plt.ylabel("Latitude")
    plt.legend(loc="lower left")
    _save(reports_dir / "epicentres.png", outputs)

    return outputs
