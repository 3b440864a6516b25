from datetime import datetime, time, timezone

import numpy as np
import pandas as pd
import pytest

from quakereport.pipeline.features import depth_category, magnitude_category
from quakereport.pipeline.solar import SunWindow


def fixed_ephemeris(latitude, longitude, instant):
    """Sun up from 06:00 to 18:00 UTC everywhere."""
    day = instant.astimezone(timezone.utc).date()
    return SunWindow(
        sunrise=datetime.combine(day, time(6, 0), tzinfo=timezone.utc),
        sunset=datetime.combine(day, time(18, 0), tzinfo=timezone.utc),
    )


def make_enriched_frame(n=600, seed=7, magnitudes=(3.5, 5.5, 7.5), p_night=0.6):
    """Synthetic enriched dataset with every category level represented."""
    rng = np.random.default_rng(seed)
    magnitude = rng.choice(magnitudes, size=n) + rng.uniform(-0.3, 0.3, size=n)
    depth = rng.choice([15.0, 45.0, 120.0, 450.0], size=n) + rng.uniform(-5, 5, size=n)
    ring = rng.random(n) < 0.5
    return pd.DataFrame({
        "timestamp_utc": pd.date_range("2000-01-01", periods=n, freq="7h", tz="UTC"),
        "magnitude": magnitude,
        "depth_km": depth,
        "location_raw": np.where(ring, "10 km S of Somewhere, Japan", "Greece"),
        "latitude": rng.uniform(-60, 60, size=n),
        "longitude": rng.uniform(-180, 180, size=n),
        "location_normalized": np.where(ring, "Japan", "Greece"),
        "in_ring_of_fire": ring,
        "time_of_day": np.where(rng.random(n) < p_night, "Night", "Day"),
        "magnitude_category": [magnitude_category(m) for m in magnitude],
        "depth_category": [depth_category(d) for d in depth],
    })


@pytest.fixture
def ephemeris():
    return fixed_ephemeris


@pytest.fixture
def enriched_frame():
    return make_enriched_frame()


@pytest.fixture
def raw_frame():
    return pd.DataFrame({
        "timestamp_utc": pd.to_datetime([
            "2011-03-11T05:46:24Z",
            "2010-02-27T06:34:11Z",
            "2023-02-06T01:17:34Z",
            "2004-12-26T00:58:53Z",
        ], utc=True),
        "magnitude": [9.1, 8.8, 7.8, 9.1],
        "depth_km": [29.0, 22.9, 17.9, 30.0],
        "location_raw": [
            "2011 Great Tohoku Earthquake, Japan",
            "offshore Bio-Bio, Chile",
            "Pazarcik earthquake, Kahramanmaras earthquake sequence",
            "off the west coast of northern Sumatra",
        ],
        "latitude": [38.297, -36.122, 37.226, 3.295],
        "longitude": [142.373, -72.898, 37.014, 95.982],
    })


@pytest.fixture
def catalog_csv(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text(
        "time,latitude,longitude,depth,mag,magType,place,type\n"
        "2011-03-11T05:46:24.120Z,38.297,142.373,29,9.1,mww,"
        "\"2011 Great Tohoku Earthquake, Japan\",earthquake\n"
        "2010-02-27T06:34:11.530Z,-36.122,-72.898,22.9,8.8,mww,"
        "\"offshore Bio-Bio, Chile\",earthquake\n"
        "2019-07-06T03:19:53.040Z,35.7695,-117.5993333,8,7.1,mw,"
        "\"Ridgecrest, CA\",earthquake\n"
        "2018-11-30T17:29:29.330Z,,-149.9552,46.7,7.1,mww,"
        "\"14km NNW of Anchorage, Alaska\",earthquake\n"
    )
    return path
