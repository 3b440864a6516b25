import warnings

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from quakereport.analysis.anova import pairwise_t_tests, run_depth_anova, shallow_depth_groups
from quakereport.errors import AssumptionViolationWarning, InsufficientDataError

N = 40
NORMAL_SHAPE = stats.norm.ppf((np.arange(1, N + 1) - 0.5) / N)


def shallow_frame(groups):
    rows = []
    for category, depths in groups.items():
        rows.extend({"depth_category": "Shallow", "magnitude_category": category, "depth_km": d}
                    for d in depths)
    # deep events never enter the comparison
    rows.extend({"depth_category": "Deep", "magnitude_category": "Minor", "depth_km": 500.0}
                for _ in range(5))
    return pd.DataFrame(rows)


@pytest.fixture
def well_behaved():
    return shallow_frame({
        "Minor": 20 + 3 * NORMAL_SHAPE,
        "Moderate": 30 + 3 * NORMAL_SHAPE,
        "Major": 40 + 3 * NORMAL_SHAPE,
    })


def test_groups_only_use_shallow_events(well_behaved):
    groups = shallow_depth_groups(well_behaved)
    assert list(groups) == ["Minor", "Moderate", "Major"]
    assert all(len(v) == N for v in groups.values())
    assert groups["Minor"].max() < 70


def test_valid_anova(well_behaved):
    with warnings.catch_warnings():
        warnings.simplefilter("error", AssumptionViolationWarning)
        result = run_depth_anova(well_behaved)

    s = result.statistics
    assert result.valid
    assert result.reject_null is True
    assert s["anova"]["p_value"] < 1e-10
    assert s["welch_anova"]["p_value"] < 1e-10
    assert s["anova"]["df_between"] == 2
    assert s["anova"]["df_within"] == 3 * N - 3
    assert s["groups"]["Moderate"]["mean"] == pytest.approx(30.0)
    assert result.conclusion.startswith("Reject H0")


def test_pairwise_bonferroni(well_behaved):
    groups = shallow_depth_groups(well_behaved)
    rows = pairwise_t_tests(groups)

    assert [(r["group_a"], r["group_b"]) for r in rows] == [
        ("Minor", "Moderate"), ("Minor", "Major"), ("Moderate", "Major"),
    ]
    for r in rows:
        assert r["p_bonferroni"] == pytest.approx(min(1.0, 3 * r["p_value"]))
        assert r["df"] == 3 * N - 3

    # pooled SD equals the common group SD here
    sd = np.std(3 * NORMAL_SHAPE, ddof=1)
    expected_t = -10 / (sd * np.sqrt(2 / N))
    assert rows[0]["t"] == pytest.approx(expected_t)


def test_pairwise_welch(well_behaved):
    rows = pairwise_t_tests(shallow_depth_groups(well_behaved), pool_sd=False)
    assert len(rows) == 3
    assert all(r["p_bonferroni"] <= 1.0 for r in rows)
    assert rows[0]["df"] == pytest.approx(2 * N - 2)


def test_failed_assumptions_still_compute():
    skewed = stats.expon.ppf((np.arange(1, N + 1) - 0.5) / N) * 60
    df = shallow_frame({
        "Minor": 20 + NORMAL_SHAPE,
        "Moderate": 30 + NORMAL_SHAPE,
        "Major": skewed,
    })

    with pytest.warns(AssumptionViolationWarning):
        result = run_depth_anova(df)

    assert not result.valid
    assert "normality[Major]" in result.failed_assumptions
    assert result.status == "not statistically valid"
    assert result.conclusion.startswith("Not statistically valid")
    assert np.isfinite(result.statistics["anova"]["f"])
    assert np.isfinite(result.statistics["welch_anova"]["f"])


def test_empty_magnitude_group():
    df = shallow_frame({
        "Moderate": 30 + 3 * NORMAL_SHAPE,
        "Major": 40 + 3 * NORMAL_SHAPE,
    })
    with pytest.raises(InsufficientDataError):
        run_depth_anova(df)


def test_constant_depth_groups_are_withheld():
    # catalogue default depths: every event in a group fixed at 10 or 33 km
    df = shallow_frame({"Minor": [10.0] * 5, "Moderate": [10.0] * 5, "Major": [33.0] * 5})
    with pytest.raises(InsufficientDataError, match="zero variance"):
        run_depth_anova(df)


def test_one_constant_group_is_withheld():
    df = shallow_frame({
        "Minor": [33.0] * N,
        "Moderate": 30 + 3 * NORMAL_SHAPE,
        "Major": 40 + 3 * NORMAL_SHAPE,
    })
    with pytest.raises(InsufficientDataError, match="Minor"):
        run_depth_anova(df)
