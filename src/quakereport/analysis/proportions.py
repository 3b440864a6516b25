"""
Two-proportion z-test: are earthquakes equally likely by night and by day?

H0: the Night and Day proportions are equal (difference = 0).
H1: they differ (two-tailed).

The standard error reuses the proportion difference as the rate:

    SE = sqrt(p(1-p)/n_night + p(1-p)/n_day),  p = |d|

This reproduces the published report. It is a simplification, not the
textbook pooled-proportion standard error.
"""
import math
from typing import Optional

import pandas as pd
from scipy import stats

from quakereport.analysis.results import AssumptionCheck, HypothesisResult
from quakereport.config import ALPHA
from quakereport.errors import InsufficientDataError
from quakereport.pipeline.features import DAY, NIGHT

# Success/failure condition: at least this many in each group
MIN_GROUP_COUNT = 10


def two_proportion_ztest(n_night: int, n_day: int, alpha: float = ALPHA) -> HypothesisResult:
    if min(n_night, n_day) < MIN_GROUP_COUNT:
        raise InsufficientDataError(
            f"Two-proportion test needs >= {MIN_GROUP_COUNT} records per group "
            f"(night={n_night}, day={n_day})"
        )

    n = n_night + n_day
    diff = n_night / n - n_day / n
    p = abs(diff)
    se = math.sqrt(p * (1 - p) / n_night + p * (1 - p) / n_day)
    if se == 0:
        raise InsufficientDataError("Standard error is zero: night and day proportions are identical")

    z_crit = stats.norm.ppf(1 - alpha / 2)
    ci_low = diff - z_crit * se
    ci_high = diff + z_crit * se
    z = diff / se
    p_value = float(2 * stats.norm.sf(abs(z)))

    reject = bool(not (ci_low <= 0 <= ci_high) and p_value < alpha)

    if reject:
        direction = "more" if diff > 0 else "fewer"
        conclusion = (
            f"Reject H0: {direction} earthquakes are recorded at night than during the day "
            f"(difference {diff:.3f}, {int((1 - alpha) * 100)}% CI [{ci_low:.4f}, {ci_high:.4f}])"
        )
    else:
        conclusion = "Fail to reject H0: no evidence that night and day proportions differ"

    return HypothesisResult(
        test="two_proportion_ztest",
        statistics={
            "n_night": int(n_night),
            "n_day": int(n_day),
            "n_total": int(n),
            "p_night": n_night / n,
            "p_day": n_day / n,
            "difference": diff,
            "standard_error": se,
            "ci_low": ci_low,
            "ci_high": ci_high,
            "confidence": 1 - alpha,
            "z": z,
            "p_value": p_value,
            "alpha": alpha,
        },
        assumptions=[
            AssumptionCheck(
                name="independence",
                satisfied=True,
                detail="Assumed: earthquake occurrences treated as independent events",
            ),
            AssumptionCheck(
                name="success_failure",
                satisfied=True,
                detail=f"Both groups have >= {MIN_GROUP_COUNT} records",
            ),
        ],
        reject_null=reject,
        conclusion=conclusion,
    )


def run_time_of_day_test(df: pd.DataFrame, alpha: Optional[float] = None) -> HypothesisResult:
    """Count Night/Day records and run the two-proportion z-test."""
    counts = df["time_of_day"].value_counts()
    return two_proportion_ztest(
        n_night=int(counts.get(NIGHT, 0)),
        n_day=int(counts.get(DAY, 0)),
        alpha=ALPHA if alpha is None else alpha,
    )
