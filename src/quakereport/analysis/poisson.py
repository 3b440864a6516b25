"""
Poisson regression of earthquake counts on four categorical predictors.

The dataset is aggregated into cells keyed by
(time_of_day, in_ring_of_fire, depth_category, magnitude_category)
and the cell counts are modelled with a log-linear Poisson GLM:

    count ~ time_of_day + in_ring_of_fire + depth_category + magnitude_category

Baselines: Day, outside the Ring of Fire, Deep, Major.

Before fitting, an index-of-dispersion test compares the variance of the
counts to their mean (equal under a Poisson model). Overdispersion or a
poor deviance goodness of fit flags the model as not valid; it is still
fitted and reported.
"""
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd
from scipy import stats
import statsmodels.api as sm
import statsmodels.formula.api as smf
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from quakereport.analysis.results import AssumptionCheck, HypothesisResult, NOT_VALID
from quakereport.config import ALPHA
from quakereport.errors import InsufficientDataError

FACTORS = ("time_of_day", "in_ring_of_fire", "depth_category", "magnitude_category")

RING_YES = "Yes"
RING_NO = "No"

BASELINES = {
    "time_of_day": "Day",
    "ring_of_fire": RING_NO,
    "depth_category": "Deep",
    "magnitude_category": "Major",
}

FORMULA = (
    "count ~ C(time_of_day, Treatment('Day'))"
    " + C(ring_of_fire, Treatment('No'))"
    " + C(depth_category, Treatment('Deep'))"
    " + C(magnitude_category, Treatment('Major'))"
)


def aggregate_cells(df: pd.DataFrame) -> pd.DataFrame:
    """One row per observed combination of the four factors, with its record count."""
    cells = (
        df.groupby(list(FACTORS), observed=True, sort=True)
        .size()
        .reset_index(name="count")
    )
    cells["in_ring_of_fire"] = cells["in_ring_of_fire"].astype(bool)
    return cells


def dispersion_test(counts, alpha: float = ALPHA) -> AssumptionCheck:
    """
    Index-of-dispersion test for Poisson counts.

    D = (n - 1) * var / mean is chi-square with n - 1 df when the counts
    are Poisson. A small upper-tail p-value indicates overdispersion.
    """
    counts = np.asarray(counts, dtype=float)
    n = len(counts)
    mean = counts.mean() if n else 0.0
    if n < 2 or mean <= 0:
        raise InsufficientDataError(f"Dispersion test needs >= 2 cells with a positive mean (n={n})")

    var = counts.var(ddof=1)
    d = (n - 1) * var / mean
    p = float(stats.chi2.sf(d, n - 1))

    return AssumptionCheck(
        name="poisson_dispersion",
        satisfied=bool(p >= alpha),
        detail=f"Index of dispersion: variance {var:.2f} vs mean {mean:.2f} (ratio {var / mean:.2f}), n={n}",
        statistic=float(d),
        p_value=p,
    )


def _model_frame(cells: pd.DataFrame) -> pd.DataFrame:
    frame = cells.copy()
    frame["ring_of_fire"] = np.where(frame["in_ring_of_fire"], RING_YES, RING_NO)
    return frame


def _check_design(frame: pd.DataFrame):
    n_params = 1
    for column, baseline in BASELINES.items():
        levels = set(frame[column])
        if len(levels) < 2:
            raise InsufficientDataError(f"Factor {column} has a single level: {sorted(levels)}")
        if baseline not in levels:
            raise InsufficientDataError(f"Baseline level {baseline!r} of {column} is absent")
        n_params += len(levels) - 1

    if len(frame) <= n_params:
        raise InsufficientDataError(
            f"Poisson model needs more cells ({len(frame)}) than parameters ({n_params})"
        )


def _term_label(name: str) -> str:
    # "C(depth_category, Treatment('Deep'))[T.Shallow]" -> "depth_category[Shallow]"
    if name == "Intercept":
        return name
    factor = name[2:name.index(",")]
    level = name[name.index("[T.") + 3:-1]
    return f"{factor}[{level}]"


def run_poisson_regression(df: pd.DataFrame, alpha: Optional[float] = None) -> HypothesisResult:
    """
    Aggregate, check dispersion, fit the Poisson GLM and report.

    Raises InsufficientDataError when a factor lacks its baseline, has a
    single level, or the cells leave no residual degrees of freedom.
    """
    alpha = ALPHA if alpha is None else alpha
    cells = aggregate_cells(df)
    frame = _model_frame(cells)
    _check_design(frame)

    dispersion = dispersion_test(frame["count"], alpha)

    fit = smf.glm(FORMULA, data=frame, family=sm.families.Poisson()).fit()

    deviance = float(fit.deviance)
    df_resid = float(fit.df_resid)
    gof_p = float(stats.chi2.sf(deviance, df_resid))
    lr_stat = float(fit.null_deviance - fit.deviance)
    lr_p = float(stats.chi2.sf(lr_stat, fit.df_model))

    conf = fit.conf_int(alpha=alpha)
    coefficients = []
    for name in fit.params.index:
        coefficients.append({
            "term": _term_label(name),
            "estimate": float(fit.params[name]),
            "std_error": float(fit.bse[name]),
            "z": float(fit.tvalues[name]),
            "p_value": float(fit.pvalues[name]),
            "rate_ratio": float(np.exp(fit.params[name])),
            "ci_low": float(conf.loc[name, 0]),
            "ci_high": float(conf.loc[name, 1]),
        })

    influence = fit.get_influence()
    leverage = np.asarray(influence.hat_matrix_diag)
    resid_dev = np.asarray(fit.resid_deviance)
    std_resid = resid_dev / np.sqrt(np.clip(1 - leverage, 1e-12, None))

    assumptions = [
        AssumptionCheck(
            name="independence",
            satisfied=True,
            detail="Assumed: earthquakes occur independently of one another",
        ),
        dispersion,
        AssumptionCheck(
            name="deviance_goodness_of_fit",
            satisfied=bool(gof_p >= alpha),
            detail=f"Residual deviance {deviance:.2f} on {df_resid:.0f} df",
            statistic=deviance,
            p_value=gof_p,
        ),
    ]

    result = HypothesisResult(
        test="poisson_regression",
        statistics={
            "n_cells": int(len(frame)),
            "n_records": int(frame["count"].sum()),
            "baselines": BASELINES,
            "coefficients": coefficients,
            "deviance": deviance,
            "df_resid": df_resid,
            "deviance_p_value": gof_p,
            "null_deviance": float(fit.null_deviance),
            "lr_statistic": lr_stat,
            "lr_p_value": lr_p,
            "pearson_dispersion": float(fit.pearson_chi2 / df_resid),
            "aic": float(fit.aic),
            "alpha": alpha,
        },
        assumptions=assumptions,
        reject_null=lr_p < alpha,
        diagnostics={
            "cells": frame,
            "fitted": np.asarray(fit.fittedvalues),
            "resid_deviance": resid_dev,
            "resid_std": std_resid,
            "leverage": leverage,
            "cooks_distance": np.asarray(influence.cooks_distance[0]),
        },
    )

    significant = [c["term"] for c in coefficients if c["term"] != "Intercept" and c["p_value"] < alpha]
    if result.reject_null:
        result.conclusion = (
            "Reject H0: the categorical predictors explain earthquake counts"
            + (f" (significant: {', '.join(significant)})" if significant else "")
        )
    else:
        result.conclusion = "Fail to reject H0: predictors do not explain earthquake counts"

    if not result.valid:
        result.conclusion = f"{NOT_VALID.capitalize()}: {result.conclusion}"
    result.warn_if_invalid()

    return result


def generate_poisson_plot(result: HypothesisResult, output_path: Path) -> str:
    """Residuals vs fitted, normal Q-Q, scale-location and Cook's distance."""
    d: Dict = result.diagnostics
    fitted = np.log(d["fitted"])
    fig, axes = plt.subplots(2, 2, figsize=(12, 10))

    ax = axes[0, 0]
    ax.scatter(fitted, d["resid_deviance"], alpha=0.7)
    ax.axhline(0, color="gray", linestyle="--")
    ax.set_xlabel("Predicted values (log scale)")
    ax.set_ylabel("Deviance residuals")
    ax.set_title("Residuals vs Fitted")

    ax = axes[0, 1]
    stats.probplot(d["resid_std"], dist="norm", plot=ax)
    ax.set_title("Normal Q-Q")

    ax = axes[1, 0]
    ax.scatter(fitted, np.sqrt(np.abs(d["resid_std"])), alpha=0.7)
    ax.set_xlabel("Predicted values (log scale)")
    ax.set_ylabel("sqrt(|Std. deviance residuals|)")
    ax.set_title("Scale-Location")

    ax = axes[1, 1]
    cooks = d["cooks_distance"]
    ax.stem(np.arange(len(cooks)), cooks, markerfmt=",")
    ax.axhline(4 / len(cooks), color="red", linestyle="--", label="4/n")
    ax.set_xlabel("Cell index")
    ax.set_ylabel("Cook's distance")
    ax.set_title("Cook's Distance")
    ax.legend()

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()

    return str(output_path)
