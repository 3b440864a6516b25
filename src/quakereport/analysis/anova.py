"""
ANOVA family: does shallow-earthquake depth differ by magnitude category?

Restricted to Shallow events (depth < 70 km), depth is grouped by
magnitude category (Minor, Moderate, Major) and tested with:

- classic one-way ANOVA (equal variances)
- Welch's ANOVA (unequal variances)
- pairwise t-tests for the three pairs, Bonferroni-adjusted

Preconditions are checked and reported, never used to skip the tests:
independence (assumed), normality per group, homogeneity of variance.
"""
from itertools import combinations
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.multitest import multipletests
from statsmodels.stats.oneway import anova_oneway
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from quakereport.analysis.results import AssumptionCheck, HypothesisResult, NOT_VALID
from quakereport.config import ALPHA
from quakereport.errors import InsufficientDataError
from quakereport.pipeline.features import MAGNITUDE_LEVELS

MIN_GROUP_SIZE = 3
# Shapiro-Wilk p-values are unreliable above this size
SHAPIRO_MAX_N = 5000


def shallow_depth_groups(
    df: pd.DataFrame,
    levels: Sequence[str] = MAGNITUDE_LEVELS,
) -> Dict[str, np.ndarray]:
    """Depths of Shallow events keyed by magnitude category, in level order."""
    shallow = df[df["depth_category"] == "Shallow"]
    groups = {}
    for level in levels:
        groups[level] = shallow.loc[shallow["magnitude_category"] == level, "depth_km"].to_numpy(dtype=float)

    small = {k: len(v) for k, v in groups.items() if len(v) < MIN_GROUP_SIZE}
    if small:
        raise InsufficientDataError(
            f"ANOVA needs >= {MIN_GROUP_SIZE} shallow records per magnitude category; "
            f"too few in {small}"
        )
    return groups


def normality_check(name: str, values: np.ndarray, alpha: float = ALPHA) -> AssumptionCheck:
    if len(values) > SHAPIRO_MAX_N:
        stat, p = stats.normaltest(values)
        method = "D'Agostino-Pearson"
    else:
        stat, p = stats.shapiro(values)
        method = "Shapiro-Wilk"
    return AssumptionCheck(
        name=f"normality[{name}]",
        satisfied=bool(p >= alpha),
        detail=f"{method} test, n={len(values)}",
        statistic=float(stat),
        p_value=float(p),
    )


def equal_variance_check(groups: Dict[str, np.ndarray], alpha: float = ALPHA) -> AssumptionCheck:
    variances = {k: float(np.var(v, ddof=1)) for k, v in groups.items()}
    stat, p = stats.levene(*groups.values())
    positive = [v for v in variances.values() if v > 0]
    ratio = max(positive) / min(positive) if positive else float("nan")
    detail = "Levene test; variances " + ", ".join(f"{k}={v:.2f}" for k, v in variances.items())
    detail += f"; max/min ratio {ratio:.2f}"
    return AssumptionCheck(
        name="equal_variance",
        satisfied=bool(p >= alpha),
        detail=detail,
        statistic=float(stat),
        p_value=float(p),
    )


def pairwise_t_tests(
    groups: Dict[str, np.ndarray],
    pool_sd: bool = True,
) -> List[Dict]:
    """
    Pairwise two-sample t-tests with Bonferroni-adjusted p-values.

    With pool_sd the standard deviation is pooled across *all* groups
    (df = N - k), otherwise each pair gets a Welch t-test.
    """
    pairs = list(combinations(groups.keys(), 2))

    if pool_sd:
        n_total = sum(len(v) for v in groups.values())
        df_resid = n_total - len(groups)
        ss_within = sum(((v - v.mean()) ** 2).sum() for v in groups.values())
        pooled_var = ss_within / df_resid

    rows = []
    for a, b in pairs:
        xa, xb = groups[a], groups[b]
        if pool_sd:
            se = np.sqrt(pooled_var * (1 / len(xa) + 1 / len(xb)))
            t = (xa.mean() - xb.mean()) / se
            p = 2 * stats.t.sf(abs(t), df_resid)
            dof = df_resid
        else:
            res = stats.ttest_ind(xa, xb, equal_var=False)
            t, p = res.statistic, res.pvalue
            n1, n2 = len(xa), len(xb)
            v1, v2 = xa.var(ddof=1) / n1, xb.var(ddof=1) / n2
            dof = (v1 + v2) ** 2 / (v1 ** 2 / (n1 - 1) + v2 ** 2 / (n2 - 1))
        rows.append({
            "group_a": a,
            "group_b": b,
            "mean_difference": float(xa.mean() - xb.mean()),
            "t": float(t),
            "df": float(dof),
            "p_value": float(p),
        })

    adjusted = multipletests([r["p_value"] for r in rows], method="bonferroni")[1]
    for r, p_adj in zip(rows, adjusted):
        r["p_bonferroni"] = float(p_adj)

    return rows


def run_depth_anova(
    df: pd.DataFrame,
    alpha: Optional[float] = None,
    pool_sd: bool = True,
) -> HypothesisResult:
    """
    One-way and Welch ANOVA of shallow depth by magnitude category.

    Raises InsufficientDataError if a magnitude category has fewer than
    three shallow events. Statistics are computed even when preconditions
    fail; the result is then flagged as not statistically valid.
    """
    alpha = ALPHA if alpha is None else alpha
    groups = shallow_depth_groups(df)
    constant = [k for k, v in groups.items() if np.ptp(v) == 0]
    if constant:
        raise InsufficientDataError(f"Shallow depth has zero variance in {constant}; F-tests are undefined")

    classic = stats.f_oneway(*groups.values())
    welch = anova_oneway(tuple(groups.values()), use_var="unequal", welch_correction=True)
    pairwise = pairwise_t_tests(groups, pool_sd=pool_sd)

    assumptions = [
        AssumptionCheck(
            name="independence",
            satisfied=True,
            detail="Assumed: within- and across-group observations are independent",
        ),
    ]
    assumptions.extend(normality_check(k, v, alpha) for k, v in groups.items())
    equal_var = equal_variance_check(groups, alpha)
    assumptions.append(equal_var)

    # Welch's ANOVA is the relevant omnibus test when variances differ
    omnibus_p = float(classic.pvalue) if equal_var.satisfied else float(welch.pvalue)
    if not np.isfinite(omnibus_p):
        raise InsufficientDataError("Omnibus ANOVA p-value is undefined for these groups")
    reject = omnibus_p < alpha

    result = HypothesisResult(
        test="depth_by_magnitude_anova",
        statistics={
            "groups": {
                k: {
                    "n": int(len(v)),
                    "mean": float(v.mean()),
                    "sd": float(v.std(ddof=1)),
                    "variance": float(v.var(ddof=1)),
                }
                for k, v in groups.items()
            },
            "anova": {
                "f": float(classic.statistic),
                "df_between": len(groups) - 1,
                "df_within": int(sum(len(v) for v in groups.values()) - len(groups)),
                "p_value": float(classic.pvalue),
            },
            "welch_anova": {
                "f": float(welch.statistic),
                "df_between": float(welch.df[0]),
                "df_within": float(welch.df[1]),
                "p_value": float(welch.pvalue),
            },
            "pairwise": pairwise,
            "pool_sd": pool_sd,
            "alpha": alpha,
        },
        assumptions=assumptions,
        reject_null=reject,
        diagnostics={"groups": groups},
    )

    if reject:
        significant = [f"{r['group_a']}-{r['group_b']}" for r in pairwise if r["p_bonferroni"] < alpha]
        result.conclusion = (
            "Reject H0: mean shallow depth differs across magnitude categories"
            + (f" (pairs: {', '.join(significant)})" if significant else "")
        )
    else:
        result.conclusion = "Fail to reject H0: no evidence that mean shallow depth differs by magnitude"

    if not result.valid:
        result.conclusion = f"{NOT_VALID.capitalize()}: {result.conclusion}"
    result.warn_if_invalid()

    return result


def generate_anova_plot(result: HypothesisResult, output_path: Path) -> str:
    """Histogram and normal Q-Q plot per magnitude group."""
    groups = result.diagnostics["groups"]
    fig, axes = plt.subplots(2, len(groups), figsize=(5 * len(groups), 9))

    for i, (name, values) in enumerate(groups.items()):
        axes[0, i].hist(values, bins=30, alpha=0.7, edgecolor="black")
        axes[0, i].set_title(f"{name} (n={len(values)})")
        axes[0, i].set_xlabel("Depth (km)")
        stats.probplot(values, dist="norm", plot=axes[1, i])
        axes[1, i].set_title(f"Normal Q-Q: {name}")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()

    return str(output_path)
