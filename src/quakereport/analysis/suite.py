"""
Runs the three hypothesis tests over the enriched dataset.

The tests are independent: an InsufficientDataError in one is recorded
as a withheld result and the others still run. Assumption warnings are
logged and kept with the result.
"""
import json
import logging
import warnings
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pandas as pd

from quakereport.analysis.anova import generate_anova_plot, run_depth_anova
from quakereport.analysis.poisson import generate_poisson_plot, run_poisson_regression
from quakereport.analysis.proportions import run_time_of_day_test
from quakereport.analysis.results import WITHHELD, HypothesisResult
from quakereport.config import ALPHA, PROCESSED_FILE, REPORTS
from quakereport.errors import AssumptionViolationWarning, InsufficientDataError
from quakereport.pipeline.ingest import load_processed
from quakereport.utils.serialization import NumpyEncoder

logger = logging.getLogger(__name__)

TESTS: Dict[str, Callable[..., HypothesisResult]] = {
    "time_of_day": run_time_of_day_test,
    "depth_anova": run_depth_anova,
    "poisson": run_poisson_regression,
}

PLOTS = {
    "depth_anova": ("hypothesis_depth_anova.png", generate_anova_plot),
    "poisson": ("hypothesis_poisson_diagnostics.png", generate_poisson_plot),
}


def _run_one(name: str, df: pd.DataFrame, alpha: float) -> Dict[str, Any]:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", AssumptionViolationWarning)
        try:
            result = TESTS[name](df, alpha=alpha)
        except InsufficientDataError as e:
            logger.warning("%s withheld: %s", name, e)
            return {"test": name, "status": WITHHELD, "reason": str(e), "result": None}

    messages = []
    other = []
    for w in caught:
        if issubclass(w.category, AssumptionViolationWarning):
            messages.append(str(w.message))
            logger.warning(str(w.message))
        else:
            # numerical warnings from scipy/statsmodels
            other.append(f"{w.category.__name__}: {w.message}")
            logger.warning("%s: %s: %s", name, w.category.__name__, w.message)

    return {
        "test": name,
        "status": result.status,
        "warnings": messages,
        "library_warnings": other,
        "result": result,
    }


def run_hypothesis_suite(
    df: pd.DataFrame,
    tests: Optional[list] = None,
    alpha: float = ALPHA,
) -> Dict[str, Dict[str, Any]]:
    """Run the selected tests (default: all three) and collect their outcomes."""
    names = tests or list(TESTS)
    unknown = [n for n in names if n not in TESTS]
    if unknown:
        raise ValueError(f"Unknown test(s): {unknown}. Available: {list(TESTS)}")

    return {name: _run_one(name, df, alpha) for name in names}


def suite_to_dict(outcomes: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    out = {}
    for name, outcome in outcomes.items():
        entry = {k: v for k, v in outcome.items() if k != "result"}
        if outcome["result"] is not None:
            entry.update(outcome["result"].to_dict())
        out[name] = entry
    return out


def run_hypotheses(
    tests: Optional[list] = None,
    alpha: float = ALPHA,
    dataset: Path = PROCESSED_FILE,
    reports_dir: Path = REPORTS,
) -> Dict[str, Any]:
    """Load the processed dataset, run the suite, write JSON and diagnostic plots."""
    df = load_processed(dataset)
    logger.info("Running hypothesis suite on %d records", len(df))

    outcomes = run_hypothesis_suite(df, tests=tests, alpha=alpha)

    reports_dir.mkdir(parents=True, exist_ok=True)
    plots = {}
    for name, outcome in outcomes.items():
        if outcome["result"] is not None and name in PLOTS:
            filename, plot = PLOTS[name]
            plots[name] = plot(outcome["result"], reports_dir / filename)

    summary = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "n_records": int(len(df)),
        "alpha": alpha,
        "tests": suite_to_dict(outcomes),
        "plots": plots,
    }

    json_path = reports_dir / "hypothesis_summary.json"
    with open(json_path, "w") as f:
        json.dump(summary, f, indent=2, cls=NumpyEncoder)

    return {
        "summary": str(json_path),
        "plots": plots,
        "status": {name: o["status"] for name, o in outcomes.items()},
    }
