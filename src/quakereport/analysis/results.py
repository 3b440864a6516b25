"""
Result containers shared by the hypothesis tests.

A HypothesisResult always carries the computed statistics together with
the precondition checks, so an invalid result is never mistaken for a
valid one: `valid` is False as soon as one check fails.
"""
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from quakereport.errors import AssumptionViolationWarning

VALID = "valid"
NOT_VALID = "not statistically valid"
WITHHELD = "withheld"


@dataclass
class AssumptionCheck:
    """One statistical precondition and whether it appears satisfied."""
    name: str
    satisfied: bool
    detail: str = ""
    statistic: Optional[float] = None
    p_value: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "satisfied": self.satisfied,
            "detail": self.detail,
            "statistic": self.statistic,
            "p_value": self.p_value,
        }


@dataclass
class HypothesisResult:
    test: str
    statistics: Dict[str, Any]
    assumptions: List[AssumptionCheck] = field(default_factory=list)
    reject_null: Optional[bool] = None
    conclusion: str = ""
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return all(a.satisfied for a in self.assumptions)

    @property
    def status(self) -> str:
        return VALID if self.valid else NOT_VALID

    @property
    def failed_assumptions(self) -> List[str]:
        return [a.name for a in self.assumptions if not a.satisfied]

    def warn_if_invalid(self):
        """Emit AssumptionViolationWarning when any precondition failed."""
        if not self.valid:
            warnings.warn(
                f"{self.test}: preconditions not met ({', '.join(self.failed_assumptions)}); "
                f"result is {NOT_VALID}",
                AssumptionViolationWarning,
                stacklevel=3,
            )

    def to_dict(self) -> Dict:
        return {
            "test": self.test,
            "status": self.status,
            "valid": self.valid,
            "reject_null": self.reject_null,
            "conclusion": self.conclusion,
            "statistics": self.statistics,
            "assumptions": [a.to_dict() for a in self.assumptions],
        }
