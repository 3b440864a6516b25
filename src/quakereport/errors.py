"""
Error taxonomy for QUAKEREPORT.

- DataSourceError: the input catalogue cannot be read. Aborts the run.
- DerivationError: one record cannot be enriched. The record is dropped.
- InsufficientDataError: a hypothesis test lacks the groups it needs.
  That test is withheld, the others proceed.
- AssumptionViolationWarning: a statistical precondition failed. The test
  is still computed but its result is flagged as not valid.
"""


class QuakeReportError(Exception):
    """Base class for all QUAKEREPORT errors."""


class DataSourceError(QuakeReportError):
    """Input CSV unreachable, malformed, or missing required columns."""


class DerivationError(QuakeReportError):
    """A single record could not be fully enriched."""


class InsufficientDataError(QuakeReportError):
    """A required group is empty or too small for the requested test."""


class AssumptionViolationWarning(UserWarning):
    """A statistical precondition (normality, equal variance, Poisson) is not met."""
