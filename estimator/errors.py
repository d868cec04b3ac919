"""
Domain exceptions for the estimator.

Routers translate these into HTTPException responses. None of them is fatal:
every one is recoverable by re-entering input and retrying.
"""


class EstimatorError(Exception):
    """Base class for all estimator errors."""


class SaveValidationError(EstimatorError):
    """Save rejected before any write — missing owner or empty project name."""


class StoreError(EstimatorError):
    """The backing data store rejected or failed a query/insert."""


class StoreTimeout(StoreError):
    """A store call did not complete within the configured timeout."""


class PersistenceError(EstimatorError):
    """The project write failed. Nothing was persisted."""


class FlowError(EstimatorError):
    """An operation was attempted in a calculator stage that does not allow it."""


class SaveInProgressError(FlowError):
    """A save was requested while a previous save is still outstanding."""


class UnknownMaterialError(EstimatorError, LookupError):
    """The material id is not in the loaded catalog."""
