"""Exceptions raised by the flight delay pipeline."""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class DataUnavailable(PipelineError):
    """A data source is missing, unreadable or lacks required columns."""


class InvalidFraction(PipelineError, ValueError):
    """Train fraction outside the open interval (0, 1)."""


class InvalidFoldCount(PipelineError, ValueError):
    """Fold count below 2 or larger than the number of records."""


class FitError(PipelineError):
    """The underlying estimator rejected the training data."""

    def __init__(self, model: str, message: str):
        super().__init__(f"{model}: {message}")
        self.model = model
        self.message = message

    def __reduce__(self):
        # keeps the error intact when raised inside a joblib worker
        return (self.__class__, (self.model, self.message))
