"""
Exceptions
==========

Error taxonomy for the training / evaluation / prediction pipeline.

Every error raised on purpose by this package derives from HousePriceError
so callers (the CLI, a dashboard) can catch the whole family at once.
"""


class HousePriceError(Exception):
    """Base class for all pipeline errors."""


class TrainingError(HousePriceError):
    """Training request or training partition is malformed or insufficient."""


class NoModelTrainedError(HousePriceError):
    """A model was queried before the first successful training run."""

    def __init__(self, message: str = "No model has been trained yet. Train a model first."):
        super().__init__(message)


class UnknownCategoryError(HousePriceError):
    """Prediction input holds a categorical level unseen at training time."""

    def __init__(self, column: str, value, known_levels):
        self.column = column
        self.value = value
        self.known_levels = tuple(known_levels)
        super().__init__(
            f"Unknown value {value!r} for '{column}'. "
            f"Expected one of: {', '.join(self.known_levels)}"
        )


class ImputationError(HousePriceError):
    """Missing-value imputation could not be performed or did not converge."""


class InvalidRecordError(HousePriceError):
    """Prediction input is missing a feature or holds a non-numeric value."""
