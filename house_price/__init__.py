"""
House Price Prediction
======================

Train, evaluate and query regression models of median house value.

Modules:
    - data_loader: CSV ingestion, configuration and validation
    - schema: column layout and design-matrix encoding
    - preprocessing: categorical normalization and multivariate imputation
    - partition: seeded stratified train/holdout split
    - model: random forest and linear regression models
    - evaluation: holdout metrics and diagnostics
    - prediction: single-record inference
    - session: current trained model and holdout set
    - pipeline: service tying the steps together
    - plots: distribution and diagnostic charts
"""

from .exceptions import (
    HousePriceError,
    TrainingError,
    NoModelTrainedError,
    UnknownCategoryError,
    ImputationError,
    InvalidRecordError,
)
from .model import ModelKind
from .pipeline import HousePriceService
from .session import ModelSession

__version__ = "1.0.0"
