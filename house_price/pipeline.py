"""
Pipeline Service
================

Wires the dataset, configuration and session state together and exposes
the user-facing requests:

    - train: preprocess → partition → fit → install in the session
    - evaluate: score the current model on its holdout set
    - predict: score one new record with the current model
    - summary: text summary of the current model
"""

import logging
from typing import Dict, Any, Mapping, Optional

import numpy as np
import pandas as pd

from .evaluation import evaluate_model
from .exceptions import HousePriceError, TrainingError
from .model import ModelKind, train_model
from .partition import stratified_split, validate_train_fraction
from .prediction import predict_record
from .preprocessing import build_imputer, imputation_scope, preprocess_dataset
from .schema import FeatureSchema, OUTCOME
from .session import ModelSession, TrainedState, TrainingRequest

logger = logging.getLogger(__name__)


class HousePriceService:
    """
    Training, evaluation and prediction over one housing dataset.

    The dataset is never modified; every training run preprocesses its own
    copy. Only a fully successful run replaces the session state.
    """

    def __init__(
        self,
        dataset: pd.DataFrame,
        config: Optional[Dict[str, Any]] = None,
        session: Optional[ModelSession] = None
    ):
        """
        Args:
            dataset: Raw housing table from the loader
            config: Configuration dictionary
            session: Session state container (a new one by default)
        """
        self.dataset = dataset
        self.config = config or {}
        self.session = session if session is not None else ModelSession()

    def build_request(
        self,
        model_kind=None,
        train_fraction: Optional[float] = None,
        seed: Optional[int] = None
    ) -> TrainingRequest:
        """
        Resolve a training request, filling gaps from the configuration.

        Raises:
            TrainingError: If the model kind or train fraction is invalid
        """
        model_config = self.config.get('model', {})
        partition_config = self.config.get('partition', {})

        if model_kind is None:
            model_kind = model_config.get('kind', ModelKind.RANDOM_FOREST.value)
        if train_fraction is None:
            train_fraction = partition_config.get('train_fraction', 0.7)
        if seed is None:
            seed = partition_config.get('seed', 123)

        return TrainingRequest(
            model_kind=ModelKind.parse(model_kind),
            train_fraction=validate_train_fraction(train_fraction),
            seed=int(seed),
        )

    def _partition(self, request: TrainingRequest):
        partition_config = self.config.get('partition', {})
        n_buckets = partition_config.get('n_buckets', 5)

        if imputation_scope(self.config) == 'pooled':
            cleaned = preprocess_dataset(self.dataset, self.config, impute=True)
            train_set, test_set = stratified_split(
                cleaned, request.train_fraction, seed=request.seed,
                outcome=OUTCOME, n_buckets=n_buckets
            )
        else:
            cleaned = preprocess_dataset(self.dataset, self.config, impute=False)
            train_set, test_set = stratified_split(
                cleaned, request.train_fraction, seed=request.seed,
                outcome=OUTCOME, n_buckets=n_buckets, require_complete=False
            )
            imputer = build_imputer(self.config).fit(train_set)
            train_set = imputer.transform(train_set)
            test_set = imputer.transform(test_set)
            logger.info("Imputation fitted on the training partition only")

        return cleaned, train_set, test_set

    def train(
        self,
        model_kind=None,
        train_fraction: Optional[float] = None,
        seed: Optional[int] = None
    ) -> TrainedState:
        """
        Train a model and install it as the current session state.

        Args:
            model_kind: ModelKind or name (default from config)
            train_fraction: Share of rows for training, in (0, 1)
            seed: Partition seed (default from config)

        Returns:
            The newly installed TrainedState

        Raises:
            TrainingError: If the request is invalid or training fails
            ImputationError: If missing values cannot be imputed
        """
        request = self.build_request(model_kind, train_fraction, seed)

        logger.info("=" * 60)
        logger.info(
            f"TRAINING REQUEST: {request.model_kind.label}, "
            f"train fraction {request.train_fraction}, seed {request.seed}"
        )
        logger.info("=" * 60)

        try:
            cleaned, train_set, test_set = self._partition(request)
            if len(test_set) < 2:
                raise TrainingError(
                    f"Holdout set has {len(test_set)} row(s); at least 2 are needed to score "
                    f"the model, use a smaller train fraction"
                )
            schema = FeatureSchema.from_frame(cleaned)
            model = train_model(train_set, request.model_kind, schema=schema, config=self.config)
        except HousePriceError:
            logger.error("Training failed; keeping the previous session state")
            raise
        except (ValueError, KeyError, np.linalg.LinAlgError) as e:
            logger.error("Training failed; keeping the previous session state")
            raise TrainingError(f"Training failed: {e}") from e

        return self.session.install(model, test_set, request, train_size=len(train_set))

    def evaluate(self) -> Dict[str, Any]:
        """
        Evaluate the current model on its holdout set.

        Raises:
            NoModelTrainedError: If no model has been trained
        """
        state = self.session.current()
        result = evaluate_model(state.model, state.test_set)
        result['version'] = state.version
        return result

    def predict(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Predict the outcome for one new record with the current model.

        Raises:
            NoModelTrainedError: If no model has been trained
            UnknownCategoryError: If the categorical value was not seen in training
            InvalidRecordError: If the record is incomplete or malformed
        """
        state = self.session.current()
        decimals = self.config.get('prediction', {}).get('decimals', 2)
        return predict_record(state.model, record, decimals=decimals)

    def summary(self) -> str:
        """Text summary of the current model."""
        return self.session.current().model.summarize()
