"""
Session State Module
====================

Holds the currently trained model together with the holdout set it was
evaluated against.

The pair lives in one frozen TrainedState and is only ever replaced as a
whole, under a lock, after a training run has fully succeeded. A failed run
never reaches ``install``, so the previous state survives it.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pandas as pd

from .exceptions import NoModelTrainedError
from .model import HousingModel, ModelKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingRequest:
    """Parameters of one training run."""

    model_kind: ModelKind
    train_fraction: float
    seed: int


@dataclass(frozen=True)
class TrainedState:
    """A fitted model and the holdout set produced by the same training run."""

    model: HousingModel
    test_set: pd.DataFrame
    request: TrainingRequest
    train_size: int
    version: int
    trained_at: datetime

    @property
    def model_kind(self) -> ModelKind:
        return self.model.kind


class ModelSession:
    """
    Container for the single current TrainedState.

    States: empty (no model) and trained. Readers take a snapshot with
    ``current()`` and work on it without holding the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state: Optional[TrainedState] = None
        self._version = 0

    @property
    def is_trained(self) -> bool:
        with self._lock:
            return self._state is not None

    def current(self) -> TrainedState:
        """
        Return the current trained state.

        Raises:
            NoModelTrainedError: If no training run has succeeded yet
        """
        with self._lock:
            state = self._state
        if state is None:
            raise NoModelTrainedError()
        return state

    def install(
        self,
        model: HousingModel,
        test_set: pd.DataFrame,
        request: TrainingRequest,
        train_size: int
    ) -> TrainedState:
        """
        Replace the current state with a newly trained model and its holdout set.

        Args:
            model: Fitted model
            test_set: Holdout partition of the same run (copied)
            request: Training request that produced the model
            train_size: Number of training rows

        Returns:
            The installed TrainedState
        """
        if not model.is_fitted:
            raise ValueError("Only a fitted model can be installed")

        holdout = test_set.copy()
        with self._lock:
            self._version += 1
            state = TrainedState(
                model=model,
                test_set=holdout,
                request=request,
                train_size=train_size,
                version=self._version,
                trained_at=datetime.now(),
            )
            previous = self._state
            self._state = state

        if previous is not None:
            logger.info(f"Replaced model v{previous.version} ({previous.model_kind.value}) with v{state.version}")
        logger.info(
            f"Installed {state.model_kind.value} model v{state.version} "
            f"({train_size} train rows, {len(holdout)} test rows)"
        )
        return state

    def clear(self) -> None:
        """Discard the current state."""
        with self._lock:
            self._state = None
