"""
Model Training Module
=====================

Two interchangeable regression models for median house value:

    - RandomForestHousingModel: bagged decision trees (scikit-learn
      RandomForestRegressor) with per-feature importances
    - LinearHousingModel: ordinary least squares (statsmodels OLS) with
      coefficient table, fit summary and residual diagnostics

Both share the HousingModel interface (fit / predict / summarize /
diagnostics), so evaluation and prediction never branch on model type.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.ensemble import RandomForestRegressor

from .exceptions import TrainingError
from .schema import FeatureSchema

logger = logging.getLogger(__name__)


class ModelKind(str, Enum):
    """Supported model families."""

    RANDOM_FOREST = 'random_forest'
    LINEAR = 'linear'

    @classmethod
    def parse(cls, value) -> 'ModelKind':
        """
        Resolve a user-supplied model name.

        Accepts the enum values plus the labels used in the dashboard
        ("Random Forest", "Linear Regression") and "tree-ensemble".

        Raises:
            TrainingError: If the name matches no model family
        """
        if isinstance(value, cls):
            return value

        key = str(value).strip().lower().replace('-', ' ').replace('_', ' ')
        aliases = {
            'random forest': cls.RANDOM_FOREST,
            'rf': cls.RANDOM_FOREST,
            'tree ensemble': cls.RANDOM_FOREST,
            'linear': cls.LINEAR,
            'linear regression': cls.LINEAR,
            'lm': cls.LINEAR,
            'ols': cls.LINEAR,
        }
        if key not in aliases:
            choices = ', '.join(kind.value for kind in cls)
            raise TrainingError(f"Unknown model kind: {value!r}. Choose from: {choices}")
        return aliases[key]

    @property
    def label(self) -> str:
        return 'Random Forest' if self is ModelKind.RANDOM_FOREST else 'Linear Regression'


def validate_training_set(train_set: pd.DataFrame, schema: FeatureSchema) -> None:
    """
    Check that a training partition can support a fit.

    Raises:
        TrainingError: If the partition is empty, the outcome is entirely
            missing, values are missing, or a categorical value lies outside
            the schema
    """
    if train_set is None or len(train_set) == 0:
        raise TrainingError("Training set is empty")

    missing_columns = [c for c in schema.feature_columns + [schema.outcome] if c not in train_set.columns]
    if missing_columns:
        raise TrainingError(f"Training set is missing columns: {missing_columns}")

    if train_set[schema.outcome].isna().all():
        raise TrainingError(f"Outcome column '{schema.outcome}' is entirely missing")

    n_missing = int(train_set[schema.feature_columns + [schema.outcome]].isna().sum().sum())
    if n_missing:
        raise TrainingError(
            f"Training set still holds {n_missing} missing values; impute before training"
        )

    unknown = schema.unknown_levels(train_set[schema.categorical_feature])
    if unknown:
        raise TrainingError(
            f"Training set holds '{schema.categorical_feature}' values outside the schema: {unknown}"
        )


def check_row_count(train_set: pd.DataFrame, n_parameters: int) -> None:
    """Raise TrainingError when there are fewer rows than model parameters."""
    if len(train_set) < n_parameters:
        raise TrainingError(
            f"Training set has {len(train_set)} rows but the model needs at least "
            f"{n_parameters} (one per feature)"
        )


class HousingModel(ABC):
    """
    Common interface of the regression models.

    Subclasses set ``kind`` and ``drop_first`` and implement the backend
    fit / predict plus their own summary and diagnostics.
    """

    kind: ModelKind
    drop_first: bool = False

    def __init__(self, schema: FeatureSchema):
        self.schema = schema
        self.training_info: Dict[str, Any] = {}
        self._is_fitted = False

    @property
    def is_fitted(self) -> bool:
        return self._is_fitted

    @property
    def design_columns(self):
        return self.schema.design_columns(self.drop_first)

    @property
    def n_parameters(self) -> int:
        return len(self.design_columns)

    def _check_fitted(self) -> None:
        if not self._is_fitted:
            raise ValueError("Model must be trained before use. Call fit() first.")

    def fit(self, train_set: pd.DataFrame) -> 'HousingModel':
        """
        Train the model on a training partition.

        Args:
            train_set: Cleaned frame with feature and outcome columns

        Returns:
            Self for method chaining

        Raises:
            TrainingError: If the partition cannot support a fit
        """
        validate_training_set(train_set, self.schema)

        # levels absent from the partition are not learned; predicting them is rejected later
        learned = self.schema.restrict_levels(train_set[self.schema.categorical_feature])
        if learned.levels != self.schema.levels:
            dropped = [lv for lv in self.schema.levels if lv not in learned.levels]
            logger.warning(
                f"Level(s) {dropped} of '{self.schema.categorical_feature}' do not appear "
                f"in the training set and will not be predictable"
            )
        self.schema = learned
        check_row_count(train_set, self.n_parameters)

        start_time = datetime.now()
        logger.info("=" * 60)
        logger.info(f"STARTING MODEL TRAINING ({self.kind.label})")
        logger.info("=" * 60)

        X = self.schema.design_matrix(train_set, drop_first=self.drop_first)
        y = train_set[self.schema.outcome].astype(float)
        logger.info(f"Training data shape: X={X.shape}, y={y.shape}")

        self._fit(X, y)

        end_time = datetime.now()
        training_duration = (end_time - start_time).total_seconds()
        self.training_info = {
            'model_kind': self.kind.value,
            'training_duration_seconds': training_duration,
            'n_samples': int(X.shape[0]),
            'n_features': int(X.shape[1]),
            'trained_at': end_time.isoformat(),
        }
        self._is_fitted = True

        logger.info("=" * 60)
        logger.info(f"MODEL TRAINING COMPLETE in {training_duration:.2f} seconds")
        logger.info("=" * 60)
        return self

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """
        Predict the outcome for every row of a frame.

        Args:
            frame: Rows holding the schema's feature columns

        Returns:
            1-D array of predictions
        """
        self._check_fitted()
        X = self.schema.design_matrix(frame, drop_first=self.drop_first)
        return np.asarray(self._predict(X), dtype=float)

    @abstractmethod
    def _fit(self, X: pd.DataFrame, y: pd.Series) -> None:
        ...

    @abstractmethod
    def _predict(self, X: pd.DataFrame) -> np.ndarray:
        ...

    @abstractmethod
    def summarize(self) -> str:
        """Human-readable model summary."""

    @abstractmethod
    def diagnostics(self, test_set: pd.DataFrame) -> Dict[str, Any]:
        """Model-specific diagnostic data for the evaluation report."""


class RandomForestHousingModel(HousingModel):
    """Bagged regression trees with impurity-based variable importance."""

    kind = ModelKind.RANDOM_FOREST
    drop_first = False

    def __init__(
        self,
        schema: FeatureSchema,
        n_estimators: int = 100,
        max_features=1.0,
        min_samples_leaf: int = 1,
        random_state: int = 123,
        n_jobs: int = -1
    ):
        """
        Args:
            schema: Feature schema captured from the cleaned dataset
            n_estimators: Number of trees in the ensemble
            max_features: Features considered at each split
            min_samples_leaf: Minimum samples required in a leaf
            random_state: Random seed for bootstrap and split sampling
            n_jobs: Number of parallel jobs (-1 for all cores)
        """
        super().__init__(schema)
        self.n_estimators = n_estimators
        self.max_features = max_features
        self.min_samples_leaf = min_samples_leaf
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.model: Optional[RandomForestRegressor] = None

    def _fit(self, X: pd.DataFrame, y: pd.Series) -> None:
        logger.info(f"Hyperparameters:")
        logger.info(f"  - n_estimators: {self.n_estimators}")
        logger.info(f"  - max_features: {self.max_features}")
        logger.info(f"  - min_samples_leaf: {self.min_samples_leaf}")

        self.model = RandomForestRegressor(
            n_estimators=self.n_estimators,
            max_features=self.max_features,
            min_samples_leaf=self.min_samples_leaf,
            bootstrap=True,
            oob_score=True,
            random_state=self.random_state,
            n_jobs=self.n_jobs
        )
        self.model.fit(X.values, y.values)

        self.oob_mse_ = float(np.mean((y.values - self.model.oob_prediction_) ** 2))
        self.oob_r2_ = float(self.model.oob_score_)
        logger.info(f"Out-of-bag R²: {self.oob_r2_:.4f}")

    def _predict(self, X: pd.DataFrame) -> np.ndarray:
        return self.model.predict(X.values)

    def feature_importances(self, aggregate: bool = True) -> pd.Series:
        """
        Impurity-based importance per feature, largest first.

        Args:
            aggregate: Sum the one-hot indicator importances back into the
                categorical source feature

        Returns:
            Series indexed by feature name
        """
        self._check_fitted()
        importances = pd.Series(self.model.feature_importances_, index=self.design_columns)
        if aggregate:
            importances = importances.groupby(self.schema.source_feature).sum()
        return importances.sort_values(ascending=False)

    def summarize(self) -> str:
        self._check_fitted()
        lines = [
            "Random forest regression",
            f"  Number of trees: {self.n_estimators}",
            f"  Features considered per split: {self.max_features}",
            f"  Training samples: {self.training_info['n_samples']}",
            f"  Mean of squared residuals (OOB): {self.oob_mse_:,.2f}",
            f"  % Var explained (OOB): {self.oob_r2_ * 100:.2f}",
            "",
            "Variable importance:",
        ]
        for feature, score in self.feature_importances().items():
            lines.append(f"  {feature:<22} {score:.4f}")
        return "\n".join(lines)

    def diagnostics(self, test_set: pd.DataFrame) -> Dict[str, Any]:
        importances = self.feature_importances()
        table = pd.DataFrame({
            'feature': importances.index,
            'importance': importances.values,
            'rank': np.arange(1, len(importances) + 1),
        })
        return {
            'importance': table,
            'oob_r_squared': self.oob_r2_,
            'oob_mse': self.oob_mse_,
        }


class LinearHousingModel(HousingModel):
    """Ordinary least squares with an intercept; reference level dropped."""

    kind = ModelKind.LINEAR
    drop_first = True

    def __init__(self, schema: FeatureSchema):
        super().__init__(schema)
        self.results = None

    @property
    def n_parameters(self) -> int:
        # design columns plus the intercept
        return len(self.design_columns) + 1

    def _fit(self, X: pd.DataFrame, y: pd.Series) -> None:
        exog = sm.add_constant(X, has_constant='add')
        self.results = sm.OLS(y, exog).fit()
        logger.info(f"R²: {self.results.rsquared:.4f}, adjusted R²: {self.results.rsquared_adj:.4f}")

    def _predict(self, X: pd.DataFrame) -> np.ndarray:
        exog = sm.add_constant(X, has_constant='add')
        return np.asarray(self.results.predict(exog))

    @property
    def coefficients(self) -> pd.DataFrame:
        """Estimate, standard error, t value and p value per coefficient."""
        self._check_fitted()
        return pd.DataFrame({
            'estimate': self.results.params,
            'std_error': self.results.bse,
            't_value': self.results.tvalues,
            'p_value': self.results.pvalues,
        })

    def fit_summary(self) -> Dict[str, float]:
        self._check_fitted()
        results = self.results
        return {
            'r_squared': float(results.rsquared),
            'adj_r_squared': float(results.rsquared_adj),
            'f_statistic': float(results.fvalue),
            'f_p_value': float(results.f_pvalue),
            'residual_std_error': float(np.sqrt(results.scale)),
            'df_model': float(results.df_model),
            'df_resid': float(results.df_resid),
            'n_observations': int(results.nobs),
        }

    def residual_diagnostics(self) -> pd.DataFrame:
        """
        Training residual diagnostics, one row per training observation:
        fitted value, residual, standardized residual, leverage and Cook's
        distance.
        """
        self._check_fitted()
        influence = self.results.get_influence()
        return pd.DataFrame({
            'fitted': np.asarray(self.results.fittedvalues),
            'residual': np.asarray(self.results.resid),
            'std_residual': np.asarray(influence.resid_studentized_internal),
            'leverage': np.asarray(influence.hat_matrix_diag),
            'cooks_distance': np.asarray(influence.cooks_distance[0]),
        }, index=self.results.fittedvalues.index)

    def summarize(self) -> str:
        self._check_fitted()
        return self.results.summary().as_text()

    def diagnostics(self, test_set: pd.DataFrame) -> Dict[str, Any]:
        predicted = self.predict(test_set)
        actual = test_set[self.schema.outcome].to_numpy(dtype=float)
        holdout = pd.DataFrame({
            'predicted': predicted,
            'residual': actual - predicted,
        }, index=test_set.index)
        return {
            'coefficients': self.coefficients,
            'fit': self.fit_summary(),
            'residuals': self.residual_diagnostics(),
            'holdout_residuals': holdout,
        }


def build_model(
    model_kind,
    schema: FeatureSchema,
    config: Optional[Dict[str, Any]] = None
) -> HousingModel:
    """
    Create an unfitted model of the requested kind from configuration.

    Args:
        model_kind: ModelKind or any name accepted by ModelKind.parse
        schema: Feature schema captured from the cleaned dataset
        config: Configuration dictionary

    Returns:
        Unfitted HousingModel
    """
    kind = ModelKind.parse(model_kind)
    model_config = (config or {}).get('model', {})

    if kind is ModelKind.RANDOM_FOREST:
        rf_config = model_config.get('random_forest', {})
        return RandomForestHousingModel(
            schema,
            n_estimators=rf_config.get('n_estimators', 100),
            max_features=rf_config.get('max_features', 1.0),
            min_samples_leaf=rf_config.get('min_samples_leaf', 1),
            random_state=rf_config.get('random_state', 123),
            n_jobs=rf_config.get('n_jobs', -1)
        )
    return LinearHousingModel(schema)


def train_model(
    train_set: pd.DataFrame,
    model_kind,
    schema: Optional[FeatureSchema] = None,
    config: Optional[Dict[str, Any]] = None
) -> HousingModel:
    """
    Train a model of the requested kind.

    Args:
        train_set: Training partition
        model_kind: ModelKind or any name accepted by ModelKind.parse
        schema: Feature schema (default: captured from train_set)
        config: Configuration dictionary

    Returns:
        Fitted HousingModel

    Raises:
        TrainingError: If the request or the partition is invalid, or the
            backend fit fails
    """
    if schema is None:
        if train_set is None or len(train_set) == 0:
            raise TrainingError("Training set is empty")
        schema = FeatureSchema.from_frame(train_set)

    model = build_model(model_kind, schema, config)

    try:
        model.fit(train_set)
    except TrainingError:
        raise
    except (ValueError, np.linalg.LinAlgError) as e:
        raise TrainingError(f"{model.kind.label} fit failed: {e}") from e

    return model


def print_model_summary(model: HousingModel) -> None:
    """
    Print a summary of the trained model.

    Args:
        model: Trained model instance
    """
    print("\n" + "=" * 70)
    print(f"MODEL SUMMARY - {model.kind.label.upper()}")
    print("=" * 70)
    print(model.summarize())
    if model.training_info:
        print(f"\nTraining Info:")
        print(f"  - Duration: {model.training_info.get('training_duration_seconds', 0.0):.2f}s")
        print(f"  - Samples: {model.training_info.get('n_samples', 'N/A')}")
        print(f"  - Design columns: {model.training_info.get('n_features', 'N/A')}")
    print("=" * 70 + "\n")
