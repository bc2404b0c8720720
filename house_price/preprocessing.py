"""
Data Preprocessing Module
=========================

Prepares the raw housing table for modeling.

Steps:
    - normalize_categoricals: canonical pandas Categorical for text columns
    - drop_columns: remove geocoordinates (used by the map only)
    - HousingImputer: multivariate imputation of missing values
    - preprocess_dataset: the three steps above in one call
"""

import logging
import warnings
from typing import Dict, Any, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.experimental import enable_iterative_imputer  # noqa: F401
from sklearn.impute import IterativeImputer

from .exceptions import ImputationError
from .schema import GEO_COLUMNS, count_missing

logger = logging.getLogger(__name__)

IMPUTATION_SCOPES = ('pooled', 'train_only')


def normalize_categoricals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Convert every text-like column to a pandas Categorical.

    Values are whitespace-stripped and levels are sorted, so the same raw
    file always yields the same level order.

    Args:
        df: Raw DataFrame

    Returns:
        New DataFrame with categorical columns normalized
    """
    df = df.copy()
    text_columns = df.select_dtypes(include=['object', 'string', 'category']).columns

    for col in text_columns:
        values = df[col].astype('string').str.strip()
        levels = sorted(values.dropna().unique())
        df[col] = pd.Categorical(values.astype(object).where(values.notna(), np.nan), categories=levels)
        logger.debug(f"Normalized '{col}' to categorical with levels {levels}")

    return df


def drop_columns(df: pd.DataFrame, columns: Sequence[str] = GEO_COLUMNS) -> pd.DataFrame:
    """Drop the given columns when present; the input is left untouched."""
    present = [c for c in columns if c in df.columns]
    if present:
        logger.info(f"Dropping columns not used for modeling: {present}")
    return df.drop(columns=present)


class HousingImputer:
    """
    Multivariate imputation for the housing table.

    Each incomplete numeric column is regressed on all the others in a
    round-robin (scikit-learn IterativeImputer). The categorical column
    takes part through one indicator column per level; a missing category
    is filled with the level whose imputed indicator is largest.
    """

    def __init__(
        self,
        max_iter: int = 5,
        random_state: int = 123,
        strict_convergence: bool = False,
        categorical_columns: Optional[List[str]] = None
    ):
        """
        Args:
            max_iter: Number of imputation rounds over all columns
            random_state: Seed for the imputer
            strict_convergence: Raise ImputationError when the imputer
                stops at max_iter without converging
            categorical_columns: Categorical columns to impute
                (default: every categorical column of the fitted frame)
        """
        self.max_iter = max_iter
        self.random_state = random_state
        self.strict_convergence = strict_convergence
        self.categorical_columns = categorical_columns

        self.imputer: Optional[IterativeImputer] = None
        self.numeric_columns_: Optional[List[str]] = None
        self.categorical_levels_: Dict[str, List[str]] = {}
        self.converged_: Optional[bool] = None
        self._is_fitted = False

    def _encode(self, df: pd.DataFrame) -> pd.DataFrame:
        """Numeric columns plus one indicator per categorical level (NaN when missing)."""
        parts = [df[self.numeric_columns_].astype(float)]

        for col, levels in self.categorical_levels_.items():
            values = df[col].astype(object)
            missing = values.isna()
            for level in levels:
                indicator = (values == level).astype(float)
                indicator[missing] = np.nan
                parts.append(indicator.rename(f"{col}__{level}"))

        return pd.concat(parts, axis=1)

    def _check_columns(self, df: pd.DataFrame) -> None:
        empty = [c for c in df.columns if df[c].isna().all()]
        if empty:
            raise ImputationError(
                f"Cannot impute: all values are missing in column(s) {empty}"
            )

    def fit(self, df: pd.DataFrame) -> 'HousingImputer':
        """
        Fit the imputation model.

        Args:
            df: Frame with numeric and categorical columns

        Returns:
            Self for method chaining
        """
        if df.empty:
            raise ImputationError("Cannot fit imputer on an empty table")
        self._check_columns(df)

        if self.categorical_columns is None:
            categorical = df.select_dtypes(include=['category', 'object']).columns.tolist()
        else:
            categorical = list(self.categorical_columns)

        self.numeric_columns_ = [c for c in df.columns if c not in categorical]
        self.categorical_levels_ = {}
        for col in categorical:
            if isinstance(df[col].dtype, pd.CategoricalDtype):
                levels = [str(level) for level in df[col].cat.categories]
            else:
                levels = sorted(str(v) for v in df[col].dropna().unique())
            self.categorical_levels_[col] = levels

        self.imputer = IterativeImputer(
            max_iter=self.max_iter,
            random_state=self.random_state,
            sample_posterior=False
        )

        encoded = self._encode(df)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always', ConvergenceWarning)
            try:
                self.imputer.fit(encoded.values)
            except ValueError as e:
                raise ImputationError(f"Imputation failed: {e}") from e

        self.converged_ = not any(issubclass(w.category, ConvergenceWarning) for w in caught)
        if not self.converged_:
            message = (
                f"Imputation did not converge within {self.max_iter} iterations"
            )
            if self.strict_convergence:
                raise ImputationError(message)
            logger.warning(message)

        self._is_fitted = True
        logger.info(
            f"Fitted imputer on {len(df)} rows "
            f"({len(self.numeric_columns_)} numeric, {len(self.categorical_levels_)} categorical columns)"
        )
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Fill missing values using the fitted imputation model.

        Args:
            df: Frame with the same columns the imputer was fitted on

        Returns:
            New DataFrame without missing values; dtypes preserved
        """
        if not self._is_fitted:
            raise ValueError("Imputer must be fitted before transform. Call fit() first.")

        result = df.copy()
        n_missing = count_missing(df[self.numeric_columns_ + list(self.categorical_levels_)])
        if n_missing == 0:
            return result

        encoded = self._encode(df)
        filled = pd.DataFrame(
            self.imputer.transform(encoded.values),
            columns=encoded.columns,
            index=df.index
        )

        for col in self.numeric_columns_:
            result[col] = filled[col]

        for col, levels in self.categorical_levels_.items():
            missing = df[col].isna()
            if not missing.any():
                continue
            scores = filled.loc[missing, [f"{col}__{level}" for level in levels]].values
            chosen = [levels[i] for i in scores.argmax(axis=1)]
            column = result[col].astype(object)
            column[missing] = chosen
            if isinstance(df[col].dtype, pd.CategoricalDtype):
                result[col] = pd.Categorical(column, categories=df[col].cat.categories)
            else:
                result[col] = column

        logger.info(f"Imputed {n_missing} missing values across {len(df)} rows")
        return result

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        self.fit(df)
        return self.transform(df)


def build_imputer(config: Dict[str, Any]) -> HousingImputer:
    """Create a HousingImputer from the ``preprocessing.imputation`` config section."""
    imp_config = config.get('preprocessing', {}).get('imputation', {})
    return HousingImputer(
        max_iter=imp_config.get('max_iter', 5),
        random_state=imp_config.get('random_state', 123),
        strict_convergence=imp_config.get('strict_convergence', False)
    )


def imputation_scope(config: Dict[str, Any]) -> str:
    scope = config.get('preprocessing', {}).get('imputation', {}).get('scope', 'pooled')
    if scope not in IMPUTATION_SCOPES:
        raise ValueError(f"Unknown imputation scope: {scope}. Choose from: {', '.join(IMPUTATION_SCOPES)}")
    return scope


def preprocess_dataset(
    df: pd.DataFrame,
    config: Optional[Dict[str, Any]] = None,
    impute: bool = True
) -> pd.DataFrame:
    """
    Clean the raw housing table for modeling.

    Args:
        df: Raw DataFrame (not mutated)
        config: Configuration dictionary
        impute: Fill missing values (False leaves them for a later,
            train-only imputation)

    Returns:
        Cleaned DataFrame
    """
    config = config or {}
    prep_config = config.get('preprocessing', {})

    logger.info("=" * 60)
    logger.info("STARTING DATA PREPROCESSING")
    logger.info("=" * 60)

    cleaned = normalize_categoricals(df)
    cleaned = drop_columns(cleaned, prep_config.get('drop_columns', GEO_COLUMNS))

    n_missing = count_missing(cleaned)
    logger.info(f"Missing values before imputation: {n_missing}")

    if impute:
        cleaned = build_imputer(config).fit_transform(cleaned)
        logger.info(f"Missing values after imputation: {count_missing(cleaned)}")

    logger.info("=" * 60)
    logger.info(f"PREPROCESSING COMPLETE: {cleaned.shape[0]} rows × {cleaned.shape[1]} columns")
    logger.info("=" * 60)

    return cleaned
