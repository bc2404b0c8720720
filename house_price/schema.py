"""
Feature Schema
==============

Column layout of the housing dataset and the design-matrix encoding shared
by both model families.

The schema is captured from the cleaned dataset, narrowed to the levels the
training partition actually holds, and travels with the fitted model, so
evaluation and prediction encode the categorical attribute with exactly the
levels the model learned.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NUMERIC_FEATURES = (
    'housing_median_age',
    'total_rooms',
    'total_bedrooms',
    'population',
    'households',
    'median_income',
)
CATEGORICAL_FEATURE = 'ocean_proximity'
OUTCOME = 'median_house_value'
GEO_COLUMNS = ('longitude', 'latitude')

# Columns the loader requires in a raw housing file
REQUIRED_COLUMNS = NUMERIC_FEATURES + GEO_COLUMNS + (OUTCOME, CATEGORICAL_FEATURE)


@dataclass(frozen=True)
class FeatureSchema:
    """
    Modeling schema: which columns are features and how the categorical
    attribute is encoded.

    Attributes:
        numeric_features: Names of numeric feature columns, in design order
        categorical_feature: Name of the categorical feature column
        levels: Ordered level set of the categorical feature
        outcome: Name of the outcome column
    """

    numeric_features: Tuple[str, ...] = NUMERIC_FEATURES
    categorical_feature: str = CATEGORICAL_FEATURE
    levels: Tuple[str, ...] = ()
    outcome: str = OUTCOME

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> 'FeatureSchema':
        """
        Capture the schema of a cleaned dataset.

        Levels are taken from the categorical dtype when present, otherwise
        from the sorted set of observed values.
        """
        column = df[CATEGORICAL_FEATURE]
        if isinstance(column.dtype, pd.CategoricalDtype):
            levels = tuple(str(level) for level in column.cat.categories)
        else:
            levels = tuple(sorted(str(v) for v in column.dropna().unique()))

        numeric = tuple(c for c in NUMERIC_FEATURES if c in df.columns)
        schema = cls(numeric_features=numeric, levels=levels)
        logger.debug(f"Captured schema: {len(numeric)} numeric features, levels={levels}")
        return schema

    @property
    def feature_columns(self) -> List[str]:
        """Source feature columns (outcome excluded)."""
        return list(self.numeric_features) + [self.categorical_feature]

    def indicator_name(self, level: str) -> str:
        return f"{self.categorical_feature}_{level}"

    def design_columns(self, drop_first: bool = False) -> List[str]:
        """Column names of the encoded design matrix, in fixed order."""
        levels = self.levels[1:] if drop_first else self.levels
        return list(self.numeric_features) + [self.indicator_name(lv) for lv in levels]

    def design_matrix(self, df: pd.DataFrame, drop_first: bool = False) -> pd.DataFrame:
        """
        One-hot encode a frame into the model's design matrix.

        The categorical column is cast to the schema's level set, so the
        output always has the same columns whatever levels the frame holds.
        Values outside the level set become all-zero rows; callers that must
        reject them validate first.

        Args:
            df: Frame holding at least the feature columns
            drop_first: Drop the reference (first) level, for models with
                an intercept

        Returns:
            Float DataFrame with columns ``design_columns(drop_first)``
        """
        numeric = df[list(self.numeric_features)].astype(float)

        categories = pd.Categorical(
            df[self.categorical_feature].astype(str), categories=list(self.levels)
        )
        indicators = pd.get_dummies(
            categories, prefix=self.categorical_feature, prefix_sep='_', dtype=float
        )
        indicators.index = df.index

        design = pd.concat([numeric, indicators], axis=1)
        return design[self.design_columns(drop_first)]

    def source_feature(self, design_column: str) -> str:
        """Map an encoded design column back to the source feature it came from."""
        if design_column in self.numeric_features:
            return design_column
        prefix = f"{self.categorical_feature}_"
        if design_column.startswith(prefix):
            return self.categorical_feature
        return design_column

    def restrict_levels(self, values) -> 'FeatureSchema':
        """Schema keeping only the levels that occur in ``values``, in the original order."""
        observed = {str(v) for v in values if not _is_missing(v)}
        return replace(self, levels=tuple(lv for lv in self.levels if lv in observed))

    def unknown_levels(self, values) -> List[str]:
        """Values (non-missing) that are not part of the level set."""
        known = set(self.levels)
        return sorted({str(v) for v in values if not _is_missing(v) and str(v) not in known})


def _is_missing(value) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def count_missing(df: pd.DataFrame) -> int:
    """Total number of missing cells in a frame."""
    return int(np.asarray(df.isnull().sum()).sum())
