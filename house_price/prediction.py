"""
Prediction Module
=================

Scores a single new housing record with a fitted model.

The record is checked against the model's feature schema first: every
feature must be present, numeric features must be finite numbers and the
categorical value must be one of the levels seen at training time.
"""

import logging
import math
from typing import Dict, Any, Mapping

import pandas as pd

from .exceptions import InvalidRecordError, UnknownCategoryError
from .model import HousingModel
from .schema import FeatureSchema

logger = logging.getLogger(__name__)


def validate_record(record: Mapping[str, Any], schema: FeatureSchema) -> pd.DataFrame:
    """
    Validate one record and turn it into a single-row frame.

    Keys outside the schema (outcome, geocoordinates) are ignored.

    Args:
        record: Mapping of feature name to value
        schema: Feature schema of the fitted model

    Returns:
        Single-row DataFrame with the schema's feature columns

    Raises:
        InvalidRecordError: If a feature is missing or a numeric value is invalid
        UnknownCategoryError: If the categorical value is not a known level
    """
    missing = [name for name in schema.feature_columns if name not in record]
    if missing:
        raise InvalidRecordError(f"Record is missing feature(s): {missing}")

    row = {}
    for name in schema.numeric_features:
        value = record[name]
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidRecordError(f"Feature '{name}' must be numeric, got {value!r}")
        if not math.isfinite(number):
            raise InvalidRecordError(f"Feature '{name}' must be a finite number, got {value!r}")
        row[name] = number

    category = record[schema.categorical_feature]
    level = category.strip() if isinstance(category, str) else category
    if level not in schema.levels:
        raise UnknownCategoryError(schema.categorical_feature, category, schema.levels)
    row[schema.categorical_feature] = level

    return pd.DataFrame([row], columns=schema.feature_columns)


def predict_record(
    model: HousingModel,
    record: Mapping[str, Any],
    decimals: int = 2
) -> Dict[str, Any]:
    """
    Predict the outcome for one new record.

    Args:
        model: Fitted HousingModel
        record: Mapping of feature name to value (outcome absent)
        decimals: Precision of the display value

    Returns:
        Dictionary with predicted_value (full precision), display_value
        (rounded) and model_kind
    """
    frame = validate_record(record, model.schema)
    value = float(model.predict(frame)[0])

    result = {
        'predicted_value': value,
        'display_value': round(value, decimals),
        'model_kind': model.kind.value,
    }
    logger.info(f"Predicted {model.schema.outcome}: {result['display_value']} ({model.kind.label})")
    return result


def format_prediction(result: Dict[str, Any]) -> str:
    return f"Predicted House Value: {result['display_value']}"


def print_prediction_result(result: Dict[str, Any], record: Mapping[str, Any]) -> None:
    """
    Print the prediction and the record it was made for.

    Args:
        result: Result dictionary from predict_record
        record: Input record
    """
    print("\n" + "=" * 70)
    print("PREDICTION RESULT")
    print("=" * 70)
    for name, value in record.items():
        print(f"  {name:<22} {value}")
    print("-" * 70)
    print(f"  {format_prediction(result)}")
    print("=" * 70 + "\n")
