"""
Model Evaluation Module
=======================

Scores a fitted model against its holdout set.

Features:
    - RMSE, MAE and R² on the holdout set
    - Variable importance ranking (random forest)
    - Coefficient table and residual diagnostics (linear regression)
    - Console evaluation report
"""

import logging
from typing import Dict, Any

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score

from .model import HousingModel

logger = logging.getLogger(__name__)


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
    """
    Calculate regression error metrics.

    Args:
        y_true: Actual outcome values
        y_pred: Predicted outcome values

    Returns:
        Dictionary with rmse, mae, r_squared, mean_error and n_samples

    Raises:
        ValueError: If fewer than 2 samples are given
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    if len(y_true) == 0:
        raise ValueError("Cannot evaluate on an empty test set")
    if len(y_true) < 2:
        raise ValueError("R² needs at least 2 test samples; use a smaller train fraction")

    errors = y_true - y_pred
    r_squared = r2_score(y_true, y_pred)

    return {
        'rmse': float(np.sqrt(mean_squared_error(y_true, y_pred))),
        'mae': float(mean_absolute_error(y_true, y_pred)),
        'r_squared': float(r_squared),
        'mean_error': float(np.mean(errors)),
        'max_error': float(np.max(np.abs(errors))),
        'n_samples': int(len(y_true)),
    }


def evaluate_model(model: HousingModel, test_set: pd.DataFrame) -> Dict[str, Any]:
    """
    Evaluate a fitted model on a holdout set.

    Neither the model nor the test set is modified; the model only reads a
    private copy of the holdout rows. Rows whose categorical level the model
    never learned cannot be predicted; they are left out of scoring and
    counted in ``n_unscored``.

    Args:
        model: Fitted HousingModel
        test_set: Holdout partition with the outcome column

    Returns:
        Dictionary containing model_kind, rmse, mae, r_squared, n_samples,
        n_unscored, predictions and model-specific diagnostics

    Raises:
        ValueError: If fewer than 2 holdout rows can be scored
    """
    logger.info("=" * 60)
    logger.info(f"STARTING MODEL EVALUATION ({model.kind.label})")
    logger.info("=" * 60)

    schema = model.schema
    holdout = test_set.copy()
    unlearned = ~holdout[schema.categorical_feature].astype(str).isin(list(schema.levels))
    n_unscored = int(unlearned.sum())
    if n_unscored:
        logger.warning(
            f"{n_unscored} holdout row(s) hold '{schema.categorical_feature}' levels the model "
            f"never learned; they are not scored"
        )
        holdout = holdout[~unlearned]
    if len(holdout) < 2:
        raise ValueError(
            f"Holdout set has {len(holdout)} scorable row(s); evaluation needs at least 2"
        )

    y_true = holdout[schema.outcome].to_numpy(dtype=float)
    y_pred = model.predict(holdout)

    metrics = calculate_metrics(y_true, y_pred)
    diagnostics = model.diagnostics(holdout)

    result = {
        'model_kind': model.kind.value,
        **metrics,
        'n_unscored': n_unscored,
        'predictions': pd.DataFrame({'actual': y_true, 'predicted': y_pred}, index=holdout.index),
        'diagnostics': diagnostics,
    }

    logger.info("=" * 60)
    logger.info("EVALUATION COMPLETE")
    logger.info(f"  RMSE: {metrics['rmse']:.4f}")
    logger.info(f"  MAE: {metrics['mae']:.4f}")
    logger.info(f"  R²: {metrics['r_squared']:.4f}")
    logger.info("=" * 60)

    return result


def print_evaluation_report(result: Dict[str, Any]) -> None:
    """
    Print a formatted evaluation report to console.

    Args:
        result: Result dictionary from evaluate_model
    """
    print("\n" + "=" * 70)
    print("MODEL EVALUATION REPORT")
    print("=" * 70)
    print(f"Model: {result['model_kind']}")
    print(f"Holdout samples: {result['n_samples']}")
    if result.get('n_unscored'):
        print(f"Unscored rows (level not learned): {result['n_unscored']}")
    print("-" * 70)
    print(f"{'RMSE':<12} {'MAE':<12} {'R²':<12}")
    print(f"{result['rmse']:<12.2f} {result['mae']:<12.2f} {result['r_squared']:<12.4f}")
    print("-" * 70)

    diagnostics = result.get('diagnostics', {})

    if 'importance' in diagnostics:
        print("\nVariable Importance:")
        for _, row in diagnostics['importance'].iterrows():
            print(f"  {int(row['rank']):>2}. {row['feature']:<22} {row['importance']:.4f}")

    if 'coefficients' in diagnostics:
        print("\nCoefficients:")
        print(diagnostics['coefficients'].round(4).to_string())
        fit = diagnostics['fit']
        print(f"\nResidual standard error: {fit['residual_std_error']:.2f} on {fit['df_resid']:.0f} degrees of freedom")
        print(f"Multiple R²: {fit['r_squared']:.4f}, Adjusted R²: {fit['adj_r_squared']:.4f}")
        print(f"F-statistic: {fit['f_statistic']:.2f} (p = {fit['f_p_value']:.3g})")

        influential = diagnostics['residuals'].nlargest(5, 'cooks_distance')
        print("\nMost influential training rows (Cook's distance):")
        print(influential.round(4).to_string())

    # Interpretation
    r_squared = result['r_squared']
    print("\nInterpretation:")
    if r_squared > 0.8:
        print("  ✓ Good model performance (R² > 0.8)")
    elif r_squared > 0.5:
        print("  ⚠ Moderate model performance (R² > 0.5)")
    else:
        print("  ✗ Poor model performance (R² <= 0.5)")

    print("=" * 70 + "\n")
