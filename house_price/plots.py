"""
Plotting Module
===============

Charts for the housing data and the trained models.

Functions:
    - plot_variable_distribution: histogram (numeric) or bar chart (categorical)
    - plot_variable_importance: ranked importance of a random forest
    - plot_linear_diagnostics: 2x2 residual diagnostic panel of a linear model
    - plot_actual_vs_predicted: holdout predictions against actual values
    - save_model_plots: write the charts that apply to an evaluation result
    - save_variable_plots: write distribution charts for selected columns
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats

logger = logging.getLogger(__name__)

plt.style.use('seaborn-v0_8-whitegrid')


def _finish(fig: plt.Figure, save_path: Optional[str], label: str) -> plt.Figure:
    fig.tight_layout()
    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"{label} saved to {save_path}")
    return fig


def plot_variable_distribution(
    df: pd.DataFrame,
    column: str,
    bins: int = 30,
    figsize: Tuple[int, int] = (8, 5),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Plot the distribution of one column.

    Numeric columns get a histogram, anything else a bar chart of level
    counts.

    Args:
        df: DataFrame holding the column
        column: Column to plot
        bins: Histogram bins for numeric columns
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    if column not in df.columns:
        raise ValueError(f"Unknown column: {column}")

    fig, ax = plt.subplots(figsize=figsize)

    if pd.api.types.is_numeric_dtype(df[column]):
        sns.histplot(df[column].dropna(), bins=bins, color='steelblue', ax=ax)
        ax.set_ylabel('Count')
    else:
        counts = df[column].astype(str).value_counts()
        sns.barplot(x=counts.index, y=counts.values, color='steelblue', ax=ax)
        ax.set_ylabel('Count')
        ax.tick_params(axis='x', rotation=30)

    ax.set_xlabel(column)
    ax.set_title(f'Distribution of {column}', fontsize=12, fontweight='bold')

    return _finish(fig, save_path, "Distribution plot")


def plot_variable_importance(
    importance: pd.DataFrame,
    figsize: Tuple[int, int] = (8, 5),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Horizontal bar chart of variable importance, most important on top.

    Args:
        importance: Frame with 'feature' and 'importance' columns
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    ordered = importance.sort_values('importance', ascending=True)

    fig, ax = plt.subplots(figsize=figsize)
    ax.barh(ordered['feature'], ordered['importance'], color='steelblue', alpha=0.8)
    ax.set_xlabel('Importance (mean decrease in impurity)')
    ax.set_title('Variable Importance', fontsize=12, fontweight='bold')

    return _finish(fig, save_path, "Variable importance plot")


def plot_linear_diagnostics(
    residuals: pd.DataFrame,
    figsize: Tuple[int, int] = (12, 10),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Four-panel residual diagnostics of a linear model.

    Panels: residuals vs fitted, normal Q-Q of standardized residuals,
    scale-location, standardized residuals vs leverage.

    Args:
        residuals: Frame from LinearHousingModel.residual_diagnostics()
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    fig, axes = plt.subplots(2, 2, figsize=figsize)
    axes = axes.flatten()

    fitted = residuals['fitted']
    std_resid = residuals['std_residual']

    ax = axes[0]
    ax.scatter(fitted, residuals['residual'], alpha=0.4, s=10)
    ax.axhline(0, color='red', linestyle='--', linewidth=1)
    ax.set_xlabel('Fitted values')
    ax.set_ylabel('Residuals')
    ax.set_title('Residuals vs Fitted', fontsize=10, fontweight='bold')

    ax = axes[1]
    (theoretical, ordered), (slope, intercept, _) = stats.probplot(std_resid, dist='norm')
    ax.scatter(theoretical, ordered, alpha=0.4, s=10)
    ax.plot(theoretical, slope * np.asarray(theoretical) + intercept, 'r--', linewidth=1)
    ax.set_xlabel('Theoretical quantiles')
    ax.set_ylabel('Standardized residuals')
    ax.set_title('Normal Q-Q', fontsize=10, fontweight='bold')

    ax = axes[2]
    ax.scatter(fitted, np.sqrt(np.abs(std_resid)), alpha=0.4, s=10)
    ax.set_xlabel('Fitted values')
    ax.set_ylabel('√|Standardized residuals|')
    ax.set_title('Scale-Location', fontsize=10, fontweight='bold')

    ax = axes[3]
    ax.scatter(residuals['leverage'], std_resid, alpha=0.4, s=10)
    ax.axhline(0, color='gray', linestyle=':', linewidth=1)
    ax.set_xlabel('Leverage')
    ax.set_ylabel('Standardized residuals')
    ax.set_title("Residuals vs Leverage", fontsize=10, fontweight='bold')

    fig.suptitle('Linear Regression Diagnostics', fontsize=14, fontweight='bold')

    return _finish(fig, save_path, "Linear diagnostics plot")


def plot_actual_vs_predicted(
    predictions: pd.DataFrame,
    figsize: Tuple[int, int] = (7, 7),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Scatter of holdout predictions against actual values.

    Args:
        predictions: Frame with 'actual' and 'predicted' columns
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    actual = predictions['actual']
    predicted = predictions['predicted']

    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(actual, predicted, alpha=0.4, s=10)

    min_val = min(actual.min(), predicted.min())
    max_val = max(actual.max(), predicted.max())
    ax.plot([min_val, max_val], [min_val, max_val], 'r--', linewidth=2, label='Perfect')

    ax.set_xlabel('Actual')
    ax.set_ylabel('Predicted')
    ax.set_title('Actual vs Predicted (holdout)', fontsize=12, fontweight='bold')
    ax.legend(loc='upper left')

    return _finish(fig, save_path, "Actual vs predicted plot")


def save_model_plots(result: Dict[str, Any], output_dir: str) -> List[str]:
    """
    Save every chart that applies to an evaluation result.

    Args:
        result: Result dictionary from evaluate_model
        output_dir: Directory for the image files

    Returns:
        Paths of the saved figures
    """
    output_dir = Path(output_dir)
    diagnostics = result.get('diagnostics', {})
    saved = []

    path = output_dir / 'actual_vs_predicted.png'
    plot_actual_vs_predicted(result['predictions'], save_path=str(path))
    saved.append(str(path))

    if 'importance' in diagnostics:
        path = output_dir / 'variable_importance.png'
        plot_variable_importance(diagnostics['importance'], save_path=str(path))
        saved.append(str(path))

    if 'residuals' in diagnostics:
        path = output_dir / 'linear_diagnostics.png'
        plot_linear_diagnostics(diagnostics['residuals'], save_path=str(path))
        saved.append(str(path))

    plt.close('all')
    return saved


def save_variable_plots(df: pd.DataFrame, columns: List[str], output_dir: str) -> List[str]:
    """
    Save a distribution chart for each requested column.

    Returns:
        Paths of the saved figures, one ``distribution_<column>.png`` each
    """
    output_dir = Path(output_dir)
    saved = []
    for column in columns:
        path = output_dir / f"distribution_{column.replace(' ', '_')}.png"
        plot_variable_distribution(df, column, save_path=str(path))
        saved.append(str(path))

    plt.close('all')
    return saved
