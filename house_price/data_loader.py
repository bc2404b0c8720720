"""
Data Loader Module
==================

Handles configuration loading, CSV ingestion and basic data quality checks.

Functions:
    - load_config: Load YAML configuration file
    - load_data: Load the housing CSV and check the required columns
    - validate_data: Check data quality constraints
    - print_data_summary: Console summary of the dataset
"""

import logging
from pathlib import Path
from typing import Dict, Any, Sequence, Tuple

import pandas as pd
import numpy as np
import yaml

from .schema import CATEGORICAL_FEATURE, REQUIRED_COLUMNS

logger = logging.getLogger(__name__)


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def load_data(
    file_path: str,
    required_columns: Sequence[str] = REQUIRED_COLUMNS
) -> pd.DataFrame:
    """
    Load the housing CSV and check that every required column is present.

    Args:
        file_path: Path to the CSV file
        required_columns: Columns the file must contain

    Returns:
        DataFrame containing the loaded data

    Raises:
        FileNotFoundError: If data file doesn't exist
        ValueError: If required columns are missing
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    df = pd.read_csv(file_path)
    logger.info(f"Loaded data from {file_path}: {df.shape[0]} rows × {df.shape[1]} columns")

    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        raise ValueError(
            f"Missing required columns: {missing}. "
            f"Columns: {list(df.columns)}"
        )

    return df


def validate_data(df: pd.DataFrame, strict: bool = True) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate data quality constraints for the housing table.

    Checks:
        - Numeric columns hold numbers
        - Missing values (reported; they are imputed later)
        - Duplicate rows

    Args:
        df: DataFrame to validate
        strict: If True, raise errors on validation failure

    Returns:
        Tuple of (is_valid, validation_report)
    """
    report = {
        "total_rows": len(df),
        "total_columns": len(df.columns),
        "column_names": list(df.columns),
        "issues": []
    }

    # Check 1: Everything except the categorical column should be numeric
    expected_numeric = [c for c in REQUIRED_COLUMNS if c != CATEGORICAL_FEATURE and c in df.columns]
    non_numeric_cols = [c for c in expected_numeric if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric_cols:
        issue = f"Non-numeric columns found: {non_numeric_cols}"
        report["issues"].append(issue)
        logger.warning(issue)

    # Check 2: Missing values
    missing_counts = df.isnull().sum()
    total_missing = int(missing_counts.sum())
    if total_missing > 0:
        missing_pct = (total_missing / (df.shape[0] * df.shape[1])) * 100
        issue = f"Missing values: {total_missing} ({missing_pct:.2f}%)"
        report["issues"].append(issue)
        report["missing_by_column"] = missing_counts[missing_counts > 0].to_dict()
        logger.warning(issue)

    # Check 3: Duplicate rows
    duplicates = int(df.duplicated().sum())
    if duplicates > 0:
        issue = f"Duplicate rows found: {duplicates}"
        report["issues"].append(issue)
        logger.warning(issue)

    if CATEGORICAL_FEATURE in df.columns:
        report["categorical_levels"] = sorted(str(v) for v in df[CATEGORICAL_FEATURE].dropna().unique())

    is_valid = len(report["issues"]) == 0
    report["is_valid"] = is_valid

    if strict and not is_valid:
        raise ValueError(f"Data validation failed: {report['issues']}")

    return is_valid, report


def print_data_summary(df: pd.DataFrame) -> None:
    """
    Print a formatted summary of the dataset to console.

    Args:
        df: DataFrame to summarize
    """
    print("\n" + "=" * 60)
    print("DATASET SUMMARY")
    print("=" * 60)
    print(f"Shape: {df.shape[0]} rows × {df.shape[1]} columns")
    print(f"Memory Usage: {df.memory_usage(deep=True).sum() / 1024:.2f} KB")
    print("\nColumn Information:")
    print("-" * 40)

    for col in df.columns:
        dtype = df[col].dtype
        non_null = df[col].count()
        null_pct = (1 - non_null / len(df)) * 100 if len(df) else 0.0
        print(f"  {col}: {dtype} | {non_null} non-null ({null_pct:.1f}% missing)")

    print("\nBasic Statistics:")
    print("-" * 40)
    print(df.describe(include=[np.number]).round(4).to_string())

    if CATEGORICAL_FEATURE in df.columns:
        print(f"\n{CATEGORICAL_FEATURE} levels:")
        print(df[CATEGORICAL_FEATURE].value_counts(dropna=False).to_string())
    print("=" * 60 + "\n")
