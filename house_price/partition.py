"""
Partitioning Module
===================

Seeded train/holdout split stratified on the outcome distribution.

The outcome is cut into quantile buckets and the same fraction of rows is
drawn from every bucket, so train and holdout keep roughly the same outcome
distribution. A fixed seed always reproduces the same split.
"""

import logging
import math
from typing import Tuple

import numpy as np
import pandas as pd

from .exceptions import TrainingError
from .schema import OUTCOME

logger = logging.getLogger(__name__)


def validate_train_fraction(train_fraction: float) -> float:
    """
    Check that a train fraction lies strictly between 0 and 1.

    Raises:
        TrainingError: If the fraction is not a number in (0, 1)
    """
    try:
        fraction = float(train_fraction)
    except (TypeError, ValueError):
        raise TrainingError(f"train_fraction must be a number, got {train_fraction!r}")

    if math.isnan(fraction) or not 0.0 < fraction < 1.0:
        raise TrainingError(
            f"train_fraction must be strictly between 0 and 1, got {train_fraction}"
        )
    return fraction


def outcome_buckets(y: pd.Series, n_buckets: int = 5) -> pd.Series:
    """
    Assign each row to a quantile bucket of the outcome.

    Duplicate quantile edges are collapsed, so heavily tied outcomes give
    fewer buckets rather than an error.
    """
    n_buckets = max(1, min(n_buckets, len(y)))
    if n_buckets == 1 or y.nunique() < 2:
        return pd.Series(0, index=y.index)

    buckets = pd.qcut(y, q=n_buckets, labels=False, duplicates='drop')
    return buckets.astype(int)


def stratified_split(
    df: pd.DataFrame,
    train_fraction: float,
    seed: int = 123,
    outcome: str = OUTCOME,
    n_buckets: int = 5,
    require_complete: bool = True
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a cleaned dataset into train and holdout sets.

    Within each outcome bucket ``ceil(train_fraction * bucket_size)`` rows
    are sampled without replacement for training; the rest go to holdout.

    Args:
        df: Cleaned DataFrame (not mutated)
        train_fraction: Share of rows for training, in (0, 1)
        seed: Random seed; the same seed reproduces the same split
        outcome: Name of the outcome column to stratify on
        n_buckets: Number of outcome quantile buckets
        require_complete: Drop rows with any missing value first; when
            False only rows missing the outcome are dropped

    Returns:
        Tuple of (train_set, test_set), both keeping the original index

    Raises:
        TrainingError: If the fraction is invalid or no usable rows remain
    """
    fraction = validate_train_fraction(train_fraction)

    if outcome not in df.columns:
        raise TrainingError(f"Outcome column '{outcome}' not found in dataset")

    if require_complete:
        usable = df.dropna()
    else:
        usable = df.dropna(subset=[outcome])

    dropped = len(df) - len(usable)
    if dropped:
        logger.warning(f"Dropped {dropped} rows with missing values before partitioning")

    if usable.empty:
        raise TrainingError("No complete rows available to partition")

    rng = np.random.default_rng(seed)
    buckets = outcome_buckets(usable[outcome], n_buckets)

    positions = np.arange(len(usable))
    selected = []
    for bucket in sorted(buckets.unique()):
        members = positions[buckets.values == bucket]
        n_take = min(len(members), math.ceil(len(members) * fraction))
        selected.append(rng.choice(members, size=n_take, replace=False))

    train_mask = np.zeros(len(usable), dtype=bool)
    train_mask[np.concatenate(selected)] = True

    train_set = usable.iloc[train_mask].copy()
    test_set = usable.iloc[~train_mask].copy()

    logger.info(
        f"Stratified split (p={fraction}, seed={seed}, buckets={buckets.nunique()}): "
        f"{len(train_set)} train rows, {len(test_set)} test rows"
    )

    return train_set, test_set
