"""
Shared fixtures: synthetic housing tables with a known structure.
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

LEVELS = ['<1H OCEAN', 'INLAND', 'NEAR BAY', 'NEAR OCEAN']
LEVEL_EFFECT = {'<1H OCEAN': 0.5, 'INLAND': -1.0, 'NEAR BAY': 1.0, 'NEAR OCEAN': 0.8}


def make_housing_frame(
    n_samples: int = 1000,
    seed: int = 0,
    noise_sd: float = 0.5,
    linear_only: bool = False,
    missing_rate: float = 0.0
) -> pd.DataFrame:
    """
    Build a raw housing table.

    With ``linear_only`` the outcome is exactly 3 * median_income + noise;
    otherwise rooms, age and the ocean proximity level also contribute.
    """
    rng = np.random.default_rng(seed)
    households = rng.uniform(100, 1000, n_samples)
    df = pd.DataFrame({
        'longitude': rng.uniform(-124, -114, n_samples),
        'latitude': rng.uniform(32, 42, n_samples),
        'housing_median_age': rng.uniform(1, 52, n_samples),
        'total_rooms': households * rng.uniform(4, 6, n_samples),
        'total_bedrooms': households * rng.uniform(0.9, 1.3, n_samples),
        'population': households * rng.uniform(2, 4, n_samples),
        'households': households,
        'median_income': rng.uniform(1, 10, n_samples),
        'ocean_proximity': rng.choice(LEVELS, n_samples),
    })

    noise = rng.normal(0, noise_sd, n_samples)
    if linear_only:
        outcome = 3.0 * df['median_income'] + noise
    else:
        outcome = (
            3.0 * df['median_income']
            + 0.02 * df['housing_median_age']
            + df['ocean_proximity'].map(LEVEL_EFFECT)
            + noise
        )
    df['median_house_value'] = outcome

    if missing_rate > 0:
        for col in ['total_bedrooms', 'population', 'ocean_proximity']:
            mask = rng.random(n_samples) < missing_rate
            df.loc[mask, col] = np.nan

    return df


@pytest.fixture
def housing_frame():
    """Raw table without missing values."""
    return make_housing_frame(n_samples=600, seed=1)


@pytest.fixture
def housing_frame_missing():
    """Raw table with about 5% missing values in three columns."""
    return make_housing_frame(n_samples=600, seed=2, missing_rate=0.05)


@pytest.fixture
def linear_frame():
    """Raw table where the outcome is 3 * median_income + N(0, 0.5)."""
    return make_housing_frame(n_samples=1000, seed=3, noise_sd=0.5, linear_only=True)


@pytest.fixture
def fast_config():
    """Configuration with a small forest so tests stay quick."""
    return {
        'preprocessing': {
            'imputation': {'scope': 'pooled', 'max_iter': 5, 'random_state': 0},
        },
        'partition': {'train_fraction': 0.7, 'seed': 42, 'n_buckets': 5},
        'model': {
            'kind': 'random_forest',
            'random_forest': {'n_estimators': 30, 'random_state': 0, 'n_jobs': 1},
        },
        'prediction': {'decimals': 2},
    }


@pytest.fixture
def sample_record():
    return {
        'housing_median_age': 41,
        'total_rooms': 880,
        'total_bedrooms': 129,
        'population': 322,
        'households': 126,
        'median_income': 8.3252,
        'ocean_proximity': 'NEAR BAY',
    }
