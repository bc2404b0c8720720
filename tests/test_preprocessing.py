"""
Test Suite for Preprocessing Module
=====================================

Tests for categorical normalization, column dropping and imputation.
"""

import warnings

import pytest
import numpy as np
import pandas as pd

from house_price.exceptions import ImputationError
from house_price.preprocessing import (
    HousingImputer,
    drop_columns,
    imputation_scope,
    normalize_categoricals,
    preprocess_dataset,
)
from house_price.schema import count_missing

from conftest import LEVELS


class TestNormalizeCategoricals:
    """Tests for normalize_categoricals."""

    def test_text_column_becomes_categorical(self, housing_frame):
        """Test that ocean_proximity is converted to a sorted categorical."""
        result = normalize_categoricals(housing_frame)

        assert isinstance(result['ocean_proximity'].dtype, pd.CategoricalDtype)
        assert list(result['ocean_proximity'].cat.categories) == sorted(LEVELS)

    def test_whitespace_is_stripped(self):
        """Test that padded labels collapse into one level."""
        df = pd.DataFrame({'ocean_proximity': ['INLAND', ' INLAND ', 'NEAR BAY', None]})
        result = normalize_categoricals(df)

        assert list(result['ocean_proximity'].cat.categories) == ['INLAND', 'NEAR BAY']
        assert result['ocean_proximity'].isna().sum() == 1

    def test_input_not_mutated(self, housing_frame):
        """Test that the raw frame keeps its object dtype."""
        before = housing_frame.copy()
        normalize_categoricals(housing_frame)

        pd.testing.assert_frame_equal(housing_frame, before)


class TestDropColumns:
    """Tests for drop_columns."""

    def test_geocoordinates_dropped(self, housing_frame):
        result = drop_columns(housing_frame)

        assert 'longitude' not in result.columns
        assert 'latitude' not in result.columns
        assert 'longitude' in housing_frame.columns

    def test_absent_columns_ignored(self, housing_frame):
        trimmed = housing_frame.drop(columns=['longitude'])
        result = drop_columns(trimmed)

        assert 'latitude' not in result.columns


class TestHousingImputer:
    """Tests for HousingImputer class."""

    @pytest.fixture
    def incomplete(self, housing_frame_missing):
        return drop_columns(normalize_categoricals(housing_frame_missing))

    def test_init(self):
        """Test imputer initialization."""
        imputer = HousingImputer(max_iter=3, random_state=7)

        assert imputer.max_iter == 3
        assert imputer.random_state == 7
        assert imputer._is_fitted == False

    def test_transform_before_fit(self, incomplete):
        """Test that transform raises error before fit."""
        with pytest.raises(ValueError, match="must be fitted"):
            HousingImputer().transform(incomplete)

    def test_no_missing_after_imputation(self, incomplete):
        """Test that every missing value is filled."""
        assert count_missing(incomplete) > 0

        result = HousingImputer(random_state=0).fit_transform(incomplete)

        assert count_missing(result) == 0
        assert len(result) == len(incomplete)

    def test_categorical_filled_with_known_levels(self, incomplete):
        """Test that imputed categories come from the observed level set."""
        result = HousingImputer(random_state=0).fit_transform(incomplete)

        assert set(result['ocean_proximity'].astype(str)) <= set(LEVELS)
        assert isinstance(result['ocean_proximity'].dtype, pd.CategoricalDtype)

    def test_observed_values_unchanged(self, incomplete):
        """Test that only missing cells are written."""
        result = HousingImputer(random_state=0).fit_transform(incomplete)
        observed = incomplete['total_bedrooms'].notna()

        np.testing.assert_array_almost_equal(
            result.loc[observed, 'total_bedrooms'].values,
            incomplete.loc[observed, 'total_bedrooms'].values
        )

    def test_imputation_is_conditional(self):
        """Test that a missing value follows its correlated column, not the mean."""
        rng = np.random.default_rng(0)
        x = rng.uniform(0, 100, 500)
        df = pd.DataFrame({'x': x, 'y': 2 * x + rng.normal(0, 0.1, 500)})
        df.loc[:9, 'y'] = np.nan

        result = HousingImputer(random_state=0).fit_transform(df)

        np.testing.assert_allclose(result.loc[:9, 'y'].values, 2 * x[:10], atol=1.0)

    def test_all_missing_column_raises(self, incomplete):
        """Test that a fully missing column cannot be imputed."""
        incomplete['population'] = np.nan

        with pytest.raises(ImputationError, match="population"):
            HousingImputer().fit(incomplete)

    def test_empty_table_raises(self, incomplete):
        with pytest.raises(ImputationError):
            HousingImputer().fit(incomplete.iloc[0:0])

    def test_strict_convergence(self, incomplete, monkeypatch):
        """Test that a non-convergence warning becomes an error in strict mode."""
        from sklearn.exceptions import ConvergenceWarning
        import house_price.preprocessing as preprocessing

        class NonConvergingImputer:
            def __init__(self, **kwargs):
                pass

            def fit(self, X):
                warnings.warn("Early stopping criterion not reached.", ConvergenceWarning)
                return self

        monkeypatch.setattr(preprocessing, 'IterativeImputer', NonConvergingImputer)

        with pytest.raises(ImputationError, match="did not converge"):
            HousingImputer(strict_convergence=True).fit(incomplete)

        lenient = HousingImputer(strict_convergence=False).fit(incomplete)
        assert lenient.converged_ == False


class TestPreprocessDataset:
    """Tests for the preprocess_dataset function."""

    def test_complete_output(self, housing_frame_missing):
        """Test that the cleaned table has no gaps and no geocoordinates."""
        result = preprocess_dataset(housing_frame_missing, {})

        assert count_missing(result) == 0
        assert 'longitude' not in result.columns
        assert 'latitude' not in result.columns
        assert len(result) == len(housing_frame_missing)

    def test_input_not_mutated(self, housing_frame_missing):
        before = housing_frame_missing.copy()
        preprocess_dataset(housing_frame_missing, {})

        pd.testing.assert_frame_equal(housing_frame_missing, before)

    def test_impute_false_keeps_gaps(self, housing_frame_missing):
        """Test that imputation can be deferred."""
        result = preprocess_dataset(housing_frame_missing, {}, impute=False)

        assert count_missing(result) > 0

    def test_imputation_scope(self):
        assert imputation_scope({}) == 'pooled'
        assert imputation_scope({'preprocessing': {'imputation': {'scope': 'train_only'}}}) == 'train_only'

        with pytest.raises(ValueError, match="Unknown imputation scope"):
            imputation_scope({'preprocessing': {'imputation': {'scope': 'median'}}})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
