"""
Test Suite for Prediction Module
==================================

Tests for record validation and single-record inference.
"""

import pytest
import numpy as np

from house_price.exceptions import InvalidRecordError, UnknownCategoryError
from house_price.model import train_model
from house_price.partition import stratified_split
from house_price.prediction import format_prediction, predict_record, validate_record
from house_price.preprocessing import preprocess_dataset
from house_price.schema import FeatureSchema


@pytest.fixture
def linear(housing_frame):
    cleaned = preprocess_dataset(housing_frame, {})
    train_set, _ = stratified_split(cleaned, 0.7, seed=42)
    return train_model(train_set, 'linear', schema=FeatureSchema.from_frame(cleaned))


class TestValidateRecord:
    """Tests for validate_record."""

    def test_valid_record(self, linear, sample_record):
        frame = validate_record(sample_record, linear.schema)

        assert frame.shape == (1, 7)
        assert frame.loc[0, 'ocean_proximity'] == 'NEAR BAY'

    def test_extra_fields_ignored(self, linear, sample_record):
        record = dict(sample_record, longitude=-122.23, latitude=37.88, median_house_value=452600)
        frame = validate_record(record, linear.schema)

        assert list(frame.columns) == linear.schema.feature_columns

    def test_missing_feature(self, linear, sample_record):
        del sample_record['median_income']

        with pytest.raises(InvalidRecordError, match="median_income"):
            validate_record(sample_record, linear.schema)

    @pytest.mark.parametrize("value", ['many', None, float('nan'), float('inf')])
    def test_invalid_numeric(self, linear, sample_record, value):
        sample_record['total_rooms'] = value

        with pytest.raises(InvalidRecordError, match="total_rooms"):
            validate_record(sample_record, linear.schema)

    @pytest.mark.parametrize("value", ['ISLAND', 'near bay', '', None])
    def test_unknown_category(self, linear, sample_record, value):
        """Test that unseen levels are rejected, never coerced."""
        sample_record['ocean_proximity'] = value

        with pytest.raises(UnknownCategoryError) as excinfo:
            validate_record(sample_record, linear.schema)

        assert excinfo.value.column == 'ocean_proximity'
        assert 'NEAR BAY' in excinfo.value.known_levels

    def test_padded_category_accepted(self, linear, sample_record):
        sample_record['ocean_proximity'] = '  NEAR BAY '
        frame = validate_record(sample_record, linear.schema)

        assert frame.loc[0, 'ocean_proximity'] == 'NEAR BAY'


class TestPredictRecord:
    """Tests for predict_record."""

    def test_prediction(self, linear, sample_record):
        result = predict_record(linear, sample_record)

        assert result['model_kind'] == 'linear'
        assert np.isfinite(result['predicted_value'])
        assert result['display_value'] == round(result['predicted_value'], 2)

    def test_matches_model_predict(self, linear, sample_record):
        """Test that the full-precision value is the model's own output."""
        result = predict_record(linear, sample_record)
        frame = validate_record(sample_record, linear.schema)

        assert result['predicted_value'] == float(linear.predict(frame)[0])

    def test_decimals(self, linear, sample_record):
        result = predict_record(linear, sample_record, decimals=0)

        assert result['display_value'] == round(result['predicted_value'])

    def test_unknown_category(self, linear, sample_record):
        sample_record['ocean_proximity'] = 'ISLAND'

        with pytest.raises(UnknownCategoryError):
            predict_record(linear, sample_record)

    def test_format(self):
        assert format_prediction({'display_value': 123.45}) == "Predicted House Value: 123.45"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
