"""
Test Suite for Plotting Module
================================

Smoke tests: every chart renders and is written to disk.
"""

import pytest
import matplotlib.pyplot as plt

from house_price.pipeline import HousePriceService
from house_price.plots import plot_variable_distribution, save_model_plots


class TestPlots:
    """Tests for the chart helpers."""

    @pytest.mark.parametrize("column", ['median_income', 'ocean_proximity'])
    def test_distribution(self, housing_frame, tmp_path, column):
        path = tmp_path / f"{column}.png"
        fig = plot_variable_distribution(housing_frame, column, save_path=str(path))

        assert path.exists()
        plt.close(fig)

    def test_distribution_unknown_column(self, housing_frame):
        with pytest.raises(ValueError, match="Unknown column"):
            plot_variable_distribution(housing_frame, 'price')

    def test_forest_plots(self, housing_frame, fast_config, tmp_path):
        service = HousePriceService(housing_frame, fast_config)
        service.train('random_forest')

        saved = save_model_plots(service.evaluate(), str(tmp_path))

        assert len(saved) == 2
        assert (tmp_path / 'variable_importance.png').exists()

    def test_linear_plots(self, housing_frame, fast_config, tmp_path):
        service = HousePriceService(housing_frame, fast_config)
        service.train('linear')

        saved = save_model_plots(service.evaluate(), str(tmp_path))

        assert len(saved) == 2
        assert (tmp_path / 'linear_diagnostics.png').exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
