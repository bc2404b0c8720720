#!/usr/bin/env python3
"""
House Price Prediction - Main Pipeline
======================================

Trains a regression model on the housing dataset, reports its holdout
performance and predicts the value of a new house.

Steps:
    1. Load data and configuration
    2. Train (preprocess, impute, partition, fit)
    3. Model summary
    4. Evaluation on the holdout set
    5. Charts: variable distributions and model diagnostics (optional)
    6. Prediction for a new record (optional)

Usage:
    # Random forest with the configured split
    python main.py --data data/raw/california_housing.csv

    # Linear regression on 80% of the rows
    python main.py --data data/raw/california_housing.csv --model linear --train-size 80

    # Distribution charts plus model diagnostics in output.figures_path
    python main.py --plot-variable median_income ocean_proximity --plots

    # Predict a new house
    python main.py --data data/raw/california_housing.csv \\
        --predict housing_median_age=41 total_rooms=880 total_bedrooms=129 \\
                  population=322 households=126 median_income=8.3252 \\
                  "ocean_proximity=NEAR BAY"
"""

import argparse
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List, Optional

from house_price.data_loader import load_config, load_data, validate_data, print_data_summary
from house_price.evaluation import print_evaluation_report
from house_price.exceptions import HousePriceError
from house_price.model import print_model_summary
from house_price.pipeline import HousePriceService
from house_price.plots import save_model_plots, save_variable_plots
from house_price.prediction import print_prediction_result


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the pipeline."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(f'pipeline_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')
        ]
    )


def parse_record(pairs: List[str]) -> Dict[str, Any]:
    """
    Parse ``name=value`` pairs into a prediction record.

    Values that parse as numbers become floats, everything else stays text.
    """
    record = {}
    for pair in pairs:
        if '=' not in pair:
            raise ValueError(f"Expected name=value, got: {pair}")
        name, value = pair.split('=', 1)
        try:
            record[name.strip()] = float(value)
        except ValueError:
            record[name.strip()] = value.strip()
    return record


def run_pipeline(
    data_path: Optional[str] = None,
    config_path: str = "config/config.yaml",
    model_kind: Optional[str] = None,
    train_size: Optional[float] = None,
    seed: Optional[int] = None,
    record: Optional[Dict[str, Any]] = None,
    plots_dir: Optional[str] = None,
    save_plots: bool = False,
    plot_variables: Optional[List[str]] = None,
    verbose: bool = False
) -> Dict[str, Any]:
    """
    Execute train → summary → evaluation → prediction.

    Args:
        data_path: Path to input CSV file (default: data.raw_path from config)
        config_path: Path to configuration file
        model_kind: Model family (default from config)
        train_size: Training set size in percent (default from config)
        seed: Partition seed (default from config)
        record: New house to predict (optional)
        plots_dir: Directory for charts (default: output.figures_path from config)
        save_plots: Save the model diagnostic charts
        plot_variables: Columns whose distribution chart is saved
        verbose: Enable debug logging

    Returns:
        Dictionary containing all step results
    """
    config = load_config(config_path)
    level = 'DEBUG' if verbose else config.get('logging', {}).get('level', 'INFO')
    setup_logging(level)

    print("\n" + "=" * 70)
    print("HOUSE PRICE PREDICTION PIPELINE")
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    data_path = data_path or config.get('data', {}).get('raw_path')
    if not data_path:
        raise ValueError("No data file given and data.raw_path is not configured")
    figures_dir = plots_dir or config.get('output', {}).get('figures_path', 'reports/figures')

    df = load_data(data_path)
    print_data_summary(df)

    variable_figures = []
    if plot_variables:
        variable_figures = save_variable_plots(df, plot_variables, figures_dir)
        print(f"✓ {len(variable_figures)} distribution chart(s) saved to {figures_dir}")

    is_valid, _ = validate_data(df, strict=False)
    if not is_valid:
        print("⚠️  Data validation warnings detected. Missing values will be imputed.")

    service = HousePriceService(df, config)

    train_fraction = train_size / 100 if train_size is not None else None
    state = service.train(model_kind, train_fraction, seed)
    print_model_summary(state.model)

    evaluation = service.evaluate()
    print_evaluation_report(evaluation)

    results = {
        'config': config,
        'data_shape': df.shape,
        'state': state,
        'evaluation': evaluation,
    }

    if variable_figures:
        results['variable_figures'] = variable_figures

    if save_plots or plots_dir:
        results['figures'] = save_model_plots(evaluation, figures_dir)
        print(f"✓ {len(results['figures'])} figures saved to {figures_dir}")

    if record:
        prediction = service.predict(record)
        print_prediction_result(prediction, record)
        results['prediction'] = prediction

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"  • Input data: {df.shape[0]} rows × {df.shape[1]} columns")
    print(f"  • Model: {state.model_kind.label} (v{state.version})")
    print(f"  • Holdout RMSE: {evaluation['rmse']:.2f}")
    print(f"  • Holdout R²: {evaluation['r_squared']:.4f}")
    print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70 + "\n")

    return results


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="House price prediction: train, evaluate and predict",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --data data/raw/california_housing.csv
  python main.py --data data/raw/california_housing.csv --model linear --train-size 80
  python main.py --data data/raw/california_housing.csv --plots-dir reports/figures
  python main.py --plot-variable median_income ocean_proximity
        """
    )

    parser.add_argument(
        '--data', '-d',
        type=str,
        default=None,
        help='Path to the input CSV file (default: data.raw_path from config)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help='Model type: random_forest or linear (default: from config)'
    )

    parser.add_argument(
        '--train-size', '-t',
        type=float,
        default=None,
        help='Training set size in percent, e.g. 70 (default: from config)'
    )

    parser.add_argument(
        '--seed', '-s',
        type=int,
        default=None,
        help='Partition seed (default: from config)'
    )

    parser.add_argument(
        '--predict', '-p',
        nargs='+',
        metavar='NAME=VALUE',
        default=None,
        help='Feature values of a house to predict'
    )

    parser.add_argument(
        '--plots-dir',
        type=str,
        default=None,
        help='Directory for charts (default: output.figures_path from config)'
    )

    parser.add_argument(
        '--plots',
        action='store_true',
        help='Save model diagnostic charts'
    )

    parser.add_argument(
        '--plot-variable',
        nargs='+',
        metavar='COLUMN',
        default=None,
        help='Save the distribution chart of these columns'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    args = parser.parse_args()

    # Check if config exists
    if not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        sys.exit(1)

    # Check if data file exists
    data_path = args.data or load_config(args.config).get('data', {}).get('raw_path')
    if not data_path or not Path(data_path).exists():
        print(f"Error: Data file not found: {data_path}")
        print("\nExpected format: housing CSV with ocean_proximity and median_house_value columns")
        sys.exit(1)

    try:
        record = parse_record(args.predict) if args.predict else None
        run_pipeline(
            data_path,
            args.config,
            model_kind=args.model,
            train_size=args.train_size,
            seed=args.seed,
            record=record,
            plots_dir=args.plots_dir,
            save_plots=args.plots,
            plot_variables=args.plot_variable,
            verbose=args.verbose
        )
        return 0

    except (HousePriceError, ValueError, FileNotFoundError) as e:
        logging.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
