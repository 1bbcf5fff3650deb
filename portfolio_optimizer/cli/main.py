"""
Main Runner Script for Portfolio Optimization
==============================================

This script runs the full mean-variance workflow on a price table:
1. Loading prices from CSV/Excel (or generating sample prices)
2. Computing per-asset statistics
3. Grid search for the minimum variance and maximum Sharpe portfolios
4. Analytic tangency portfolio
5. Frontier of grid portfolios
6. Comparing candidate portfolios on a common window
7. Visualizing results

Usage:
    po-analyze                          # Run with sample data
    po-analyze --file prices.csv        # Run with a price table
    po-analyze --file prices.xlsx --sheet Daily
    po-analyze --non-negative           # Long-only tangency weights
"""

import sys
import argparse
import logging
import traceback
from datetime import datetime
from typing import Optional, List
from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from portfolio_optimizer.config import DEFAULT_GRID_STEP, DEFAULT_RISK_FREE_RATE, MAX_GRID_ASSETS
from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.comparer import compare_portfolios
from portfolio_optimizer.core.loader import DataLoader, generate_sample_prices
from portfolio_optimizer.core.optimizer import GridOptimizer
from portfolio_optimizer.core.performance import compute_portfolio_metrics
from portfolio_optimizer.core.portfolio import Portfolio
from portfolio_optimizer.core.quadratic import project_to_simplex, tangency_weights
from portfolio_optimizer.core.strategies import MomentumStrategy, strategy_weights
from portfolio_optimizer.visualization import (
    plot_efficient_frontier,
    plot_portfolio_weights,
    plot_cumulative_returns
)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logger(script_name: str = "portfolio_optimizer", log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Sets up a logger that writes to both file and console.

    The package loggers (``portfolio_optimizer.*``) are routed to the same
    handlers so warnings from the engine end up in the run log.

    Args:
        script_name: Name of the script (used in log filename)
        log_dir: Directory for log files (default: ./logs)

    Returns:
        Configured logger instance
    """
    log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M")
    log_filename = log_dir / f"log_{script_name}_{timestamp}.txt"

    logger = logging.getLogger(script_name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Clear existing handlers (prevent duplicates)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    package_logger = logging.getLogger("portfolio_optimizer")
    package_logger.setLevel(logging.INFO)
    package_logger.handlers = [file_handler, console_handler]
    package_logger.propagate = False

    return logger


# =============================================================================
# ANALYSIS CLASS
# =============================================================================

class AnalysisCheckpoint:
    """
    Tracks the progress of the analysis steps.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.steps_completed = {}
        self.results = {}
        self.start_time = datetime.now()
        self.current_step = None

    def start_step(self, step_name: str):
        self.current_step = step_name
        self.logger.info(f"[CHECKPOINT] Starting: {step_name}")

    def complete_step(self, step_name: str, result=None):
        """Mark a step as completed and keep its result."""
        self.steps_completed[step_name] = True
        if result is not None:
            self.results[step_name] = result
        self.logger.info(f"[CHECKPOINT] Completed: {step_name}")

    def get_progress_summary(self) -> dict:
        elapsed = (datetime.now() - self.start_time).total_seconds()
        return {
            'steps_completed': list(self.steps_completed.keys()),
            'current_step': self.current_step,
            'elapsed_seconds': elapsed
        }

    def log_final_report(self):
        summary = self.get_progress_summary()
        self.logger.info("=" * 60)
        self.logger.info("  ANALYSIS COMPLETE")
        self.logger.info("=" * 60)
        self.logger.info(f"  Steps completed: {len(summary['steps_completed'])}")
        self.logger.info(f"  Total time: {summary['elapsed_seconds']:.2f} seconds")
        self.logger.info("=" * 60)


# =============================================================================
# MAIN ANALYSIS FUNCTIONS
# =============================================================================

def get_output_dir() -> Path:
    """Get the output directory path (./output)."""
    output_dir = Path.cwd() / "output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


def _log_weights(logger: logging.Logger, names: List[str], weights: np.ndarray):
    logger.info("Weights:")
    for name, w in zip(names, weights):
        logger.info(f"  {name}: {w*100:>8.2f}%")


def run_full_analysis(
    assets: List[Asset],
    rf_rate: float = DEFAULT_RISK_FREE_RATE,
    step: float = DEFAULT_GRID_STEP,
    non_negative: bool = False,
    save_plots: bool = True,
    output_dir: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> dict:
    """
    Run the complete portfolio analysis on a set of assets.

    This function performs:
    1. Asset statistics
    2. Minimum variance grid search
    3. Maximum Sharpe grid search
    4. Tangency portfolio
    5. Frontier of grid portfolios
    6. Comparison of Equal / MinVariance / MaxSharpe / Tangency / Momentum
    7. Visualization generation

    The grid steps are skipped with a warning for more than 6 assets.

    Args:
        assets: Assets with price histories
        rf_rate: Annualized risk-free rate
        step: Grid granularity
        non_negative: If True, report long-only tangency weights
        save_plots: If True, save plots to files
        output_dir: Directory for output files
        logger: Logger instance

    Returns:
        Dictionary containing all analysis results
    """
    if logger is None:
        logger = setup_logger()

    if save_plots:
        if output_dir is None:
            output_dir = get_output_dir()
        else:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)

    checkpoint = AnalysisCheckpoint(logger)
    results = {}
    names = [a.ticker for a in assets]
    n = len(assets)

    logger.info("=" * 70)
    logger.info("  MEAN-VARIANCE PORTFOLIO ANALYSIS")
    logger.info("=" * 70)
    logger.info(f"  Assets: {', '.join(names)}")
    logger.info(f"  Risk-free rate: {rf_rate:.4f} ({rf_rate*100:.2f}% annual)")
    logger.info(f"  Grid step: {step}")
    logger.info(f"  Tangency weights: {'Long-only' if non_negative else 'Unconstrained'}")
    logger.info("=" * 70)

    # Step 1: Asset statistics
    checkpoint.start_step("Calculate Asset Statistics")
    logger.info("--- Individual Asset Statistics (annualized) ---")
    logger.info(f"{'Asset':<12} {'Mean':>12} {'Std Dev':>12} {'Periods':>8}")
    logger.info("-" * 48)
    for asset in assets:
        logger.info(f"{asset.ticker:<12} {asset.expected_return*100:>11.4f}% "
                    f"{asset.volatility*100:>11.4f}% {asset.returns.size:>8d}")
    results['asset_stats'] = {
        a.ticker: {'mean': a.expected_return, 'std': a.volatility} for a in assets
    }
    checkpoint.complete_step("Calculate Asset Statistics", results['asset_stats'])

    optimizer = GridOptimizer(step=step)
    grid_ok = n <= MAX_GRID_ASSETS
    results['min_variance'] = None
    results['max_sharpe'] = None
    results['frontier'] = []

    if not grid_ok:
        logger.warning(f"Grid search supports at most {MAX_GRID_ASSETS} assets; "
                       f"skipping grid steps for {n} assets")
    else:
        # Step 2: Minimum variance
        checkpoint.start_step("Find Minimum Variance Portfolio")
        mvp = optimizer.optimize_min_variance(assets, rf_rate)
        results['min_variance'] = mvp
        logger.info("--- Minimum Variance Portfolio (grid) ---")
        _log_weights(logger, names, mvp.weights)
        logger.info(f"Expected Return: {mvp.expected_return*100:.4f}%")
        logger.info(f"Standard Deviation: {mvp.volatility*100:.4f}%")
        logger.info(f"Sharpe Ratio: {mvp.sharpe:.4f}")
        checkpoint.complete_step("Find Minimum Variance Portfolio", mvp)

        # Step 3: Maximum Sharpe
        checkpoint.start_step("Find Maximum Sharpe Portfolio")
        try:
            msr = optimizer.optimize_max_sharpe(assets, rf_rate)
            results['max_sharpe'] = msr
            logger.info("--- Maximum Sharpe Portfolio (grid) ---")
            _log_weights(logger, names, msr.weights)
            logger.info(f"Expected Return: {msr.expected_return*100:.4f}%")
            logger.info(f"Standard Deviation: {msr.volatility*100:.4f}%")
            logger.info(f"Sharpe Ratio: {msr.sharpe:.4f}")
        except RuntimeError as e:
            logger.warning(f"Maximum Sharpe search failed: {e}")
        checkpoint.complete_step("Find Maximum Sharpe Portfolio", results['max_sharpe'])

    # Step 4: Tangency portfolio
    checkpoint.start_step("Find Tangency Portfolio")
    tangency = tangency_weights(assets, rf_rate, enforce_non_negative=non_negative)
    results['tangency'] = tangency
    logger.info("--- Tangency Portfolio (analytic) ---")
    _log_weights(logger, names, tangency)
    checkpoint.complete_step("Find Tangency Portfolio", tangency)

    # Step 5: Frontier
    if grid_ok:
        checkpoint.start_step("Calculate Efficient Frontier")
        results['frontier'] = optimizer.efficient_frontier(assets)
        logger.info(f"Frontier computed with {len(results['frontier'])} distinct grid portfolios")
        checkpoint.complete_step("Calculate Efficient Frontier", results['frontier'])

    # Step 6: Comparison
    checkpoint.start_step("Compare Portfolios")
    candidates = {'Equal Weight': np.full(n, 1.0 / n)}
    if results['min_variance'] is not None:
        candidates['Min Variance'] = results['min_variance'].weights
    if results['max_sharpe'] is not None:
        candidates['Max Sharpe'] = results['max_sharpe'].weights
    # Portfolios are long-only, so shorted tangency weights are projected
    candidates['Tangency'] = tangency if non_negative else project_to_simplex(tangency)
    candidates['Momentum'] = strategy_weights(MomentumStrategy(), assets)

    portfolios = {label: Portfolio(assets, w) for label, w in candidates.items()}
    results['metrics'] = {
        label: compute_portfolio_metrics(p, rf=rf_rate) for label, p in portfolios.items()
    }
    comparison = compare_portfolios(list(portfolios.values()), rf_rate)
    comparison.labels = list(portfolios.keys())
    results['comparison'] = comparison

    logger.info("--- Portfolio Comparison (benchmark = average of compared portfolios) ---")
    logger.info(f"{'Portfolio':<14} {'Return':>9} {'Vol':>9} {'Sharpe':>8} "
                f"{'MaxDD':>8} {'Alpha':>10} {'Beta':>7}")
    logger.info("-" * 72)
    for i, (label, metrics) in enumerate(results['metrics'].items()):
        alpha = comparison.alpha[i] if i < len(comparison.alpha) else float('nan')
        beta = comparison.beta[i] if i < len(comparison.beta) else float('nan')
        logger.info(f"{label:<14} {metrics['AnnualReturn']*100:>8.2f}% "
                    f"{metrics['AnnualVolatility']*100:>8.2f}% {metrics['Sharpe']:>8.3f} "
                    f"{metrics['MaxDrawdown']*100:>7.2f}% {alpha:>10.6f} {beta:>7.3f}")
    checkpoint.complete_step("Compare Portfolios", comparison)

    # Step 7: Plots
    if save_plots:
        checkpoint.start_step("Generate Plots")

        highlights = {
            label: (metrics['AnnualReturn'], metrics['AnnualVolatility'])
            for label, metrics in results['metrics'].items()
        }
        plot_efficient_frontier(
            results['frontier'],
            assets=assets,
            portfolios=highlights,
            save_path=str(output_dir / "efficient_frontier.png")
        )
        logger.info("Saved: efficient_frontier.png")

        if results['max_sharpe'] is not None:
            plot_portfolio_weights(
                results['max_sharpe'].weights, names,
                title="Maximum Sharpe Portfolio Weights",
                save_path=str(output_dir / "max_sharpe_weights.png")
            )
            logger.info("Saved: max_sharpe_weights.png")

        plot_portfolio_weights(
            tangency, names,
            title="Tangency Portfolio Weights",
            save_path=str(output_dir / "tangency_weights.png")
        )
        logger.info("Saved: tangency_weights.png")

        plot_cumulative_returns(
            comparison,
            save_path=str(output_dir / "cumulative_returns.png")
        )
        logger.info("Saved: cumulative_returns.png")

        checkpoint.complete_step("Generate Plots")
        plt.close('all')

    checkpoint.log_final_report()
    return results


def analyze_price_file(
    file_path: str,
    sheet: Optional[str] = None,
    rf_rate: float = DEFAULT_RISK_FREE_RATE,
    step: float = DEFAULT_GRID_STEP,
    non_negative: bool = False,
    save_plots: bool = True,
    output_dir: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> dict:
    """
    Analyze a CSV or Excel price table.

    Args:
        file_path: Path to the price table
        sheet: Excel sheet name (ignored for CSV)
        rf_rate: Annualized risk-free rate
        step: Grid granularity
        non_negative: Long-only tangency weights
        save_plots: Save plots to files
        output_dir: Directory for output files
        logger: Logger instance

    Returns:
        Analysis results dictionary

    Raises:
        ValueError: If the loaded assets fail validation
    """
    if logger is None:
        logger = setup_logger()

    logger.info(f"Loading data from: {file_path}")
    if sheet:
        logger.info(f"Sheet: {sheet}")

    loader = DataLoader()
    prices = loader.load_prices(file_path, sheet)
    assets = loader.assets_from_frame(prices)

    validation = loader.validate_assets(assets)
    if not validation['is_valid']:
        for error in validation['errors']:
            logger.error(error)
        raise ValueError("Data validation failed")

    for warning in validation['warnings']:
        logger.warning(warning)

    return run_full_analysis(
        assets,
        rf_rate=rf_rate,
        step=step,
        non_negative=non_negative,
        save_plots=save_plots,
        output_dir=output_dir,
        logger=logger
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the portfolio analysis script."""
    parser = argparse.ArgumentParser(
        description='Mean-Variance Portfolio Analysis Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  po-analyze                                   # Run with sample data
  po-analyze --file prices.csv                 # Analyze a CSV price table
  po-analyze --file prices.xlsx --sheet Daily
  po-analyze --step 0.05 --rf-rate 0.02        # Coarser grid, 2% risk-free
        """
    )

    parser.add_argument(
        '--file', '-f',
        type=str,
        help='Path to CSV or Excel file with prices (first column = dates)'
    )
    parser.add_argument(
        '--sheet', '-s',
        type=str,
        default=None,
        help='Excel sheet name to read (default: first sheet)'
    )
    parser.add_argument(
        '--rf-rate', '-r',
        type=float,
        default=DEFAULT_RISK_FREE_RATE,
        help='Annualized risk-free rate (default: 0.0)'
    )
    parser.add_argument(
        '--step',
        type=float,
        default=DEFAULT_GRID_STEP,
        help='Grid step for weight search (default: 0.01)'
    )
    parser.add_argument(
        '--non-negative',
        action='store_true',
        help='Project tangency weights onto the long-only simplex'
    )
    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Disable plot generation'
    )
    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Directory for plots (default: ./output)'
    )

    args = parser.parse_args(argv)

    logger = setup_logger("portfolio_analysis")

    try:
        if args.file:
            analyze_price_file(
                file_path=args.file,
                sheet=args.sheet,
                rf_rate=args.rf_rate,
                step=args.step,
                non_negative=args.non_negative,
                save_plots=not args.no_plots,
                output_dir=args.output_dir,
                logger=logger
            )
        else:
            logger.info("No file specified. Using sample data...")
            prices = generate_sample_prices(4)
            assets = DataLoader().assets_from_frame(prices)

            run_full_analysis(
                assets,
                rf_rate=args.rf_rate,
                step=args.step,
                non_negative=args.non_negative,
                save_plots=not args.no_plots,
                output_dir=args.output_dir,
                logger=logger
            )

        logger.info("Analysis completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        logger.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
