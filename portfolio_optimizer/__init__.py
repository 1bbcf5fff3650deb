"""
Portfolio Optimizer - Mean-Variance Analytics
=============================================

Markowitz portfolio construction and performance attribution over historical
price series.

Usage:
    from portfolio_optimizer import Asset, Portfolio, GridOptimizer
    from portfolio_optimizer.core import performance
    from portfolio_optimizer.visualization import plot_efficient_frontier

Classes:
    Asset - Price history with annualized return/volatility
    Portfolio - Assets with validated long-only weights
    GridOptimizer - Max-Sharpe, min-variance and frontier grid search
    ComparisonResult - Metrics of several portfolios on a common window
    DataLoader - Price tables from CSV/Excel/DataFrames

Functions:
    tangency_weights - Analytic maximum Sharpe portfolio
    compare_portfolios - Cross-sectional portfolio comparison
    generate_sample_prices - Create synthetic test data
"""

from portfolio_optimizer.core import (
    Asset,
    Portfolio,
    GridOptimizer,
    OptimizationResult,
    FrontierPoint,
    ComparisonResult,
    DataLoader,
    compute_returns,
    compute_statistics,
    tangency_weights,
    project_to_simplex,
    compare_portfolios,
    generate_sample_prices,
)

__version__ = "1.0.0"

__all__ = [
    "Asset",
    "Portfolio",
    "GridOptimizer",
    "OptimizationResult",
    "FrontierPoint",
    "ComparisonResult",
    "DataLoader",
    "compute_returns",
    "compute_statistics",
    "tangency_weights",
    "project_to_simplex",
    "compare_portfolios",
    "generate_sample_prices",
]
