"""Core computational modules for portfolio optimization."""

from portfolio_optimizer.core.asset import Asset, compute_returns, compute_statistics
from portfolio_optimizer.core.portfolio import Portfolio
from portfolio_optimizer.core.optimizer import GridOptimizer, OptimizationResult, FrontierPoint, simplex_grid
from portfolio_optimizer.core.quadratic import tangency_weights, project_to_simplex
from portfolio_optimizer.core.comparer import ComparisonResult, compare_portfolios
from portfolio_optimizer.core.loader import DataLoader, generate_sample_prices

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
    "simplex_grid",
    "tangency_weights",
    "project_to_simplex",
    "compare_portfolios",
    "generate_sample_prices",
]
