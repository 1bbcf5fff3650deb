"""Visualization modules for portfolio analysis."""

from portfolio_optimizer.visualization.plots import (
    plot_efficient_frontier,
    plot_portfolio_weights,
    plot_cumulative_returns
)

__all__ = [
    "plot_efficient_frontier",
    "plot_portfolio_weights",
    "plot_cumulative_returns",
]
