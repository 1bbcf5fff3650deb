"""
Smoke tests for the plotting helpers (Agg backend)
"""

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from portfolio_optimizer.core.comparer import compare_portfolios
from portfolio_optimizer.core.optimizer import GridOptimizer
from portfolio_optimizer.core.portfolio import Portfolio
from portfolio_optimizer.visualization import (
    plot_cumulative_returns,
    plot_efficient_frontier,
    plot_portfolio_weights,
)


class TestPlots:

    def teardown_method(self):
        plt.close('all')

    def test_efficient_frontier(self, sample_assets, tmp_path):
        frontier = GridOptimizer(step=0.1).efficient_frontier(sample_assets)
        path = tmp_path / "frontier.png"
        fig = plot_efficient_frontier(
            frontier,
            assets=sample_assets,
            portfolios={'Equal': (0.1, 0.15)},
            save_path=str(path)
        )
        assert isinstance(fig, Figure)
        assert path.exists()

    def test_empty_frontier(self):
        assert isinstance(plot_efficient_frontier([]), Figure)

    def test_weights(self, tmp_path):
        path = tmp_path / "weights.png"
        fig = plot_portfolio_weights([0.2, 0.8], ["A", "B"], save_path=str(path))
        assert isinstance(fig, Figure)
        assert path.exists()

    def test_cumulative_returns(self, sample_assets, tmp_path):
        comparison = compare_portfolios([
            Portfolio(sample_assets, [1.0, 0.0, 0.0]),
            Portfolio(sample_assets, [0.2, 0.3, 0.5]),
        ])
        path = tmp_path / "cumulative.png"
        fig = plot_cumulative_returns(comparison, save_path=str(path))
        assert len(fig.axes[0].lines) == 3  # two portfolios plus the baseline
        assert path.exists()
