"""
Unit Tests for performance analytics
"""

import numpy as np
import pytest

from portfolio_optimizer.core import performance
from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.portfolio import Portfolio


# ============================================================================
# DRAWDOWN AND COMPOUNDING
# ============================================================================

class TestDrawdown:

    def test_reference_series(self):
        assert performance.compute_max_drawdown([1.0, 1.1, 0.9, 1.05]) == pytest.approx(0.2 / 1.1)

    def test_monotone_series(self):
        assert performance.compute_max_drawdown([1.0, 1.1, 1.2]) == 0.0

    def test_empty(self):
        assert performance.compute_max_drawdown([]) == 0.0

    def test_cumulative_returns(self):
        np.testing.assert_allclose(performance.cumulative_returns([0.1, -0.5]), [1.1, 0.55])


class TestAnnualization:

    def test_geometric_return(self):
        r = [0.001] * 126
        expected = 1.001 ** 252 - 1.0
        assert performance.compute_annualized_return_from_periodic(r) == pytest.approx(expected)

    def test_geometric_return_empty(self):
        assert performance.compute_annualized_return_from_periodic([]) == 0.0

    def test_sample_volatility(self):
        vol = performance.compute_annualized_volatility([0.01, -0.01])
        assert vol == pytest.approx(np.sqrt(2e-4) * np.sqrt(252.0))

    def test_volatility_needs_two_returns(self):
        assert performance.compute_annualized_volatility([0.01]) == 0.0

    def test_sample_and_population_conventions_differ(self):
        r = np.array([0.01, -0.02, 0.015, 0.0])
        vol = performance.compute_annualized_volatility(r)
        assert vol == pytest.approx(np.std(r, ddof=1) * np.sqrt(252.0))
        assert Asset("A", np.cumprod(np.r_[100.0, 1.0 + r])).volatility < vol


# ============================================================================
# RATIOS
# ============================================================================

class TestRatios:

    def test_sharpe(self):
        assert performance.compute_sharpe(0.12, 0.02, 0.2) == pytest.approx(0.5)
        assert np.isnan(performance.compute_sharpe(0.12, 0.02, 0.0))

    def test_treynor(self):
        assert performance.compute_treynor(0.12, 0.02, 0.5) == pytest.approx(0.2)
        assert np.isnan(performance.compute_treynor(0.12, 0.02, 0.0))

    def test_information_ratio(self):
        excess = np.array([0.001, -0.0005, 0.002, 0.0])
        expected = excess.mean() / np.std(excess, ddof=1) * np.sqrt(252.0)
        assert performance.compute_information_ratio(excess) == pytest.approx(expected)

    def test_information_ratio_degenerate(self):
        assert np.isnan(performance.compute_information_ratio([]))
        assert np.isnan(performance.compute_information_ratio([0.0, 0.0, 0.0]))

    def test_tracking_error(self):
        excess = np.array([0.001, -0.001, 0.002])
        expected = np.std(excess, ddof=1) * np.sqrt(252.0)
        assert performance.compute_tracking_error(excess) == pytest.approx(expected)
        assert np.isnan(performance.compute_tracking_error([0.001]))

    def test_calmar(self):
        assert performance.compute_calmar(0.1, 0.2) == pytest.approx(0.5)
        assert np.isnan(performance.compute_calmar(0.1, 0.0))

    def test_sortino(self):
        r = np.array([0.01, -0.02, 0.005, -0.01, 0.02])
        downside = r[r < 0.0]
        downside_dev = np.sqrt(np.sum(downside ** 2) / (downside.size - 1)) * np.sqrt(252.0)
        expected = performance.compute_annualized_return_from_periodic(r) / downside_dev
        assert performance.compute_sortino(r) == pytest.approx(expected)

    def test_sortino_without_downside(self):
        assert np.isnan(performance.compute_sortino([0.01, 0.02]))


# ============================================================================
# REGRESSION
# ============================================================================

class TestAlphaBeta:

    def test_recovers_linear_relation(self):
        np.random.seed(1)
        benchmark = np.random.normal(0.0005, 0.01, 500)
        portfolio = 0.001 + 0.8 * benchmark
        alpha, beta = performance.compute_alpha_beta(portfolio, benchmark)
        assert alpha == pytest.approx(0.001, abs=1e-9)
        assert beta == pytest.approx(0.8, abs=1e-9)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            performance.compute_alpha_beta([0.01, 0.02], [0.01])

    def test_empty(self):
        assert performance.compute_alpha_beta([], []) == (0.0, 0.0)

    def test_constant_benchmark_is_regularised(self):
        alpha, beta = performance.compute_alpha_beta([0.01, 0.02, 0.03], [0.01, 0.01, 0.01])
        assert np.isfinite(alpha)
        assert np.isfinite(beta)


# ============================================================================
# PORTFOLIO REPORT
# ============================================================================

class TestPortfolioMetrics:

    def test_align_right(self):
        a, b = performance.align_right([1.0, 2.0, 3.0], [4.0, 5.0])
        np.testing.assert_array_equal(a, [2.0, 3.0])
        np.testing.assert_array_equal(b, [4.0, 5.0])

    def test_without_benchmark(self, sample_assets):
        p = Portfolio(sample_assets, [0.5, 0.3, 0.2])
        metrics = performance.compute_portfolio_metrics(p, rf=0.01)
        assert set(metrics) == {
            'AnnualReturn', 'AnnualVolatility', 'Sharpe',
            'AnnualReturnFromPeriodic', 'AnnualVolFromPeriodic', 'MaxDrawdown',
        }
        assert metrics['AnnualReturn'] == pytest.approx(p.compute_portfolio_return())
        assert metrics['Sharpe'] == pytest.approx(p.compute_sharpe_ratio(0.01))
        assert 0.0 <= metrics['MaxDrawdown'] < 1.0

    def test_against_itself(self, sample_assets):
        p = Portfolio(sample_assets, [0.5, 0.3, 0.2])
        metrics = performance.compute_portfolio_metrics(p, benchmark_returns=p.periodic_returns())
        assert metrics['Beta'] == pytest.approx(1.0, abs=1e-9)
        assert metrics['Alpha'] == pytest.approx(0.0, abs=1e-9)
        assert np.isnan(metrics['InformationRatio'])
        assert metrics['TrackingError'] == 0.0

    def test_benchmark_is_right_aligned(self, sample_assets):
        p = Portfolio(sample_assets, [0.5, 0.3, 0.2])
        periodic = p.periodic_returns()
        metrics = performance.compute_portfolio_metrics(p, benchmark_returns=periodic[-50:])
        assert metrics['Beta'] == pytest.approx(1.0, abs=1e-9)
        assert metrics['AnnualReturnFromPeriodic'] == pytest.approx(
            performance.compute_annualized_return_from_periodic(periodic[-50:])
        )

    def test_short_benchmark_skips_relative_metrics(self, sample_assets):
        p = Portfolio(sample_assets, [0.5, 0.3, 0.2])
        metrics = performance.compute_portfolio_metrics(p, benchmark_returns=[0.001])
        assert 'Alpha' not in metrics
