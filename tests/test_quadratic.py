"""
Unit Tests for the analytic tangency solver and simplex projection
"""

import numpy as np
import pytest

from portfolio_optimizer.core import quadratic
from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.portfolio import aligned_return_matrix, annualized_covariance
from portfolio_optimizer.core.quadratic import project_to_simplex, tangency_weights


class TestProjectToSimplex:
    """Euclidean projection onto {w >= 0, sum(w) = 1}."""

    def test_point_on_simplex_unchanged(self):
        np.testing.assert_allclose(project_to_simplex([0.2, 0.3, 0.5]), [0.2, 0.3, 0.5])

    def test_negative_component_clipped(self):
        np.testing.assert_allclose(project_to_simplex([-1.0, 3.0]), [0.0, 1.0])

    def test_uniform_shift(self):
        np.testing.assert_allclose(project_to_simplex([0.6, 0.6]), [0.5, 0.5])

    def test_leveraged_vector(self):
        w = project_to_simplex([1.5, -0.3, -0.2])
        np.testing.assert_allclose(w, [1.0, 0.0, 0.0])

    def test_result_on_simplex(self):
        np.random.seed(0)
        for _ in range(20):
            w = project_to_simplex(np.random.normal(0.0, 2.0, size=5))
            assert w.sum() == pytest.approx(1.0, abs=1e-12)
            assert w.min() >= 0.0

    def test_empty(self):
        assert project_to_simplex([]).size == 0


class TestTangencyWeights:
    """Closed-form maximum Sharpe weights."""

    def test_no_assets(self):
        assert tangency_weights([]).size == 0

    def test_requires_returns(self):
        with pytest.raises(ValueError):
            tangency_weights([Asset.from_statistics("S", 0.1, 0.2)])

    def test_weights_sum_to_one(self, sample_assets):
        w = tangency_weights(sample_assets, rf=0.01)
        assert w.sum() == pytest.approx(1.0, abs=1e-9)

    def test_matches_direct_solve(self, sample_assets):
        rf = 0.01
        w = tangency_weights(sample_assets, rf=rf)
        cov = annualized_covariance(aligned_return_matrix(sample_assets))
        excess = np.array([a.expected_return for a in sample_assets]) - rf
        x = np.linalg.solve(cov, excess)
        np.testing.assert_allclose(w, x / x.sum(), rtol=1e-8, atol=1e-10)

    def test_non_negative(self, deterministic_assets):
        w = tangency_weights(deterministic_assets, enforce_non_negative=True)
        assert w.sum() == pytest.approx(1.0, abs=1e-9)
        assert w.min() >= 0.0

    def test_non_negative_on_sample(self, sample_assets):
        w = tangency_weights(sample_assets, rf=0.05, enforce_non_negative=True)
        assert w.sum() == pytest.approx(1.0, abs=1e-9)
        assert w.min() >= 0.0

    def test_zero_sum_falls_back_to_equal_weights(self, sample_assets, monkeypatch):
        monkeypatch.setattr(quadratic, "solve_with_regularization",
                            lambda a, b: np.array([1.0, -1.0, 0.0]))
        with pytest.warns(UserWarning):
            w = tangency_weights(sample_assets)
        np.testing.assert_allclose(w, np.full(3, 1.0 / 3.0))
