"""
Analytic Tangency Solver
========================

Closed-form maximum Sharpe ratio portfolio, avoiding the grid's combinatorial
cost:

    x = Sigma^{-1} (mu - rf)
    w = x / sum(x)

This is unconstrained mean-variance optimization (short positions allowed).
When non-negativity is requested, the normalized weights are projected onto
the simplex {w >= 0, sum(w) = 1} by Euclidean projection. It is a fast
reference solution, not a general QP solver: there are no bounds besides the
optional projection and no transaction costs.
"""

import logging
import warnings
from typing import Sequence

import numpy as np

from portfolio_optimizer.config import NORMALIZATION_EPSILON
from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.linalg import solve_with_regularization
from portfolio_optimizer.core.portfolio import aligned_return_matrix, annualized_covariance

logger = logging.getLogger(__name__)


def _equal_weights(n: int) -> np.ndarray:
    return np.full(n, 1.0 / n)


def project_to_simplex(v: Sequence[float]) -> np.ndarray:
    """
    Euclidean projection of a vector onto {w >= 0, sum(w) = 1}.

    Sort-and-threshold algorithm: with u sorted descending, rho is the largest
    index where u_rho - (cumsum_rho - 1) / (rho + 1) > 0, and
    theta = (cumsum_rho - 1) / (rho + 1). The projection is max(0, v - theta),
    renormalized to absorb residual rounding.

    Falls back to equal weights when no valid rho exists.
    """
    v = np.asarray(v, dtype=float).ravel()
    n = v.size
    if n == 0:
        return v

    u = np.sort(v)[::-1]
    cumsum = np.cumsum(u)
    thresholds = (cumsum - 1.0) / np.arange(1, n + 1)
    valid = np.nonzero(u - thresholds > 0)[0]
    if valid.size == 0:
        return _equal_weights(n)

    rho = valid[-1]
    theta = thresholds[rho]
    w = np.maximum(0.0, v - theta)

    total = w.sum()
    if not total > 0:
        return _equal_weights(n)
    return w / total


def tangency_weights(
    assets: Sequence[Asset],
    rf: float = 0.0,
    enforce_non_negative: bool = False
) -> np.ndarray:
    """
    Compute the tangency (maximum Sharpe) portfolio weights analytically.

    Steps:
    1. Aligned returns and annualized population covariance (as for Portfolio)
    2. Excess returns mu - rf
    3. Solve Sigma x = mu - rf, with one ridge-regularised retry on singularity
    4. Normalize x to sum to 1 (equal weights if sum(x) is ~0)
    5. Optionally project onto the non-negative simplex

    Args:
        assets: Assets with return histories
        rf: Annualized risk-free rate
        enforce_non_negative: If True, return long-only weights

    Returns:
        Weight vector (empty for no assets)

    Raises:
        ValueError: If some asset has no return history
        numpy.linalg.LinAlgError: If the regularised system is still singular
    """
    n = len(assets)
    if n == 0:
        return np.empty(0)

    matrix = aligned_return_matrix(assets)
    if matrix.shape[1] <= 0:
        raise ValueError("Assets must contain returns data")

    cov = annualized_covariance(matrix)
    mu = np.array([asset.expected_return for asset in assets], dtype=float)
    excess = mu - rf

    x = solve_with_regularization(cov, excess)

    total = x.sum()
    if not abs(total) >= NORMALIZATION_EPSILON:
        warnings.warn("Tangency weights sum to ~0; falling back to equal weights")
        return _equal_weights(n)

    w = x / total
    if enforce_non_negative:
        w = project_to_simplex(w)

    logger.debug(f"Tangency weights for {[a.ticker for a in assets]}: {np.round(w, 6)}")
    return w
