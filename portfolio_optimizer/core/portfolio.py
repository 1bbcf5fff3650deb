"""
Portfolio Model
===============

A portfolio is an ordered list of assets paired 1:1 with long-only weights
summing to 1. Its metrics are computed on demand:

- Return:     mu_p = sum(w_i * mu_i)             (annualized expected returns)
- Volatility: sigma_p = sqrt(w^T * Sigma * w)    (annualized covariance)
- Sharpe:     (mu_p - rf) / sigma_p

The covariance matrix is built from the asset return series aligned on their
last N observations (N = shortest series), using the population estimator
(divide by N) and annualized by 252.
"""

from typing import Dict, List, Sequence

import numpy as np

from portfolio_optimizer.config import (
    NEGATIVE_WEIGHT_TOLERANCE,
    TRADING_DAYS_PER_YEAR,
    WEIGHT_SUM_TOLERANCE,
)
from portfolio_optimizer.core.asset import Asset


def common_history_length(assets: Sequence[Asset]) -> int:
    """Length of the shortest return series among the assets (0 if none)."""
    if len(assets) == 0:
        return 0
    return min(asset.returns.size for asset in assets)


def aligned_return_matrix(assets: Sequence[Asset]) -> np.ndarray:
    """
    Stack the assets' returns into an (m x N) matrix aligned on the end.

    Each row keeps the asset's last N returns, N being the shortest history,
    so older observations are dropped and the most recent ones are shared.

    Returns:
        Array of shape (len(assets), N); N is 0 when any asset has no returns
    """
    n_obs = common_history_length(assets)
    if n_obs <= 0:
        return np.empty((len(assets), 0))
    return np.vstack([asset.returns[asset.returns.size - n_obs:] for asset in assets])


def annualized_covariance(returns_matrix: np.ndarray) -> np.ndarray:
    """
    Population covariance of aligned return rows, annualized by 252.

    Formula: Sigma_ij = 252 * sum_t (r_it - mean_i)(r_jt - mean_j) / N

    Args:
        returns_matrix: (m x N) aligned returns, N > 0

    Returns:
        (m x m) annualized covariance matrix
    """
    n_obs = returns_matrix.shape[1]
    deviations = returns_matrix - returns_matrix.mean(axis=1, keepdims=True)
    cov = deviations @ deviations.T / n_obs
    return cov * TRADING_DAYS_PER_YEAR


class Portfolio:
    """
    Assets paired with validated long-only weights.

    The aggregate is immutable after construction, except for
    ``replace_asset`` which swaps one asset for another with the same ticker
    (used to backfill a missing return history). Weights are untouched by such
    a swap so their invariants still hold.

    Attributes:
        assets (List[Asset]): Assets, in weight order (copy)
        weights (np.ndarray): Weights (read-only)
        tickers (List[str]): Asset tickers, in weight order

    Example:
        >>> p = Portfolio([Asset("A", [100, 101, 103]), Asset("B", [50, 49, 51])], [0.6, 0.4])
        >>> sharpe = p.compute_sharpe_ratio(rf=0.0)
    """

    def __init__(self, assets: Sequence[Asset], weights: Sequence[float]):
        """
        Initialize the portfolio.

        Args:
            assets: Assets in the portfolio
            weights: One weight per asset, each >= 0 and summing to 1

        Raises:
            ValueError: If lengths differ, a weight is NaN/Inf or negative,
                or the weights do not sum to 1
        """
        if assets is None or weights is None:
            raise ValueError("assets and weights are required")

        weights = np.array(weights, dtype=float).ravel()
        if len(assets) != weights.size:
            raise ValueError(
                f"Assets and weights must have the same length ({len(assets)} != {weights.size})"
            )
        if not np.all(np.isfinite(weights)):
            raise ValueError("Invalid weight value (NaN or Infinity)")
        if np.any(weights < -NEGATIVE_WEIGHT_TOLERANCE):
            raise ValueError("Weights must be non-negative")

        total = weights.sum()
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Weights must sum to 1. Current sum={total}")

        weights.setflags(write=False)
        self._assets = list(assets)
        self._weights = weights

    @property
    def assets(self) -> List[Asset]:
        return list(self._assets)

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def tickers(self) -> List[str]:
        return [asset.ticker for asset in self._assets]

    def __len__(self) -> int:
        return len(self._assets)

    def replace_asset(self, index: int, asset: Asset):
        """
        Swap the asset at ``index`` for another instance of the same instrument.

        Only the ticker alignment is re-validated; the weights are unaffected.

        Raises:
            IndexError: If index is out of range
            ValueError: If the new asset's ticker differs from the current one
        """
        current = self._assets[index]
        if asset.ticker.strip().upper() != current.ticker.strip().upper():
            raise ValueError(
                f"Cannot replace {current.ticker} at index {index} with {asset.ticker}"
            )
        self._assets[index] = asset

    def expected_returns(self) -> np.ndarray:
        """Vector of annualized expected returns, in weight order."""
        return np.array([asset.expected_return for asset in self._assets], dtype=float)

    def aligned_returns(self) -> np.ndarray:
        """(m x N) right-aligned return matrix of the assets."""
        return aligned_return_matrix(self._assets)

    def covariance_matrix(self) -> np.ndarray:
        """
        Annualized population covariance of the aligned returns.

        Returns an (m x m) zero matrix when there is no common history.
        """
        matrix = self.aligned_returns()
        if matrix.shape[1] == 0:
            return np.zeros((len(self._assets), len(self._assets)))
        return annualized_covariance(matrix)

    def periodic_returns(self) -> np.ndarray:
        """
        Weighted periodic portfolio returns over the common (right-aligned) window.

        Returns:
            Array of N returns, empty when some asset has no history
        """
        matrix = self.aligned_returns()
        if matrix.shape[1] == 0:
            return np.empty(0)
        return self._weights @ matrix

    def compute_portfolio_return(self) -> float:
        """
        Annualized expected portfolio return.

        Formula: mu_p = sum(w_i * mu_i)
        """
        return float(np.dot(self._weights, self.expected_returns()))

    def compute_portfolio_volatility(self) -> float:
        """
        Annualized portfolio volatility from the covariance matrix.

        Formula: sigma_p = sqrt(max(0, w^T * Sigma * w))

        Returns 0 when any asset lacks a return history.
        """
        if common_history_length(self._assets) <= 0:
            return 0.0
        cov = self.covariance_matrix()
        variance = float(self._weights @ cov @ self._weights)
        return float(np.sqrt(np.maximum(0.0, variance)))

    def compute_sharpe_ratio(self, rf: float = 0.0) -> float:
        """
        Annualized Sharpe ratio.

        Formula: Sharpe = (mu_p - rf) / sigma_p

        Returns NaN when the volatility is zero.
        """
        vol = self.compute_portfolio_volatility()
        if vol <= 0:
            return float('nan')
        return (self.compute_portfolio_return() - rf) / vol

    def portfolio_stats(self, rf: float = 0.0) -> Dict[str, float]:
        """
        Calculate all portfolio statistics.

        Returns:
            Dictionary containing mean, std, variance, and Sharpe ratio
        """
        ret = self.compute_portfolio_return()
        std = self.compute_portfolio_volatility()
        sharpe = (ret - rf) / std if std > 0 else float('nan')
        return {
            'mean': ret,
            'std': std,
            'variance': std ** 2,
            'sharpe': sharpe
        }

    def __repr__(self) -> str:
        holdings = ", ".join(f"{t}={w:.4f}" for t, w in zip(self.tickers, self._weights))
        return f"Portfolio({holdings})"
