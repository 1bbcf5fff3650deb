"""
Grid-Search Portfolio Optimizer
===============================

This module searches long-only allocations on a regular grid over the weight
simplex {w >= 0, sum(w) = 1}:

- Maximum Sharpe ratio portfolio (tangent portfolio on the grid)
- Minimum variance portfolio (MVP)
- Efficient frontier: every grid portfolio as a (return, volatility) point

Theory Background:
------------------
Every weight tuple on the grid is a feasible long-only portfolio. Its expected
return is w^T * mu and its variance w^T * Sigma * w, with mu and Sigma the
annualized expected returns and covariance of the assets (see
``portfolio_optimizer.core.portfolio``). The grid has O((1/step)^(n-1)) points,
which limits this approach to a handful of assets; more than 6 assets is
rejected outright.

Grid construction:
------------------
The first n-1 weights step from 0 by ``step`` while they fit in the remaining
budget; the last weight takes whatever is left. Intermediate sums are rounded
to 12 decimals so that 0.1 + 0.2 style accumulation does not leak into the
tuples. Tuples are produced in lexicographic order, and ties are always won by
the tuple produced first.
"""

import logging
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from portfolio_optimizer.config import (
    DEFAULT_GRID_STEP,
    GRID_BATCH_SIZE,
    GRID_ROUNDING_DECIMALS,
    MAX_GRID_ASSETS,
    NEGATIVE_WEIGHT_TOLERANCE,
    WEIGHT_SUM_TOLERANCE,
)
from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.portfolio import aligned_return_matrix, annualized_covariance

logger = logging.getLogger(__name__)


class OptimizationResult(NamedTuple):
    """Weights of an optimal grid portfolio with its statistics."""
    weights: np.ndarray
    expected_return: float
    volatility: float
    sharpe: float

    def stats(self) -> dict:
        return {
            'mean': self.expected_return,
            'std': self.volatility,
            'variance': self.volatility ** 2,
            'sharpe': self.sharpe
        }


class FrontierPoint(NamedTuple):
    expected_return: float
    volatility: float
    weights: np.ndarray


def _grid_values(remaining: float, step: float) -> List[float]:
    """Weights 0, step, 2*step, ... that fit in the remaining budget."""
    values = []
    x = 0.0
    while x <= remaining + NEGATIVE_WEIGHT_TOLERANCE:
        values.append(x)
        x = round(x + step, GRID_ROUNDING_DECIMALS)
    return values


def simplex_grid(n_assets: int, step: float = DEFAULT_GRID_STEP) -> Iterator[Tuple[float, ...]]:
    """
    Lazily enumerate weight tuples on the simplex at a fixed granularity.

    Uses an explicit stack of (partial weights, remaining budget) states
    instead of recursion. Children are pushed in reverse so that tuples come
    out in lexicographic order of their leading weights.

    Args:
        n_assets: Number of weights per tuple (>= 1)
        step: Grid granularity, 0 < step

    Yields:
        Tuples of n_assets weights; tuples with a component below -1e-12
        are skipped
    """
    if n_assets < 1:
        return
    if not (np.isfinite(step) and step > 0):
        raise ValueError(f"Grid step must be a positive number, got {step}")

    stack = [((), 1.0)]
    while stack:
        prefix, remaining = stack.pop()

        if len(prefix) == n_assets - 1:
            weights = prefix + (round(remaining, GRID_ROUNDING_DECIMALS),)
            if min(weights) < -NEGATIVE_WEIGHT_TOLERANCE:
                continue
            yield weights
            continue

        for x in reversed(_grid_values(remaining, step)):
            stack.append((prefix + (x,), round(remaining - x, GRID_ROUNDING_DECIMALS)))


def _batched(tuples: Iterator[Tuple[float, ...]], size: int) -> Iterator[np.ndarray]:
    batch = []
    for weights in tuples:
        batch.append(weights)
        if len(batch) == size:
            yield np.array(batch)
            batch = []
    if batch:
        yield np.array(batch)


class GridOptimizer:
    """
    Exhaustive grid search over long-only portfolios.

    Each call takes the asset list, derives the annualized expected returns and
    the aligned population covariance once, then evaluates every grid tuple in
    vectorised batches.

    Attributes:
        step (float): Default grid granularity (e.g. 0.01 for 1% increments)
        batch_size (int): Number of tuples evaluated per numpy batch

    Example:
        >>> optimizer = GridOptimizer(step=0.02)
        >>> result = optimizer.optimize_max_sharpe(assets, rf=0.0)
        >>> frontier = optimizer.efficient_frontier(assets)
    """

    def __init__(self, step: float = DEFAULT_GRID_STEP, batch_size: int = GRID_BATCH_SIZE):
        self.step = step
        self.batch_size = batch_size

    def _check_assets(self, assets: Sequence[Asset], allow_empty: bool = False):
        if assets is None:
            raise ValueError("assets is required")
        n = len(assets)
        if n == 0 and not allow_empty:
            raise ValueError("At least one asset required")
        if n > MAX_GRID_ASSETS:
            raise NotImplementedError(
                f"Grid search is not supported for more than {MAX_GRID_ASSETS} assets "
                f"(got {n}). Use the analytic tangency solver instead."
            )

    @staticmethod
    def _moments(assets: Sequence[Asset]) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """Expected returns and annualized covariance (None without common history)."""
        mu = np.array([asset.expected_return for asset in assets], dtype=float)
        matrix = aligned_return_matrix(assets)
        cov = annualized_covariance(matrix) if matrix.shape[1] > 0 else None
        return mu, cov

    def _evaluate(
        self,
        assets: Sequence[Asset],
        step: float
    ) -> Iterator[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        """Yield (weights, returns, volatilities) for successive batches of the grid."""
        mu, cov = self._moments(assets)
        tuples = simplex_grid(len(assets), step)
        for weights in _batched(tuples, self.batch_size):
            returns = weights @ mu
            if cov is None:
                vols = np.zeros(len(weights))
            else:
                variances = np.einsum('ij,jk,ik->i', weights, cov, weights)
                vols = np.sqrt(np.maximum(0.0, variances))
            yield weights, returns, vols

    def optimize_max_sharpe(
        self,
        assets: Sequence[Asset],
        rf: float = 0.0,
        step: Optional[float] = None
    ) -> OptimizationResult:
        """
        Find the grid portfolio with the highest Sharpe ratio.

        Optimization problem:
            maximize: (w^T mu - rf) / sqrt(w^T Sigma w)
            subject to: w on the grid, w >= 0, sum(w) = 1

        Tuples with zero volatility are never selected.

        Args:
            assets: Assets to allocate across (1 to 6)
            rf: Annualized risk-free rate
            step: Grid granularity (defaults to the optimizer's step)

        Returns:
            OptimizationResult of the maximizer

        Raises:
            NotImplementedError: For more than 6 assets
            RuntimeError: If no feasible tuple exists on the grid
        """
        self._check_assets(assets)
        step = self.step if step is None else step

        best = None
        best_sharpe = -np.inf
        n_evaluated = 0
        for weights, returns, vols in self._evaluate(assets, step):
            n_evaluated += len(weights)
            feasible = np.abs(weights.sum(axis=1) - 1.0) <= WEIGHT_SUM_TOLERANCE
            with np.errstate(divide='ignore', invalid='ignore'):
                sharpe = np.where((vols > 0) & feasible, (returns - rf) / vols, -np.inf)
            i = int(np.argmax(sharpe))
            if sharpe[i] > best_sharpe:
                best_sharpe = sharpe[i]
                best = (weights[i], returns[i], vols[i])

        logger.debug(f"Max-Sharpe grid search evaluated {n_evaluated} tuples (step={step})")

        if best is None:
            raise RuntimeError("No feasible weights found with the given grid")

        weights, ret, vol = best
        return OptimizationResult(weights.copy(), float(ret), float(vol), float(best_sharpe))

    def optimize_min_variance(
        self,
        assets: Sequence[Asset],
        rf: float = 0.0,
        step: Optional[float] = None
    ) -> OptimizationResult:
        """
        Find the grid portfolio with the lowest volatility (global MVP on the grid).

        The Sharpe ratio is reported for the winning tuple (NaN when its
        volatility is zero) but plays no part in the selection.

        Args:
            assets: Assets to allocate across (1 to 6)
            rf: Risk-free rate used for the reported Sharpe ratio
            step: Grid granularity (defaults to the optimizer's step)

        Returns:
            OptimizationResult of the minimizer

        Raises:
            NotImplementedError: For more than 6 assets
            RuntimeError: If no feasible tuple exists on the grid
        """
        self._check_assets(assets)
        step = self.step if step is None else step

        best = None
        best_vol = np.inf
        for weights, returns, vols in self._evaluate(assets, step):
            i = int(np.argmin(vols))
            if vols[i] < best_vol:
                best_vol = vols[i]
                best = (weights[i], returns[i])

        if best is None:
            raise RuntimeError("No feasible weights found with the given grid")

        weights, ret = best
        sharpe = (ret - rf) / best_vol if best_vol > 0 else float('nan')
        return OptimizationResult(weights.copy(), float(ret), float(best_vol), float(sharpe))

    def efficient_frontier(
        self,
        assets: Sequence[Asset],
        step: Optional[float] = None
    ) -> List[FrontierPoint]:
        """
        Compute every grid portfolio as a point on the risk-return plane.

        Points are rounded to 12 decimals and de-duplicated on the rounded
        (return, volatility) pair, keeping the first tuple produced. They are
        then sorted by ascending volatility, ties broken by descending return.
        Undefined (NaN) points collapse into one, placed last.
        Dominated interior points are kept: this is the full cloud of grid
        portfolios in frontier order, not a Pareto filter.

        Args:
            assets: Assets to allocate across (up to 6; none gives no points)
            step: Grid granularity (defaults to the optimizer's step)

        Returns:
            List of FrontierPoint(expected_return, volatility, weights)

        Raises:
            NotImplementedError: For more than 6 assets
        """
        self._check_assets(assets, allow_empty=True)
        if len(assets) == 0:
            return []
        step = self.step if step is None else step

        seen = set()
        points = []
        for weights, returns, vols in self._evaluate(assets, step):
            rounded_r = np.round(returns, GRID_ROUNDING_DECIMALS)
            rounded_v = np.round(vols, GRID_ROUNDING_DECIMALS)
            for w, r, v in zip(weights, rounded_r, rounded_v):
                r, v = float(r), float(v)
                # NaN never equals itself, so undefined points share a None key
                key = (None if np.isnan(r) else r, None if np.isnan(v) else v)
                if key in seen:
                    continue
                seen.add(key)
                points.append(FrontierPoint(r, v, w.copy()))

        points.sort(key=lambda p: (np.isnan(p.volatility), p.volatility, -p.expected_return))
        logger.debug(f"Efficient frontier: {len(points)} unique points (step={step})")
        return points
