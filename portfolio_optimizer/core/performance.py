"""
Performance Analytics
=====================

Risk-adjusted performance measures over periodic (e.g. daily) return series.
All functions are pure and stateless; 252 periods per year are used for
annualization.

Measures:
- Alpha / Beta: OLS regression r_p = alpha + beta * r_b + eps
- Sharpe: (R_p - rf) / sigma_p
- Treynor: (R_p - rf) / beta
- Sortino: (R_p - rf) / downside deviation
- Calmar: R_p / max drawdown
- Information ratio: mean(excess) / std(excess) * sqrt(252)
- Tracking error: std(excess) * sqrt(252)

Standard deviations here use the sample estimator (N-1 denominator), unlike the
population estimator of the asset statistics and the portfolio covariance.
Degenerate denominators give NaN rather than raising.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from portfolio_optimizer.config import BETA_EPSILON, TRADING_DAYS_PER_YEAR
from portfolio_optimizer.core.linalg import solve_with_regularization

logger = logging.getLogger(__name__)


def _as_array(values: Sequence[float], name: str) -> np.ndarray:
    if values is None:
        raise ValueError(f"{name} is required")
    return np.asarray(values, dtype=float).ravel()


def _sample_std(values: np.ndarray) -> float:
    """Standard deviation with an N-1 denominator (N for a single value)."""
    n = values.size
    deviations = values - values.mean()
    return float(np.sqrt(np.sum(deviations ** 2) / max(1, n - 1)))


def compute_alpha_beta(
    portfolio_returns: Sequence[float],
    benchmark_returns: Sequence[float]
) -> Tuple[float, float]:
    """
    Regress portfolio returns on benchmark returns.

    Model: r_p = alpha + beta * r_b + eps, solved through the normal equations
    (X^T X) b = X^T y with X = [1, r_b]. A singular X^T X gets one ridge-
    regularised retry.

    Args:
        portfolio_returns: Periodic portfolio returns
        benchmark_returns: Periodic benchmark returns, same length

    Returns:
        Tuple of (alpha, beta); (0, 0) for empty series

    Raises:
        ValueError: If the series lengths differ
    """
    y = _as_array(portfolio_returns, "portfolio_returns")
    rb = _as_array(benchmark_returns, "benchmark_returns")
    if y.size != rb.size:
        raise ValueError(f"Series must have the same length ({y.size} != {rb.size})")
    if y.size == 0:
        return 0.0, 0.0

    X = np.column_stack([np.ones(y.size), rb])
    sol = solve_with_regularization(X.T @ X, X.T @ y)
    return float(sol[0]), float(sol[1])


def compute_treynor(portfolio_return: float, rf: float, beta: float) -> float:
    """Treynor ratio (R_p - rf) / beta; NaN when |beta| < 1e-12."""
    if not abs(beta) >= BETA_EPSILON:
        return float('nan')
    return (portfolio_return - rf) / beta


def compute_information_ratio(excess_returns: Sequence[float]) -> float:
    """
    Annualized information ratio of periodic excess returns (r_p - r_b).

    Formula: IR = mean(excess) / sample_std(excess) * sqrt(252)

    Returns NaN for an empty series or a zero standard deviation.
    """
    excess = _as_array(excess_returns, "excess_returns")
    if excess.size == 0:
        return float('nan')

    std = _sample_std(excess)
    if not std > 0:
        return float('nan')
    return float(excess.mean() / std * np.sqrt(TRADING_DAYS_PER_YEAR))


def compute_max_drawdown(cumulative_returns: Sequence[float]) -> float:
    """
    Largest decline from a running peak of a cumulative wealth series.

    Args:
        cumulative_returns: Wealth index values (e.g. 1.0, 1.02, 0.97, ...)

    Returns:
        Maximum drawdown as a positive fraction (0.25 for -25%); 0 when empty
    """
    wealth = _as_array(cumulative_returns, "cumulative_returns")
    if wealth.size == 0:
        return 0.0

    peaks = np.maximum.accumulate(wealth)
    with np.errstate(divide='ignore', invalid='ignore'):
        drawdowns = np.where(peaks > 0, (peaks - wealth) / peaks, 0.0)
    return float(max(0.0, np.nanmax(drawdowns)))


def cumulative_returns(periodic_returns: Sequence[float]) -> np.ndarray:
    """Wealth index compounded from 1.0: cum_t = prod_{s<=t} (1 + r_s)."""
    returns = _as_array(periodic_returns, "periodic_returns")
    return np.cumprod(1.0 + returns)


def compute_annualized_return_from_periodic(returns: Sequence[float]) -> float:
    """
    Geometric annualized return.

    Formula: (prod(1 + r_t))^(252 / N) - 1

    Returns 0 for an empty series, NaN if the compounded wealth is negative.
    """
    returns = _as_array(returns, "returns")
    n = returns.size
    if n == 0:
        return 0.0
    growth = np.prod(1.0 + returns)
    with np.errstate(invalid='ignore'):
        return float(np.power(growth, TRADING_DAYS_PER_YEAR / n) - 1.0)


def compute_annualized_volatility(returns: Sequence[float]) -> float:
    """Sample standard deviation times sqrt(252); 0 for fewer than 2 returns."""
    returns = _as_array(returns, "returns")
    if returns.size < 2:
        return 0.0
    return _sample_std(returns) * float(np.sqrt(TRADING_DAYS_PER_YEAR))


def compute_sharpe(annual_return: float, rf: float, annual_vol: float) -> float:
    """Sharpe ratio (R_p - rf) / sigma_p; NaN when sigma_p <= 0."""
    if not annual_vol > 0:
        return float('nan')
    return (annual_return - rf) / annual_vol


def compute_sortino(returns: Sequence[float], rf: float = 0.0) -> float:
    """
    Sortino ratio from periodic returns.

    The annualized risk-free rate is converted to a per-period threshold
    rf / 252. Only returns below that threshold enter the downside deviation,
    which uses an N-1 denominator over the downside observations and is
    annualized by sqrt(252).

    Returns NaN when there is no downside observation.
    """
    returns = _as_array(returns, "returns")
    if returns.size == 0:
        return float('nan')

    annual_return = compute_annualized_return_from_periodic(returns)
    rf_period = rf / TRADING_DAYS_PER_YEAR

    downside = returns[returns < rf_period]
    if downside.size == 0:
        return float('nan')

    downside_var = np.sum((downside - rf_period) ** 2) / max(1, downside.size - 1)
    downside_dev = np.sqrt(downside_var) * np.sqrt(TRADING_DAYS_PER_YEAR)
    if not downside_dev > 0:
        return float('nan')
    return float((annual_return - rf) / downside_dev)


def compute_calmar(annual_return: float, max_drawdown: float) -> float:
    """Calmar ratio R_p / max drawdown; NaN when the drawdown is <= 0."""
    if not max_drawdown > 0:
        return float('nan')
    return annual_return / max_drawdown


def compute_tracking_error(excess_returns: Sequence[float]) -> float:
    """Annualized sample std of periodic excess returns; NaN for fewer than 2."""
    excess = _as_array(excess_returns, "excess_returns")
    if excess.size < 2:
        return float('nan')
    return _sample_std(excess) * float(np.sqrt(TRADING_DAYS_PER_YEAR))


def align_right(*series: Sequence[float]) -> Tuple[np.ndarray, ...]:
    """Truncate every series to the last N observations, N = shortest length."""
    arrays = [np.asarray(s, dtype=float).ravel() for s in series]
    n = min(a.size for a in arrays) if arrays else 0
    return tuple(a[a.size - n:] for a in arrays)


def compute_portfolio_metrics(
    portfolio,
    benchmark_returns: Optional[Sequence[float]] = None,
    rf: float = 0.0
) -> Dict[str, float]:
    """
    Full performance report for one portfolio.

    The portfolio's periodic returns (weighted, right-aligned asset returns)
    and the benchmark are truncated to their common trailing window.
    Benchmark-relative measures are only reported when the benchmark leaves
    more than one aligned observation.

    Args:
        portfolio: Portfolio to analyse
        benchmark_returns: Optional periodic benchmark returns
        rf: Annualized risk-free rate

    Returns:
        Dictionary with AnnualReturn, AnnualVolatility, Sharpe,
        AnnualReturnFromPeriodic, AnnualVolFromPeriodic, MaxDrawdown and, with
        a benchmark, Alpha, Beta, Treynor, InformationRatio, TrackingError,
        Sortino, Calmar
    """
    periodic = portfolio.periodic_returns()
    bench = None
    if benchmark_returns is not None:
        bench = _as_array(benchmark_returns, "benchmark_returns")
        if bench.size > 0:
            periodic, bench = align_right(periodic, bench)

    annual_return = portfolio.compute_portfolio_return()
    annual_vol = portfolio.compute_portfolio_volatility()
    max_dd = compute_max_drawdown(cumulative_returns(periodic))

    metrics = {
        'AnnualReturn': annual_return,
        'AnnualVolatility': annual_vol,
        'Sharpe': compute_sharpe(annual_return, rf, annual_vol),
        'AnnualReturnFromPeriodic': compute_annualized_return_from_periodic(periodic),
        'AnnualVolFromPeriodic': compute_annualized_volatility(periodic),
        'MaxDrawdown': max_dd,
    }

    if bench is None or bench.size <= 1:
        if bench is not None:
            logger.info("Benchmark has too few aligned observations; relative metrics skipped")
        return metrics

    alpha, beta = compute_alpha_beta(periodic, bench)
    excess = periodic - bench
    metrics.update({
        'Alpha': alpha,
        'Beta': beta,
        'Treynor': compute_treynor(annual_return, rf, beta),
        'InformationRatio': compute_information_ratio(excess),
        'TrackingError': compute_tracking_error(excess),
        'Sortino': compute_sortino(periodic, rf),
        'Calmar': compute_calmar(annual_return, max_dd),
    })
    return metrics
