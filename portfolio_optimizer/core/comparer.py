"""
Portfolio Comparison
====================

Cross-sectional comparison of several portfolios over a common window.

Each portfolio's periodic return series is built from its right-aligned asset
returns; all non-empty series are then truncated to the shortest one so they
cover the same trailing periods. The benchmark is the per-period average of
the compared portfolios (not an external index), so alpha, beta, Treynor and
the information ratio measure each portfolio against the group.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
import pandas as pd

from portfolio_optimizer.core import performance
from portfolio_optimizer.core.portfolio import Portfolio

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    """
    Metrics and aligned return series for a set of compared portfolios.

    Attributes:
        labels: Display label per portfolio
        sharpe, treynor, information, alpha, beta: One value per portfolio
            (NaN when the portfolio has fewer than 2 aligned observations)
        periodic_returns: Aligned periodic returns per portfolio
        cumulative_returns: Wealth index per portfolio, compounded from 1.0
        dates: Date of each aligned period; empty when no asset provides a
            usable date axis (consumers then use period indices)
    """
    labels: List[str] = field(default_factory=list)
    sharpe: np.ndarray = field(default_factory=lambda: np.empty(0))
    treynor: np.ndarray = field(default_factory=lambda: np.empty(0))
    information: np.ndarray = field(default_factory=lambda: np.empty(0))
    alpha: np.ndarray = field(default_factory=lambda: np.empty(0))
    beta: np.ndarray = field(default_factory=lambda: np.empty(0))
    periodic_returns: List[np.ndarray] = field(default_factory=list)
    cumulative_returns: List[np.ndarray] = field(default_factory=list)
    dates: pd.DatetimeIndex = field(default_factory=lambda: pd.DatetimeIndex([]))

    def to_frame(self) -> pd.DataFrame:
        """Per-portfolio metrics as a DataFrame indexed by label."""
        return pd.DataFrame(
            {
                'Sharpe': self.sharpe,
                'Treynor': self.treynor,
                'Information': self.information,
                'Alpha': self.alpha,
                'Beta': self.beta,
            },
            index=pd.Index(self.labels[:len(self.sharpe)], name='Portfolio')
        )

    def cumulative_frame(self) -> pd.DataFrame:
        """
        Cumulative returns with one column per portfolio.

        Indexed by the shared dates when known, otherwise by period number.
        Portfolios without data are left out.
        """
        # Built by position: portfolios over the same tickers share a label
        pairs = [
            (label, series)
            for label, series in zip(self.labels, self.cumulative_returns)
            if series.size > 0
        ]
        if not pairs:
            return pd.DataFrame()
        labels, columns = zip(*pairs)
        n = len(columns[0])
        index = self.dates if len(self.dates) == n else pd.RangeIndex(n, name='Period')
        return pd.DataFrame(np.column_stack(columns), columns=list(labels), index=index)


def _default_label(portfolio: Portfolio, index: int) -> str:
    if len(portfolio) > 0:
        return ",".join(portfolio.tickers)
    return f"P{index + 1}"


def _find_date_axis(portfolios: Sequence[Portfolio], common: int) -> pd.DatetimeIndex:
    """
    Last ``common`` dates of the first asset whose dates match its prices.

    With P prices there are P-1 returns, so the dates of the last ``common``
    returns are the last ``common`` price dates.
    """
    for portfolio in portfolios:
        for asset in portfolio.assets:
            if asset.has_consistent_dates and len(asset.dates) >= common + 1:
                return asset.dates[-common:]
    return pd.DatetimeIndex([])


def compare_portfolios(portfolios: Sequence[Portfolio], rf: float = 0.0) -> ComparisonResult:
    """
    Compare portfolios on their common trailing window.

    Steps:
    1. Periodic weighted returns per portfolio (empty without usable data)
    2. Common length = shortest non-empty series
    3. Right-aligned truncation of every non-empty series
    4. Benchmark = per-period mean of the truncated series, empty ones as zeros
    5. Cumulative returns compounded from 1.0
    6. Shared date axis recovered from an asset with consistent dates
    7. Sharpe, Alpha/Beta vs. the benchmark, Treynor, Information ratio

    Args:
        portfolios: Portfolios to compare
        rf: Annualized risk-free rate for Sharpe and Treynor

    Returns:
        ComparisonResult (labels only when no portfolio has data)
    """
    if portfolios is None:
        raise ValueError("portfolios is required")

    result = ComparisonResult()
    m = len(portfolios)
    if m == 0:
        return result

    periodic = [portfolio.periodic_returns() for portfolio in portfolios]
    lengths = [series.size for series in periodic if series.size > 0]
    if not lengths:
        logger.info("No portfolio has usable return data; nothing to compare")
        result.labels = [f"P{i + 1}" for i in range(m)]
        return result

    common = min(lengths)
    truncated = [series[series.size - common:] if series.size > 0 else series for series in periodic]
    # Portfolios without data count as zero returns in the benchmark
    padded = [series if series.size > 0 else np.zeros(common) for series in truncated]
    benchmark = np.mean(np.vstack(padded), axis=0)

    result.periodic_returns = truncated
    result.cumulative_returns = [performance.cumulative_returns(series) for series in truncated]
    result.dates = _find_date_axis(portfolios, common)
    result.labels = [_default_label(p, i) for i, p in enumerate(portfolios)]

    metrics = np.full((5, m), np.nan)
    for i, series in enumerate(truncated):
        if series.size < 2:
            continue

        annual_return = performance.compute_annualized_return_from_periodic(series)
        annual_vol = performance.compute_annualized_volatility(series)
        alpha, beta = performance.compute_alpha_beta(series, benchmark)
        metrics[:, i] = (
            performance.compute_sharpe(annual_return, rf, annual_vol),
            performance.compute_treynor(annual_return, rf, beta),
            performance.compute_information_ratio(series - benchmark),
            alpha,
            beta,
        )

    result.sharpe, result.treynor, result.information, result.alpha, result.beta = metrics
    logger.debug(f"Compared {m} portfolios over {common} common periods")
    return result
