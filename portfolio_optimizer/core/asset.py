"""
Asset Statistics
================

Converts a price history into periodic simple returns and the annualized
expected return / volatility pair used everywhere else in the engine.

Conventions:
- Simple returns: r_t = P_t / P_{t-1} - 1
- Expected return: mean(r) * 252
- Volatility: sqrt(population_variance(r) * 252)

The population variance (divide by N) is used on purpose here and in the
portfolio covariance matrix. The performance analytics module uses the sample
(N-1) estimator instead; the two must stay distinct.
"""

from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from portfolio_optimizer.config import TRADING_DAYS_PER_YEAR


def compute_returns(prices: Sequence[float]) -> np.ndarray:
    """
    Compute simple period returns from a price sequence.

    A return whose previous price is (numerically) zero is undefined and is
    reported as NaN instead of raising.

    Args:
        prices: Ordered prices for one instrument

    Returns:
        Array of len(prices) - 1 returns (empty for fewer than 2 prices)
    """
    prices = np.asarray(prices, dtype=float).ravel()
    if prices.size < 2:
        return np.empty(0)

    prev = prices[:-1]
    cur = prices[1:]
    zero = np.abs(prev) < np.finfo(float).tiny
    with np.errstate(divide='ignore', invalid='ignore'):
        returns = cur / prev - 1.0
    returns[zero] = np.nan
    return returns


def compute_statistics(returns: Sequence[float]) -> Tuple[float, float]:
    """
    Annualized (expected_return, volatility) of a periodic return series.

    Both values are 0 for an empty series.
    """
    returns = np.asarray(returns, dtype=float).ravel()
    if returns.size == 0:
        return 0.0, 0.0

    mean = returns.mean()
    variance = np.mean((returns - mean) ** 2)
    return float(mean * TRADING_DAYS_PER_YEAR), float(np.sqrt(variance * TRADING_DAYS_PER_YEAR))


class Asset:
    """
    A single instrument with its price history and derived statistics.

    Two construction forms are supported:
    - From a price history (optionally with a parallel date axis); returns and
      statistics are computed eagerly.
    - From bare statistics via ``Asset.from_statistics``; the asset then has no
      returns and contributes nothing to covariance-based calculations until
      prices are backfilled with ``set_prices``.

    Attributes:
        ticker (str): Instrument identifier
        prices (np.ndarray): Historical prices (read-only)
        dates (pd.DatetimeIndex): Dates of the prices, empty when unknown
        returns (np.ndarray): Simple period returns (read-only)
        expected_return (float): Annualized mean return
        volatility (float): Annualized volatility

    Example:
        >>> asset = Asset("TST", [100.0, 105.0, 110.0])
        >>> asset.returns
        array([0.05      , 0.04761905])
    """

    def __init__(
        self,
        ticker: str,
        prices: Optional[Sequence[float]] = None,
        dates: Optional[Sequence] = None
    ):
        """
        Initialize an asset from its price history.

        Args:
            ticker: Instrument identifier (non-blank)
            prices: Ordered historical prices (may be empty)
            dates: Optional timestamps, same length as prices and non-decreasing

        Raises:
            ValueError: If the ticker is blank or the dates are inconsistent
        """
        self.ticker = self._validate_ticker(ticker)
        self.set_prices(prices, dates)

    @classmethod
    def from_statistics(cls, ticker: str, expected_return: float, volatility: float) -> 'Asset':
        """
        Rebuild an asset from stored statistics, without any price history.

        Args:
            ticker: Instrument identifier
            expected_return: Annualized expected return
            volatility: Annualized volatility

        Returns:
            Asset with empty prices/returns and the given statistics
        """
        asset = cls(ticker)
        asset.expected_return = float(expected_return)
        asset.volatility = float(volatility)
        return asset

    @staticmethod
    def _validate_ticker(ticker: str) -> str:
        if ticker is None or not str(ticker).strip():
            raise ValueError("ticker must be a non-empty string")
        return str(ticker)

    def set_prices(self, prices: Optional[Sequence[float]], dates: Optional[Sequence] = None):
        """
        Replace the price history and recompute returns and statistics.

        Raises:
            ValueError: If dates are given with a different length than prices,
                or are not in non-decreasing order
        """
        prices = np.array([] if prices is None else prices, dtype=float).ravel()
        if dates is None or len(dates) == 0:
            dates = pd.DatetimeIndex([])
        else:
            dates = pd.DatetimeIndex(dates)
            if len(dates) != prices.size:
                raise ValueError(
                    f"Asset {self.ticker}: {len(dates)} dates for {prices.size} prices"
                )
            if not dates.is_monotonic_increasing:
                raise ValueError(f"Asset {self.ticker}: dates must be non-decreasing")

        prices.setflags(write=False)
        self.prices = prices
        self.dates = dates
        self.compute_returns()
        self.compute_statistics()

    def compute_returns(self):
        """Recompute the return series from the current prices."""
        self.returns = compute_returns(self.prices)
        self.returns.setflags(write=False)

    def compute_statistics(self):
        """Recompute expected return and volatility from the current returns."""
        self.expected_return, self.volatility = compute_statistics(self.returns)

    @property
    def has_history(self) -> bool:
        """True when the asset carries at least one return."""
        return self.returns.size > 0

    @property
    def has_consistent_dates(self) -> bool:
        """True when a date is known for every price."""
        return len(self.dates) > 0 and len(self.dates) == self.prices.size

    def __repr__(self) -> str:
        return (f"Asset({self.ticker!r}, n_prices={self.prices.size}, "
                f"expected_return={self.expected_return:.6f}, volatility={self.volatility:.6f})")
