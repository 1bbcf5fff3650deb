"""
Investment Strategies
=====================

Heuristic allocation rules that score each asset; scores are turned into
portfolio weights by ``strategy_weights``.

- Momentum: average return over the last ~6 months, negative momentum -> 0
- Carry: expected return per unit of volatility
- Value: inverse price-to-book, with a price-based proxy when P/B is unknown
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from portfolio_optimizer.config import (
    MOMENTUM_LOOKBACK_DAYS,
    VALUE_PROXY_MIN_PRICES,
    VALUE_PROXY_WINDOW,
    VALUE_SCORE_CAP,
)
from portfolio_optimizer.core.asset import Asset

logger = logging.getLogger(__name__)

# (ticker, as_of) -> price-to-book ratio, or None when unavailable
PriceToBookLookup = Callable[[str, date], Optional[float]]


class InvestmentStrategy(ABC):
    """Base class: maps assets to raw (not necessarily normalized) scores."""

    name = "Strategy"

    @abstractmethod
    def compute_weights(self, assets: Sequence[Asset]) -> Dict[str, float]:
        """
        Score each asset.

        Returns:
            Dictionary ticker -> score; assets without a score may be omitted
        """


class MomentumStrategy(InvestmentStrategy):
    """Scores are the mean return over the last ``lookback_days`` periods, floored at 0."""

    name = "Momentum"

    def __init__(self, lookback_days: int = MOMENTUM_LOOKBACK_DAYS):
        self.lookback_days = lookback_days

    def compute_weights(self, assets: Sequence[Asset]) -> Dict[str, float]:
        scores = {}
        for asset in assets:
            if asset.returns.size == 0:
                scores[asset.ticker] = 0.0
                continue
            window = asset.returns[-min(self.lookback_days, asset.returns.size):]
            scores[asset.ticker] = max(0.0, float(window.mean()))
        return scores


class CarryStrategy(InvestmentStrategy):
    """Scores are expected return / volatility (0 for zero volatility)."""

    name = "Carry"

    def compute_weights(self, assets: Sequence[Asset]) -> Dict[str, float]:
        scores = {}
        for asset in assets:
            if asset.volatility <= 0:
                scores[asset.ticker] = 0.0
            else:
                scores[asset.ticker] = asset.expected_return / asset.volatility
        return scores


class ValueStrategy(InvestmentStrategy):
    """
    Scores are 1 / (price-to-book).

    The P/B ratio comes from an injected lookup (the market-data layer). When
    it is missing, not positive, or the lookup fails, the score falls back to
    median(last 252 prices) / last price, which is above 1 for assets trading
    below their recent median. The proxy needs at least 10 prices and is
    capped at 10.

    Args:
        price_to_book: Optional callable (ticker, as_of) -> P/B or None
        as_of: Valuation date passed to the lookup (default: today)
    """

    name = "Value"

    def __init__(
        self,
        price_to_book: Optional[PriceToBookLookup] = None,
        as_of: Optional[date] = None
    ):
        self.price_to_book = price_to_book
        self.as_of = as_of

    def _lookup(self, ticker: str) -> Optional[float]:
        if self.price_to_book is None:
            return None
        try:
            return self.price_to_book(ticker, self.as_of or date.today())
        except Exception as e:
            logger.warning(f"Price-to-book lookup failed for {ticker}: {e}")
            return None

    @staticmethod
    def _price_proxy(prices: np.ndarray) -> Optional[float]:
        if prices.size < VALUE_PROXY_MIN_PRICES:
            return None
        median = float(np.median(prices[-VALUE_PROXY_WINDOW:]))
        current = float(prices[-1])
        if median <= 0 or current <= 0:
            return None
        score = median / current
        if not np.isfinite(score) or score <= 0:
            return None
        return min(score, VALUE_SCORE_CAP)

    def compute_weights(self, assets: Sequence[Asset]) -> Dict[str, float]:
        scores = {}
        for asset in assets:
            pb = self._lookup(asset.ticker)
            if pb is not None and pb > 0:
                scores[asset.ticker] = 1.0 / pb
                continue

            proxy = self._price_proxy(asset.prices)
            if proxy is not None:
                scores[asset.ticker] = proxy
        return scores


STRATEGIES = {
    'momentum': MomentumStrategy,
    'carry': CarryStrategy,
    'value': ValueStrategy,
}


def get_strategy(name: str, **kwargs) -> InvestmentStrategy:
    """Instantiate a strategy by name ('momentum', 'carry' or 'value')."""
    try:
        return STRATEGIES[name.strip().lower()](**kwargs)
    except KeyError:
        raise ValueError(f"Unknown strategy: {name}. Use one of {sorted(STRATEGIES)}") from None


def strategy_weights(strategy: InvestmentStrategy, assets: Sequence[Asset]) -> np.ndarray:
    """
    Turn a strategy's scores into weights aligned with ``assets``.

    Tickers are matched case-insensitively; assets missing from the scores
    get 0. Scores are divided by the sum of their absolute values; when that
    sum is not positive the result is equal-weighted.

    Returns:
        Weight vector in asset order
    """
    n = len(assets)
    if n == 0:
        return np.empty(0)

    scores = {ticker.upper(): score for ticker, score in strategy.compute_weights(assets).items()}
    missing = [a.ticker for a in assets if a.ticker.upper() not in scores]
    if missing:
        logger.info(f"{strategy.name}: no data for {', '.join(missing)}; weight set to 0")

    raw = np.array([scores.get(a.ticker.upper(), 0.0) for a in assets], dtype=float)
    total = np.abs(raw).sum()
    if not total > 0:
        return np.full(n, 1.0 / n)
    return raw / total
