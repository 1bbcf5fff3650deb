"""Shared pytest fixtures for the portfolio optimizer test suite.

Synthetic prices use a fixed random seed; nothing touches the network.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from portfolio_optimizer.core.asset import Asset


@pytest.fixture
def deterministic_assets():
    """Three short, hand-written price histories (3 returns each)."""
    return [
        Asset("X", [100.0, 101.0, 102.0, 103.0]),
        Asset("Y", [200.0, 202.0, 201.0, 205.0]),
        Asset("Z", [50.0, 51.0, 52.0, 54.0]),
    ]


@pytest.fixture
def sample_prices():
    """One year of business-day prices for three assets (GBM, seed 42)."""
    np.random.seed(42)
    n = 252
    dates = pd.bdate_range(start="2023-01-02", periods=n)
    drifts = np.array([0.0004, 0.0002, 0.0006])
    vols = np.array([0.012, 0.008, 0.020])
    log_returns = np.random.normal(drifts, vols, size=(n, 3))
    prices = np.array([150.0, 80.0, 40.0]) * np.exp(np.cumsum(log_returns, axis=0))
    return pd.DataFrame(prices, index=dates, columns=["SPY", "TLT", "GLD"])


@pytest.fixture
def sample_assets(sample_prices):
    """Assets with dated histories built from ``sample_prices``."""
    return [
        Asset(col, sample_prices[col].to_numpy(), sample_prices.index)
        for col in sample_prices.columns
    ]
