"""
Unit Tests for price loading and sample data
"""

import numpy as np
import pandas as pd
import pytest

from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.loader import DataLoader, generate_sample_prices


@pytest.fixture
def price_csv(tmp_path):
    dates = pd.bdate_range("2024-01-01", periods=5)
    frame = pd.DataFrame(
        {
            "AAA": [10.0, 10.5, 10.2, 10.8, 11.0],
            "BBB": [np.nan, np.nan, 20.0, 20.4, 20.2],
            "Note": ["a", "b", "c", "d", "e"],
        },
        index=pd.Index(dates, name="Date"),
    )
    # Rows out of order on disk
    path = tmp_path / "prices.csv"
    frame.iloc[::-1].to_csv(path)
    return path


class TestLoadPrices:

    def test_csv(self, price_csv):
        prices = DataLoader().load_prices(price_csv)
        assert isinstance(prices.index, pd.DatetimeIndex)
        assert prices.index.is_monotonic_increasing
        assert list(prices.columns) == ["AAA", "BBB"]
        assert prices["AAA"].iloc[0] == 10.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataLoader().load_prices(tmp_path / "missing.csv")

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "prices.txt"
        path.write_text("x")
        with pytest.raises(ValueError):
            DataLoader().load_prices(path)

    def test_excel(self, tmp_path):
        dates = pd.bdate_range("2024-01-01", periods=3)
        path = tmp_path / "prices.xlsx"
        pd.DataFrame({"AAA": [1.0, 1.1, 1.2]}, index=dates).to_excel(path, sheet_name="Daily")
        prices = DataLoader().load_prices(path, sheet="Daily")
        assert list(prices.columns) == ["AAA"]
        assert len(prices) == 3


class TestAssets:

    def test_assets_from_frame(self, price_csv):
        loader = DataLoader()
        assets = loader.assets_from_frame(loader.load_prices(price_csv))
        assert [a.ticker for a in assets] == ["AAA", "BBB"]
        assert assets[0].prices.size == 5
        assert assets[1].prices.size == 3
        assert assets[1].has_consistent_dates
        assert assets[1].dates[0] == pd.Timestamp("2024-01-03")

    def test_assets_from_statistics(self):
        loader = DataLoader()
        from_rows = loader.assets_from_statistics([("A", 0.1, 0.2), ("B", 0.05, 0.1)])
        frame = pd.DataFrame({"ticker": ["A"], "expected_return": [0.1], "volatility": [0.2]})
        from_frame = loader.assets_from_statistics(frame)
        assert [a.volatility for a in from_rows] == [0.2, 0.1]
        assert from_frame[0].expected_return == 0.1
        assert not from_frame[0].has_history

    def test_validate(self):
        loader = DataLoader()
        assert not loader.validate_assets([])['is_valid']

        duplicates = loader.validate_assets([Asset("A", [1.0, 2.0]), Asset("A", [1.0, 3.0])])
        assert not duplicates['is_valid']

        report = loader.validate_assets([Asset("A", [1.0]), Asset("Z", [0.0, 1.0, 2.0])])
        assert report['is_valid']
        assert len(report['warnings']) == 2


class TestSamplePrices:

    def test_shape_and_names(self):
        prices = generate_sample_prices()
        assert prices.shape == (252, 4)
        assert list(prices.columns) == ['AAPL', 'MSFT', 'NVDA', 'JNJ']
        assert isinstance(prices.index, pd.DatetimeIndex)
        assert (prices.iloc[0] == 100.0).all()

    def test_generic_names(self):
        assert list(generate_sample_prices(3, 10).columns) == ['Stock_1', 'Stock_2', 'Stock_3']

    def test_reproducible(self):
        pd.testing.assert_frame_equal(generate_sample_prices(seed=7), generate_sample_prices(seed=7))
