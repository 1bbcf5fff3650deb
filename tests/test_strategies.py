"""
Unit Tests for heuristic investment strategies
"""

from datetime import date

import numpy as np
import pytest

from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.strategies import (
    CarryStrategy,
    MomentumStrategy,
    ValueStrategy,
    get_strategy,
    strategy_weights,
)


@pytest.fixture
def trending_assets():
    up = Asset("UP", np.linspace(100.0, 130.0, 20))
    down = Asset("DOWN", np.linspace(100.0, 80.0, 20))
    return [up, down]


class TestMomentum:

    def test_negative_momentum_floored(self, trending_assets):
        scores = MomentumStrategy().compute_weights(trending_assets)
        assert scores["UP"] > 0.0
        assert scores["DOWN"] == 0.0

    def test_lookback_window(self):
        asset = Asset("A", [100.0, 50.0, 55.0, 60.5])
        scores = MomentumStrategy(lookback_days=2).compute_weights([asset])
        assert scores["A"] == pytest.approx(0.1)

    def test_no_history(self):
        scores = MomentumStrategy().compute_weights([Asset.from_statistics("S", 0.1, 0.2)])
        assert scores["S"] == 0.0

    def test_weights(self, trending_assets):
        np.testing.assert_allclose(strategy_weights(MomentumStrategy(), trending_assets), [1.0, 0.0])


class TestCarry:

    def test_scores(self):
        assets = [Asset.from_statistics("A", 0.1, 0.2), Asset.from_statistics("Z", 0.1, 0.0)]
        scores = CarryStrategy().compute_weights(assets)
        assert scores == {"A": pytest.approx(0.5), "Z": 0.0}

    def test_negative_scores_keep_sign(self):
        assets = [Asset.from_statistics("A", 0.1, 0.2), Asset.from_statistics("B", -0.1, 0.2)]
        np.testing.assert_allclose(strategy_weights(CarryStrategy(), assets), [0.5, -0.5])


class TestValue:

    def test_price_to_book_lookup(self):
        seen = []

        def lookup(ticker, as_of):
            seen.append((ticker, as_of))
            return 2.0

        strategy = ValueStrategy(price_to_book=lookup, as_of=date(2024, 6, 28))
        scores = strategy.compute_weights([Asset("A", [1.0, 2.0])])
        assert scores == {"A": pytest.approx(0.5)}
        assert seen == [("A", date(2024, 6, 28))]

    def test_price_proxy(self):
        asset = Asset("P", np.arange(1.0, 11.0))
        scores = ValueStrategy().compute_weights([asset])
        assert scores["P"] == pytest.approx(5.5 / 10.0)

    def test_failed_lookup_falls_back_to_proxy(self):
        def lookup(ticker, as_of):
            raise ConnectionError("offline")

        asset = Asset("P", np.arange(1.0, 11.0))
        scores = ValueStrategy(price_to_book=lookup).compute_weights([asset])
        assert scores["P"] == pytest.approx(0.55)

    def test_proxy_is_capped(self):
        prices = np.r_[np.full(12, 100.0), 1.0]
        scores = ValueStrategy().compute_weights([Asset("C", prices)])
        assert scores["C"] == 10.0

    def test_short_history_is_unscored(self):
        assets = [Asset("S", [1.0, 2.0, 3.0]), Asset("P", np.arange(1.0, 11.0))]
        scores = ValueStrategy().compute_weights(assets)
        assert "S" not in scores
        np.testing.assert_allclose(strategy_weights(ValueStrategy(), assets), [0.0, 1.0])


class TestStrategyWeights:

    def test_all_zero_scores_give_equal_weights(self):
        assets = [Asset("A", [100.0, 90.0]), Asset("B", [100.0, 95.0])]
        np.testing.assert_allclose(strategy_weights(MomentumStrategy(), assets), [0.5, 0.5])

    def test_no_assets(self):
        assert strategy_weights(CarryStrategy(), []).size == 0

    def test_tickers_match_case_insensitively(self):
        class FixedScores(CarryStrategy):
            def compute_weights(self, assets):
                return {"aaa": 3.0, "Bbb": 1.0}

        assets = [Asset.from_statistics("AAA", 0.1, 0.2), Asset.from_statistics("bbb", 0.1, 0.2)]
        np.testing.assert_allclose(strategy_weights(FixedScores(), assets), [0.75, 0.25])

    def test_get_strategy(self):
        assert isinstance(get_strategy(" Momentum ", lookback_days=10), MomentumStrategy)
        assert isinstance(get_strategy("carry"), CarryStrategy)
        with pytest.raises(ValueError):
            get_strategy("growth")
