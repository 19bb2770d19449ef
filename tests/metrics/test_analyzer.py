"""Tests for the rolling market analyzer."""

from datetime import datetime, timezone

import pytest

from feeflow_app.config.defaults import AnalyzerParams
from feeflow_app.metrics.analyzer import MarketAnalyzer
from feeflow_app.models.metrics import Action


def feed(analyzer: MarketAnalyzer, prices: list[float]) -> None:
    for price in prices:
        analyzer.add_data_point(price=price)


class TestIngestion:
    """Test tick ingestion and bounded history."""

    def test_fresh_analyzer_is_neutral(self):
        analyzer = MarketAnalyzer()
        assert analyzer.data_points == 0
        assert analyzer.current_price is None
        assert analyzer.indicators.rsi == 50.0
        assert analyzer.score.buy_score == 50.0
        assert analyzer.score.confidence == 0.0

    def test_single_price_does_not_recompute(self):
        analyzer = MarketAnalyzer()
        analyzer.add_data_point(price=1.0)
        assert analyzer.data_points == 1
        assert analyzer.current_price == 1.0
        assert analyzer.score.confidence == 0.0

    def test_history_is_bounded(self):
        analyzer = MarketAnalyzer()
        feed(analyzer, [1.0 + i * 0.001 for i in range(150)])
        assert analyzer.data_points == 100
        assert len(analyzer.store.prices) == 100
        assert analyzer.current_price == pytest.approx(1.0 + 149 * 0.001)

    def test_custom_history_size(self):
        analyzer = MarketAnalyzer(AnalyzerParams(max_history=30))
        feed(analyzer, [1.0] * 40)
        assert analyzer.data_points == 30

    @pytest.mark.parametrize("bad_price", [-1.0, 0.0, float("nan"), float("inf"), "abc", True])
    def test_invalid_prices_are_dropped(self, bad_price):
        analyzer = MarketAnalyzer()
        feed(analyzer, [1.0, 1.1])
        before = analyzer.indicators

        analyzer.add_data_point(price=bad_price)

        assert analyzer.data_points == 2
        assert analyzer.current_price == 1.1
        assert analyzer.indicators == before

    def test_invalid_volume_dropped_price_kept(self):
        analyzer = MarketAnalyzer()
        analyzer.add_data_point(price=1.0, volume=float("nan"))
        assert analyzer.data_points == 1
        assert len(analyzer.store.volumes) == 0

    def test_zero_volume_accepted(self):
        analyzer = MarketAnalyzer()
        analyzer.add_data_point(price=1.0, volume=0.0)
        assert len(analyzer.store.volumes) == 1

    def test_timestamp_recorded(self):
        analyzer = MarketAnalyzer()
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        analyzer.add_data_point(price=1.0, timestamp=ts)
        assert analyzer.store.last_update == ts


class TestIndicators:
    """Test indicator recomputation through the analyzer."""

    def test_monotonic_rise(self, rising_prices):
        analyzer = MarketAnalyzer()
        feed(analyzer, rising_prices)
        assert analyzer.indicators.rsi == 100.0
        assert analyzer.indicators.trend_strength == pytest.approx(100.0)

    def test_monotonic_fall(self, falling_prices):
        analyzer = MarketAnalyzer()
        feed(analyzer, falling_prices)
        assert analyzer.indicators.rsi == 0.0
        assert analyzer.indicators.trend_strength == pytest.approx(0.0)

    def test_flat_series(self):
        analyzer = MarketAnalyzer()
        feed(analyzer, [1.0] * 30)
        indicators = analyzer.indicators
        assert indicators.volatility == 100.0
        assert indicators.momentum == pytest.approx(50.0)
        assert indicators.trend_strength == 50.0
        assert indicators.rsi == 100.0

    def test_scores_always_complementary(self):
        analyzer = MarketAnalyzer()
        for i in range(60):
            analyzer.add_data_point(price=100.0 + (i * 7 % 11), volume=10.0 + i % 4)
            assert analyzer.score.buy_score + analyzer.score.sell_score == pytest.approx(100.0)
            assert 0.0 <= analyzer.score.confidence <= 100.0

    def test_recorded_trades_drive_buy_pressure(self):
        analyzer = MarketAnalyzer()
        feed(analyzer, [1.0, 1.0])
        analyzer.record_trade(True, 3.0)
        analyzer.record_trade(False, 1.0)
        assert analyzer.indicators.buy_pressure == pytest.approx(75.0)


class TestDecisions:
    """Test recommendation and decision helpers."""

    def test_fresh_analyzer_waits(self):
        analyzer = MarketAnalyzer()
        assert analyzer.get_recommendation().action == Action.WAIT
        assert analyzer.should_buy() is False
        assert analyzer.should_sell() is False

    def test_is_overbought(self, rising_prices):
        analyzer = MarketAnalyzer()
        feed(analyzer, rising_prices)
        assert analyzer.is_overbought(70.0) is True
        assert analyzer.is_overbought(100.0) is False

    def test_analysis_report(self, rising_prices):
        analyzer = MarketAnalyzer()
        feed(analyzer, rising_prices)

        report = analyzer.get_analysis().to_dict()

        assert report["data_points"] == 15
        assert set(report["metrics"]) == {
            "rsi", "momentum", "volume_trend", "price_velocity", "volatility",
            "buy_pressure", "support", "resistance", "trend_strength", "market_phase",
        }
        assert report["buy_score"] + report["sell_score"] == pytest.approx(100.0, abs=0.1)
        assert report["recommendation"]["action"] in {a.value for a in Action}
        assert report["last_update"] is not None

    def test_reset(self, rising_prices):
        analyzer = MarketAnalyzer()
        feed(analyzer, rising_prices)
        analyzer.reset()
        assert analyzer.data_points == 0
        assert analyzer.indicators.rsi == 50.0
        assert analyzer.score.confidence == 0.0
