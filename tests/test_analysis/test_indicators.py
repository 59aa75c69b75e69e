"""Tests for candle_forecaster.analysis.indicators."""

from __future__ import annotations

import pytest

from candle_forecaster.analysis import indicators
from candle_forecaster.config import TrendConfig

CFG = TrendConfig()


# ── momentum ──────────────────────────────────────────────────────────────────


def test_momentum_mean_delta(mock_window):
    reading = indicators.momentum(mock_window)
    assert reading.change == pytest.approx((47.2 - 45.5) / 3)
    assert reading.signal == 1


def test_momentum_flat_is_zero(candle_factory):
    reading = indicators.momentum(candle_factory([10.0, 10.0, 10.0]))
    assert reading.change == 0.0
    assert reading.signal == 0


def test_momentum_single_candle(candle_factory):
    assert indicators.momentum(candle_factory([10.0])).signal == 0


# ── moving_average ────────────────────────────────────────────────────────────


def test_moving_average_abstains_on_short_window(mock_window):
    reading = indicators.moving_average(mock_window, CFG)
    assert reading.signal == 0
    assert reading.short_ma is None


def test_moving_average_uptrend(candle_factory):
    window = candle_factory([10.0, 11.0, 12.0, 13.0, 14.0])
    reading = indicators.moving_average(window, CFG)
    assert reading.short_ma == pytest.approx(13.0)
    assert reading.long_ma == pytest.approx(12.0)
    assert reading.signal == 1


def test_moving_average_downtrend(candle_factory):
    window = candle_factory([14.0, 13.0, 12.0, 11.0, 10.0])
    assert indicators.moving_average(window, CFG).signal == -1


# ── volume ────────────────────────────────────────────────────────────────────


def test_volume_abstains_without_volume(mock_window):
    assert indicators.volume(mock_window, CFG).signal == 0


def test_volume_increase(candle_factory):
    window = candle_factory([10.0] * 6, volumes=[100.0, 100.0, 100.0, 120.0, 120.0, 120.0])
    reading = indicators.volume(window, CFG)
    assert reading.recent_volume == pytest.approx(120.0)
    assert reading.older_volume == pytest.approx(100.0)
    assert reading.signal == 1


def test_volume_decrease(candle_factory):
    window = candle_factory([10.0] * 6, volumes=[100.0, 100.0, 100.0, 80.0, 80.0, 80.0])
    assert indicators.volume(window, CFG).signal == -1


def test_volume_dead_band(candle_factory):
    window = candle_factory([10.0] * 6, volumes=[100.0, 100.0, 100.0, 105.0, 105.0, 105.0])
    assert indicators.volume(window, CFG).signal == 0


def test_volume_needs_preceding_group(candle_factory):
    window = candle_factory([10.0] * 3, volumes=[100.0, 200.0, 300.0])
    assert indicators.volume(window, CFG).signal == 0


# ── support_resistance ────────────────────────────────────────────────────────


def test_near_resistance_is_bearish(mock_window):
    reading = indicators.support_resistance(mock_window, CFG)
    assert reading.resistance == 47.8
    assert reading.distance_to_resistance == pytest.approx(0.6 / 47.2)
    assert reading.signal == -1


def test_clear_of_both_is_neutral(clear_resistance_window):
    assert indicators.support_resistance(clear_resistance_window, CFG).signal == 0


def test_near_support_is_bullish(candle_factory):
    window = candle_factory(
        closes=[50.0, 48.0, 46.0, 45.2],
        highs=[51.0, 50.5, 48.5, 46.5],
        lows=[49.0, 47.5, 45.5, 45.0],
    )
    assert indicators.support_resistance(window, CFG).signal == 1


def test_resistance_checked_before_support(candle_factory):
    window = candle_factory(
        closes=[10.0, 10.0, 10.0],
        highs=[10.05, 10.05, 10.05],
        lows=[9.95, 9.95, 9.95],
    )
    assert indicators.support_resistance(window, CFG).signal == -1


# ── volatility ────────────────────────────────────────────────────────────────


def test_volatility_flat_is_zero(candle_factory):
    assert indicators.volatility(candle_factory([10.0, 10.0, 10.0])) == 0.0


def test_volatility_mock_window(mock_window):
    assert indicators.volatility(mock_window) == pytest.approx(0.013824, abs=1e-6)
