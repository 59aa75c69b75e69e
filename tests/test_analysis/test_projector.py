"""Tests for candle_forecaster.analysis.projector."""

from __future__ import annotations

import pytest

from candle_forecaster.analysis.projector import (
    FALLBACK_RATIONALE,
    make_rng,
    project_price,
    spawn_rngs,
)
from candle_forecaster.config import ProjectionConfig
from candle_forecaster.models.forecast import AnalyzedProjection, FallbackProjection
from candle_forecaster.taxonomy.cadence import Cadence, Direction


class _FixedDraw:
    """Stand-in generator whose uniform() always returns one end of the range."""

    def __init__(self, low_end: bool = True) -> None:
        self.low_end = low_end

    def uniform(self, low: float, high: float) -> float:
        return low if self.low_end else high


# ── Fallback path ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("cadence", list(Cadence))
@pytest.mark.parametrize("seed", range(25))
def test_fallback_ranges(cadence, seed):
    p = project_price([], cadence, make_rng(seed))
    assert isinstance(p, FallbackProjection)
    assert p.is_fallback is True
    assert 45.0 <= p.price < 55.0
    assert 0.5 <= p.confidence < 0.8
    assert p.rationale == FALLBACK_RATIONALE


def test_fallback_produces_both_directions():
    directions = {project_price([], Cadence.DAILY, make_rng(seed)).direction for seed in range(40)}
    assert directions == {Direction.UP, Direction.DOWN}


def test_fallback_custom_range():
    cfg = ProjectionConfig(fallback_price_low=1.0, fallback_price_span=0.5)
    p = project_price([], Cadence.HOURLY, make_rng(3), config=cfg)
    assert 1.0 <= p.price < 1.5


# ── Analyzed path ─────────────────────────────────────────────────────────────


def test_analyzed_carries_trend(mock_window):
    p = project_price(mock_window, Cadence.HOURLY, make_rng(1))
    assert isinstance(p, AnalyzedProjection)
    assert p.is_fallback is False
    assert p.direction is p.trend.direction is Direction.DOWN
    assert p.confidence == 0.75
    assert p.rationale == p.trend.rationale


@pytest.mark.parametrize("low_end, expected", [(True, 46.52), (False, 47.47)])
def test_analyzed_price_extremes(mock_window, low_end, expected):
    # max_change = 47.2 * 0.025 = 1.18
    # trend      = 1.18 * 0.4 * -1 * min(0.5667 / 47.2 * 15, 1)  ~ -0.0850
    # confidence = 1.18 * 0.2 * -1 * (0.75 - 0.5) * 2            = -0.118
    # random     = +/- 1.18 * 0.4                                 = +/- 0.472
    p = project_price(mock_window, Cadence.HOURLY, _FixedDraw(low_end))
    assert p.price == pytest.approx(expected, abs=0.011)


def test_price_is_rounded_to_cents(mock_window):
    p = project_price(mock_window, Cadence.WEEKLY, make_rng(11))
    assert p.price == round(p.price, 2)


def test_weekly_moves_further_than_hourly(mock_window):
    hourly = project_price(mock_window, Cadence.HOURLY, _FixedDraw(True))
    weekly = project_price(mock_window, Cadence.WEEKLY, _FixedDraw(True))
    assert weekly.price < hourly.price < 47.2


def test_price_floor_under_adversarial_draw(candle_factory):
    window = candle_factory([0.05, 0.04, 0.03])
    p = project_price(window, Cadence.WEEKLY, _FixedDraw(True))
    assert p.price == 0.1


@pytest.mark.parametrize("cadence", list(Cadence))
def test_price_positive_on_steep_decline(candle_factory, cadence):
    window = candle_factory([1_000.0, 400.0, 90.0, 12.0, 1.5])
    p = project_price(window, cadence, _FixedDraw(True))
    assert p.price > 0


# ── RNG helpers ───────────────────────────────────────────────────────────────


def test_same_seed_same_projection(mock_window):
    a = project_price(mock_window, Cadence.DAILY, make_rng(99))
    b = project_price(mock_window, Cadence.DAILY, make_rng(99))
    assert a == b


def test_spawned_streams_are_stable_and_distinct():
    first = [g.random() for g in spawn_rngs(5, 3)]
    again = [g.random() for g in spawn_rngs(5, 3)]
    assert first == again
    assert len(set(first)) == 3


def test_spawned_stream_independent_of_count():
    assert spawn_rngs(5, 1)[0].random() == spawn_rngs(5, 3)[0].random()
