"""
Price projector — a bounded random walk biased by the trend verdict.

    max_change     = last_close * cadence.max_move
    trend_strength = min(|momentum_delta| / last_close * scale, 1)
    bias           = +1 for UP, -1 for DOWN

    price = last_close
          + uniform(-1, 1) * max_change * random_weight
          + max_change * trend_weight * bias * trend_strength
          + max_change * confidence_weight * bias * (confidence - 0.5) * 2

The result is floored at ``price_floor`` and rounded to 2 decimals.

With no candles at all the projector returns a ``FallbackProjection`` with a
random direction, confidence and price drawn from the configured fallback
ranges.  It exists so a batch can always be produced; it is flagged so nobody
mistakes it for analysis.

Randomness always comes from the ``numpy.random.Generator`` passed in; use
``make_rng(seed)`` for reproducible runs.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from candle_forecaster.analysis.trend import analyze_trend
from candle_forecaster.config import ProjectionConfig, TrendConfig
from candle_forecaster.models.candle import Candle
from candle_forecaster.models.forecast import (
    AnalyzedProjection,
    FallbackProjection,
    Projection,
)
from candle_forecaster.taxonomy.cadence import Cadence, Direction

logger = logging.getLogger(__name__)

FALLBACK_RATIONALE = "no historical data, randomized"


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Return a PCG64 generator; ``seed=None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def spawn_rngs(seed: Optional[int], n: int) -> list[np.random.Generator]:
    """Return ``n`` statistically independent generators derived from ``seed``.

    Child ``i`` depends only on ``seed`` and ``i``; callers that pin each
    cadence to a fixed index get the same stream however many they run.
    """
    return [np.random.default_rng(child) for child in np.random.SeedSequence(seed).spawn(n)]


def project_price(
    candles: Sequence[Candle],
    cadence: Cadence,
    rng: np.random.Generator,
    trend_config: Optional[TrendConfig] = None,
    config: Optional[ProjectionConfig] = None,
) -> Projection:
    """Project the next-period price for ``cadence``.

    Args:
        candles: Ascending candle window; may be empty.
        cadence: Forecast cadence (sets the expected move size).
        rng: Source of randomness.
        trend_config: Trend analyzer settings.
        config: Projection weights and fallback ranges.

    Returns:
        ``AnalyzedProjection`` for a non-empty window, else ``FallbackProjection``.
    """
    cfg = config or ProjectionConfig()

    if not candles:
        return _fallback(rng, cfg)

    trend = analyze_trend(candles, trend_config)
    base_price = candles[-1].close
    max_change = base_price * cadence.max_move
    trend_strength = min(abs(trend.momentum_delta) / base_price * cfg.trend_strength_scale, 1.0)
    bias = trend.direction.sign

    random_component = float(rng.uniform(-1.0, 1.0)) * max_change * cfg.random_weight
    trend_component = max_change * cfg.trend_weight * bias * trend_strength
    confidence_component = (
        max_change * cfg.confidence_weight * bias * (trend.confidence - 0.5) * 2
    )

    price = base_price + random_component + trend_component + confidence_component
    price = round(max(cfg.price_floor, price), 2)

    return AnalyzedProjection(
        direction=trend.direction,
        confidence=trend.confidence,
        price=price,
        rationale=trend.rationale,
        trend=trend,
    )


def _fallback(rng: np.random.Generator, cfg: ProjectionConfig) -> FallbackProjection:
    direction = Direction.UP if float(rng.random()) > 0.5 else Direction.DOWN
    confidence = cfg.fallback_confidence_low + float(rng.random()) * cfg.fallback_confidence_span

    upper = cfg.fallback_price_low + cfg.fallback_price_span
    price = round(cfg.fallback_price_low + float(rng.random()) * cfg.fallback_price_span, 2)
    if price >= upper:
        # Rounding a draw just below the upper bound must not reach it.
        price = round(upper - 0.01, 2)

    logger.debug("No candles available; emitting randomized fallback projection.")
    return FallbackProjection(
        direction=direction,
        confidence=confidence,
        price=price,
        rationale=FALLBACK_RATIONALE,
    )
