"""
Trend analyzer — fuses indicator signals into a direction and a confidence.

How it works
------------
1.  Windows shorter than ``min_candles`` get the neutral degenerate result
    (UP at the degenerate confidence, "insufficient data").  Not an error.
2.  The last ``window_size`` candles form the analysis window.
3.  Four indicators vote: momentum, moving average, volume,
    support/resistance.  Zero votes are dropped.
4.  Direction is UP only on a strict bullish majority; a tie between non-zero
    votes is DOWN.  With no votes at all the call degenerates to UP.
5.  ``agreement = |bullish - bearish| / votes`` (0 with no votes).
6.  ``volatility_factor = max(min_factor, 1 - 2 * volatility)``.
7.  ``confidence = clamp(base + w_a * agreement + w_v * volatility_factor)``
    to [floor, ceiling], rounded to 2 decimals.

All weights and thresholds come from ``TrendConfig``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from candle_forecaster.analysis import indicators
from candle_forecaster.config import TrendConfig
from candle_forecaster.models.candle import Candle
from candle_forecaster.models.forecast import INDICATOR_NAMES, TrendResult
from candle_forecaster.taxonomy.cadence import Direction

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "insufficient data"

_PHRASES: dict[str, tuple[str, str]] = {
    # indicator → (bullish phrase, bearish phrase)
    "momentum":           ("bullish momentum", "bearish momentum"),
    "moving_average":     ("MA uptrend", "MA downtrend"),
    "volume":             ("volume increase", "volume decrease"),
    "support_resistance": ("near support", "near resistance"),
}


def analyze_trend(
    candles: Sequence[Candle],
    config: Optional[TrendConfig] = None,
) -> TrendResult:
    """Score the trend of an ascending candle window.

    Args:
        candles: Candles ordered by ascending timestamp.
        config: Thresholds and weights; defaults to ``TrendConfig()``.

    Returns:
        A fresh ``TrendResult``.
    """
    cfg = config or TrendConfig()

    if len(candles) < cfg.min_candles:
        logger.debug("Trend analysis skipped: %d candle(s) < %d", len(candles), cfg.min_candles)
        return TrendResult(
            direction=Direction.UP,
            confidence=cfg.degenerate_confidence,
            momentum_delta=0.0,
            indicator_signals={name: 0 for name in INDICATOR_NAMES},
            volatility=0.0,
            rationale=INSUFFICIENT_DATA,
            is_degenerate=True,
        )

    window = list(candles[-cfg.window_size:])

    mom = indicators.momentum(window)
    signals: dict[str, int] = {
        "momentum":           mom.signal,
        "moving_average":     indicators.moving_average(window, cfg).signal,
        "volume":             indicators.volume(window, cfg).signal,
        "support_resistance": indicators.support_resistance(window, cfg).signal,
    }
    vol = indicators.volatility(window)

    votes = [s for s in signals.values() if s != 0]
    bullish = sum(1 for s in votes if s > 0)
    bearish = len(votes) - bullish

    if not votes:
        direction = Direction.UP
        agreement = 0.0
    else:
        direction = Direction.UP if bullish > bearish else Direction.DOWN
        agreement = abs(bullish - bearish) / len(votes)

    volatility_factor = max(cfg.min_volatility_factor, 1 - vol * 2)
    raw = (
        cfg.confidence_base
        + agreement * cfg.agreement_weight
        + volatility_factor * cfg.volatility_weight
    )
    confidence = round(min(cfg.confidence_ceiling, max(cfg.confidence_floor, raw)), 2)

    logger.debug(
        "Trend: signals=%s volatility=%.4f agreement=%.2f -> %s @ %.2f",
        signals, vol, agreement, direction.value, confidence,
    )

    return TrendResult(
        direction=direction,
        confidence=confidence,
        momentum_delta=mom.change,
        indicator_signals=signals,
        volatility=vol,
        rationale=build_rationale(signals, direction, confidence),
    )


def build_rationale(
    signals: dict[str, int],
    direction: Direction,
    confidence: float,
) -> str:
    """Render ``"GREEN (85%): bullish momentum, MA uptrend"`` style text."""
    parts: list[str] = []
    for name in INDICATOR_NAMES:
        signal = signals.get(name, 0)
        if signal == 0:
            continue
        bullish_phrase, bearish_phrase = _PHRASES[name]
        parts.append(bullish_phrase if signal > 0 else bearish_phrase)

    summary = ", ".join(parts) if parts else "mixed signals"
    return f"{direction.color.upper()} ({confidence * 100:.0f}%): {summary}"
