"""
Technical indicators over a candle window.

Each indicator reads the (already trimmed) analysis window and returns a small
frozen reading: the signal it votes with plus the numbers behind the vote, so
rationale text and debug logs can quote them.

Signals
-------
  +1  bullish opinion
   0  no opinion — excluded from fusion
  -1  bearish opinion

Indicators
----------
momentum            Mean close-to-close delta; signal = its sign.
moving_average      Short MA vs long MA of closes; no opinion on short windows.
volume              Recent vs preceding mean volume, with a dead band.
support_resistance  Proximity of the last close to the window high / low.
volatility          Population std of closes / mean close.  Not a signal —
                    only used to shape confidence.

All functions are pure and assume a non-empty window; the trend analyzer
guarantees that by short-circuiting windows below ``min_candles``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from candle_forecaster.config import TrendConfig
from candle_forecaster.models.candle import Candle


def _sign(x: float) -> int:
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


# ── Readings ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MomentumReading:
    change: float   # mean close-to-close delta, price units
    signal: int


@dataclass(frozen=True)
class MovingAverageReading:
    signal: int
    short_ma: Optional[float] = None
    long_ma: Optional[float] = None


@dataclass(frozen=True)
class VolumeReading:
    signal: int
    recent_volume: Optional[float] = None
    older_volume: Optional[float] = None


@dataclass(frozen=True)
class SupportResistanceReading:
    signal: int
    resistance: float
    support: float
    distance_to_resistance: float
    distance_to_support: float


# ── Indicators ────────────────────────────────────────────────────────────────


def momentum(window: Sequence[Candle]) -> MomentumReading:
    """Average of consecutive close deltas and its sign.

    A single-candle window has no deltas and yields ``change=0.0``.
    """
    closes = [c.close for c in window]
    deltas = [b - a for a, b in zip(closes, closes[1:])]
    if not deltas:
        return MomentumReading(change=0.0, signal=0)
    change = _mean(deltas)
    return MomentumReading(change=change, signal=_sign(change))


def moving_average(window: Sequence[Candle], config: TrendConfig) -> MovingAverageReading:
    """Sign of (short MA − long MA) over closes.

    Returns signal 0 without MAs when the window is shorter than
    ``config.long_ma_period``.
    """
    if len(window) < config.long_ma_period:
        return MovingAverageReading(signal=0)
    closes = [c.close for c in window]
    short_ma = _mean(closes[-config.short_ma_period:])
    long_ma = _mean(closes[-config.long_ma_period:])
    return MovingAverageReading(
        signal=_sign(short_ma - long_ma),
        short_ma=short_ma,
        long_ma=long_ma,
    )


def volume(window: Sequence[Candle], config: TrendConfig) -> VolumeReading:
    """Compare mean volume of the last N candles with the N before them.

    No opinion when the window carries no volume at all (the OHLC endpoint
    reports none) or when there is no preceding group to compare against.
    """
    if not any(c.volume > 0 for c in window):
        return VolumeReading(signal=0)

    n = config.volume_lookback
    recent = window[-n:]
    older = window[-2 * n:-n]
    if not older:
        return VolumeReading(signal=0)

    recent_avg = _mean([c.volume for c in recent])
    older_avg = _mean([c.volume for c in older])

    if recent_avg > older_avg * config.volume_increase_ratio:
        signal = 1
    elif recent_avg < older_avg * config.volume_decrease_ratio:
        signal = -1
    else:
        signal = 0
    return VolumeReading(signal=signal, recent_volume=recent_avg, older_volume=older_avg)


def support_resistance(
    window: Sequence[Candle],
    config: TrendConfig,
) -> SupportResistanceReading:
    """Bearish near the window high, bullish near the window low.

    Resistance is checked first, so a window narrow enough to be near both
    votes bearish.
    """
    resistance = max(c.high for c in window)
    support = min(c.low for c in window)
    current = window[-1].close

    to_resistance = (resistance - current) / current
    to_support = (current - support) / current

    if to_resistance < config.sr_proximity:
        signal = -1
    elif to_support < config.sr_proximity:
        signal = 1
    else:
        signal = 0

    return SupportResistanceReading(
        signal=signal,
        resistance=resistance,
        support=support,
        distance_to_resistance=to_resistance,
        distance_to_support=to_support,
    )


def volatility(window: Sequence[Candle]) -> float:
    """Coefficient of variation of closes (population std / mean)."""
    closes = [c.close for c in window]
    avg = _mean(closes)
    variance = sum((p - avg) ** 2 for p in closes) / len(closes)
    return math.sqrt(variance) / avg
