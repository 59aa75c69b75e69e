"""
Shared pytest fixtures for the Candle Forecaster test suite.

Provides:
  - ``clean_env`` (autouse): strips ``COINGECKO_API_KEY`` and every
    ``CANDLE_FORECASTER_*`` variable so a developer's shell never leaks
    into config tests.
  - ``restore_root_logger`` (autouse): undoes ``configure_logging()`` calls
    made by CLI and logging tests.
  - Candle window factories used across the analysis and pipeline tests.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Generator

import pytest

from candle_forecaster.models.candle import Candle

T0 = 1_735_689_600   # 2025-01-01T00:00:00Z


def make_candles(
    closes: list[float],
    highs: list[float] | None = None,
    lows: list[float] | None = None,
    volumes: list[float] | None = None,
    step: int = 3_600,
) -> list[Candle]:
    """Build an ascending window; opens chain from the previous close."""
    candles = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i else close
        candles.append(
            Candle(
                timestamp=T0 + i * step,
                open=open_,
                high=highs[i] if highs else max(open_, close) * 1.001,
                low=lows[i] if lows else min(open_, close) * 0.999,
                close=close,
                volume=volumes[i] if volumes else 0.0,
            )
        )
    return candles


# ── Environment / logging hygiene ─────────────────────────────────────────────

@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COINGECKO_API_KEY", raising=False)
    for key in list(os.environ):
        if key.startswith("CANDLE_FORECASTER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ── Candle windows ────────────────────────────────────────────────────────────

@pytest.fixture
def candle_factory():
    """``make_candles`` as a fixture, for tests that build their own window."""
    return make_candles


@pytest.fixture
def mock_window() -> list[Candle]:
    """Four rising closes pressed against the window high.

    momentum +1, MA 0 (too short), volume 0, support/resistance -1.
    """
    return make_candles(
        closes=[45.5, 46.2, 46.8, 47.2],
        highs=[46.0, 47.0, 47.5, 47.8],
        lows=[44.5, 45.0, 46.0, 46.5],
    )


@pytest.fixture
def clear_resistance_window() -> list[Candle]:
    """Same closes as ``mock_window`` with the last high far enough away."""
    return make_candles(
        closes=[45.5, 46.2, 46.8, 47.2],
        highs=[46.0, 47.0, 47.5, 48.5],
        lows=[44.5, 45.0, 46.0, 46.5],
    )


@pytest.fixture
def uptrend_with_volume() -> list[Candle]:
    """Twelve steadily rising candles with rising volume."""
    closes = [100.0 + 2.0 * i for i in range(12)]
    volumes = [1_000.0 + 200.0 * i for i in range(12)]
    return make_candles(closes=closes, volumes=volumes)


@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday 2025-01-01 10:17:42 UTC."""
    return datetime(2025, 1, 1, 10, 17, 42, tzinfo=timezone.utc)
