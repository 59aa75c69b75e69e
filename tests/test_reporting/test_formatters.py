"""Tests for candle_forecaster.reporting.formatters."""

from __future__ import annotations

from datetime import datetime, timezone

from candle_forecaster.ingestion.coingecko_client import HealthStatus, MarketSnapshot
from candle_forecaster.models.forecast import PredictionRecord
from candle_forecaster.reporting.formatters import (
    format_health_status,
    format_market_snapshot,
    format_prediction_preview,
)
from candle_forecaster.taxonomy.cadence import Cadence, Direction


def test_preview_table():
    records = [
        PredictionRecord(
            timestamp=1_735_693_200,
            direction=Direction.UP,
            confidence=0.85,
            price=1_452.3,
            rationale="GREEN (85%): bullish momentum",
        ),
    ]
    out = format_prediction_preview(records, Cadence.HOURLY)
    assert "Hourly predictions (1)" in out
    assert "2025-01-01 01:00" in out
    assert "GREEN" in out
    assert "85%" in out
    assert "$1,452.30" in out
    assert "bullish momentum" in out


def test_preview_marks_fallback():
    records = [
        PredictionRecord(
            timestamp=1_735_693_200,
            direction=Direction.DOWN,
            confidence=0.6,
            price=50.0,
            rationale="no historical data, randomized",
            is_fallback=True,
        ),
    ]
    out = format_prediction_preview(records, Cadence.DAILY)
    assert "[FALLBACK] no historical data, randomized" in out
    assert "RED" in out


def test_preview_empty():
    assert format_prediction_preview([], Cadence.WEEKLY) == "  No weekly predictions to show."


def test_market_snapshot():
    out = format_market_snapshot(MarketSnapshot(price=452.0, change_24h=-1.5))
    assert out == "  Current price: $452.00 | 24h change: -1.50%"


def test_market_snapshot_missing():
    assert "N/A" in format_market_snapshot(None)


def test_health_ok():
    status = HealthStatus(
        ok=True,
        response_time_ms=123.4,
        price=452.0,
        checked_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    out = format_health_status(status)
    assert "Healthy" in out
    assert "123ms" in out
    assert "$452.00" in out
    assert "2025-01-01T00:00:00Z" in out


def test_health_error():
    out = format_health_status(HealthStatus(ok=False, error="HTTP 500: boom"))
    assert "ERROR" in out
    assert "HTTP 500: boom" in out
