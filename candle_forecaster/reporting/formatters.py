"""
ASCII terminal formatters for the preview and health commands.

All formatters return plain multi-line strings suitable for ``typer.echo()``.
No third-party dependencies (no ``rich``, no ``colorama``).

Fallback rows
-------------
Records produced by the randomized no-history path are marked ``[FALLBACK]``
in the preview so they are never read as real analysis.
"""

from __future__ import annotations

from candle_forecaster.ingestion.coingecko_client import HealthStatus, MarketSnapshot
from candle_forecaster.models.forecast import PredictionRecord
from candle_forecaster.taxonomy.cadence import Cadence
from candle_forecaster.utils.time_utils import format_timestamp


def format_prediction_preview(
    records: list[PredictionRecord],
    cadence: Cadence,
) -> str:
    """Format predictions as a fixed-width table.

    Columns: period start (UTC), call, confidence %, price, rationale.

    Args:
        records: Predictions in timestamp order.
        cadence: Cadence the batch was generated for (used in the title).

    Returns:
        Multi-line table, or a one-line notice when ``records`` is empty.
    """
    if not records:
        return f"  No {cadence.label} predictions to show."

    lines = [
        f"  {cadence.label.capitalize()} predictions ({len(records)})",
        "",
        f"  {'Time (UTC)':<17} {'Call':<6} {'Conf':>5} {'Price':>11}  Analysis",
        "  " + "-" * 96,
    ]
    for r in records:
        rationale = r.rationale or ""
        if r.is_fallback:
            rationale = f"[FALLBACK] {rationale}"
        lines.append(
            f"  {format_timestamp(r.timestamp):<17} "
            f"{r.color.upper():<6} "
            f"{r.confidence * 100:>4.0f}% "
            f"{'$' + format(r.price, ',.2f'):>11}  "
            f"{rationale}"
        )
    return "\n".join(lines)


def format_market_snapshot(snapshot: MarketSnapshot | None) -> str:
    """One- or two-line spot price summary; notes when data is unavailable."""
    if snapshot is None:
        return "  Current price: N/A"
    line = f"  Current price: ${snapshot.price:,.2f}"
    if snapshot.change_24h is not None:
        line += f" | 24h change: {snapshot.change_24h:+.2f}%"
    return line


def format_health_status(status: HealthStatus) -> str:
    """Format an API health check result."""
    if not status.ok:
        return "\n".join([
            "  API Status: ERROR",
            f"  Error: {status.error or 'unknown'}",
        ])

    price = f"${status.price:,.2f}" if status.price is not None else "N/A"
    elapsed = (
        f"{status.response_time_ms:.0f}ms" if status.response_time_ms is not None else "N/A"
    )
    return "\n".join([
        "  API Status: Healthy",
        f"  Response time: {elapsed}",
        f"  Current price: {price}",
        f"  Checked at: {status.checked_at.strftime('%Y-%m-%dT%H:%M:%SZ')}",
    ])
