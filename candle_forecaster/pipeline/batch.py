"""
Batch driver — one cadence, N future periods, one prediction per period.

``generate_batch`` is a pure function of its arguments: the cadence, the
count, the candle window, the reference instant ``now`` and the RNG.  It
performs no I/O, so the caller fetches candles first and a failed fetch never
yields a partial batch.

Every step projects from the *same* historical window.  Steps differ only in
their timestamp and their random draw; the driver does not feed predicted
prices back in as pseudo-history.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

from candle_forecaster.analysis.projector import project_price
from candle_forecaster.config import ProjectionConfig, TrendConfig
from candle_forecaster.models.candle import Candle
from candle_forecaster.models.forecast import PredictionRecord
from candle_forecaster.taxonomy.cadence import Cadence
from candle_forecaster.utils.time_utils import schedule_timestamps

logger = logging.getLogger(__name__)


def generate_batch(
    cadence: Cadence,
    count: int,
    candles: Sequence[Candle],
    rng: np.random.Generator,
    now: datetime,
    trend_config: Optional[TrendConfig] = None,
    projection_config: Optional[ProjectionConfig] = None,
) -> list[PredictionRecord]:
    """Produce ``count`` predictions for consecutive ``cadence`` periods.

    Args:
        cadence: Forecast cadence.
        count: Number of records (>= 0).
        candles: Ascending historical window shared by every step.
        rng: Source of randomness for the projector.
        now: Reference instant; the first record starts at the next aligned
            boundary strictly after it.
        trend_config: Trend analyzer settings.
        projection_config: Projector settings.

    Returns:
        Records in ascending timestamp order, spaced one period apart.

    Raises:
        ValueError: If ``count`` is negative.
    """
    timestamps = schedule_timestamps(cadence, count, now)

    if not candles and timestamps:
        logger.warning(
            "No candles for %s batch; all %d record(s) will be randomized fallbacks.",
            cadence.label, count,
        )

    records: list[PredictionRecord] = []
    for ts in timestamps:
        projection = project_price(
            candles,
            cadence,
            rng,
            trend_config=trend_config,
            config=projection_config,
        )
        records.append(
            PredictionRecord(
                timestamp=ts,
                direction=projection.direction,
                confidence=projection.confidence,
                price=projection.price,
                rationale=projection.rationale,
                is_fallback=projection.is_fallback,
            )
        )

    logger.info(
        "Generated %d %s prediction(s) from %d candle(s)",
        len(records), cadence.label, len(candles),
    )
    return records
