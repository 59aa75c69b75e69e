"""
Candle model — one OHLC(V) price bucket as received from the provider.

``Candle`` is frozen (immutable) after construction and validated on the way
in: a window containing a malformed candle is rejected as a whole rather than
silently repaired.  Rules enforced:

  - ``open``, ``high``, ``low``, ``close`` are finite and strictly positive.
  - ``high`` is not below ``low``.
  - ``volume`` is finite and non-negative; ``None`` (absent) becomes ``0.0``.
  - ``timestamp`` is an integer count of seconds since the Unix epoch.

Ordering (ascending timestamps, no duplicates) is the provider's contract and
is not checked here.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Candle(BaseModel):
    """A single OHLC(V) candle.

    Attributes:
        timestamp: Bucket start, integer seconds since the epoch (UTC).
        open: Opening price.
        high: Highest traded price in the bucket.
        low: Lowest traded price in the bucket.
        close: Closing price.
        volume: Traded volume; ``0.0`` when the provider does not report it.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator("open", "high", "low", "close")
    @classmethod
    def validate_price_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"Candle prices must be finite and positive, got {v}.")
        return v

    @field_validator("volume", mode="before")
    @classmethod
    def default_missing_volume(cls, v: Optional[float]) -> float:
        return 0.0 if v is None else v

    @field_validator("volume")
    @classmethod
    def validate_volume_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"Candle volume must be finite and non-negative, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "Candle":
        if self.high < self.low:
            raise ValueError(
                f"Candle high ({self.high}) must be >= low ({self.low})."
            )
        return self

    @property
    def opened_at(self) -> datetime:
        """``timestamp`` as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)
