"""
Trend, projection and prediction output models.

``TrendResult`` is the trend analyzer's verdict on a candle window: a
direction, a calibrated confidence, the signed average close-to-close move and
the per-indicator signals that produced them.

A price projection is a tagged union:

  - ``AnalyzedProjection`` — derived from a ``TrendResult``; carries it.
  - ``FallbackProjection`` — randomized placeholder emitted only when no
    history was available.  Consumers must be able to tell the two apart, so
    the ``kind`` discriminator is part of the model, not just the rationale.

``PredictionRecord`` is the externally visible unit written to the CSV files.

All models are frozen — a prediction is produced once per step and never
mutated afterwards.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from candle_forecaster.taxonomy.cadence import Direction

Signal = Literal[-1, 0, 1]

INDICATOR_NAMES: tuple[str, ...] = (
    "momentum",
    "moving_average",
    "volume",
    "support_resistance",
)


class TrendResult(BaseModel):
    """Output of the trend analyzer for one candle window.

    Attributes:
        direction: Fused directional call.
        confidence: Calibrated confidence; within the configured floor/ceiling
            for analyzed windows, exactly the degenerate value otherwise.
        momentum_delta: Mean close-to-close change over the window (price units).
        indicator_signals: Indicator name → signal in {-1, 0, +1}.
        volatility: Population std of window closes divided by their mean.
        rationale: Short human-readable summary, e.g.
            ``"GREEN (85%): bullish momentum, MA uptrend"``.
        is_degenerate: ``True`` when the window was too short to analyze.
    """

    model_config = ConfigDict(frozen=True)

    direction: Direction
    confidence: float
    momentum_delta: float = 0.0
    indicator_signals: dict[str, Signal] = Field(default_factory=dict)
    volatility: float = 0.0
    rationale: str
    is_degenerate: bool = False

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v

    @property
    def bullish_count(self) -> int:
        return sum(1 for s in self.indicator_signals.values() if s > 0)

    @property
    def bearish_count(self) -> int:
        return sum(1 for s in self.indicator_signals.values() if s < 0)


class _ProjectionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: Direction
    confidence: float
    price: float
    rationale: str

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v

    @field_validator("price")
    @classmethod
    def validate_price_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"price must be positive, got {v}.")
        return v


class AnalyzedProjection(_ProjectionBase):
    """Price projection derived from trend analysis of real candles."""

    kind: Literal["analyzed"] = "analyzed"
    trend: TrendResult

    @property
    def is_fallback(self) -> bool:
        return False


class FallbackProjection(_ProjectionBase):
    """Randomized projection used when the candle window is empty.

    The numbers look plausible but are not derived from any data.
    """

    kind: Literal["fallback"] = "fallback"

    @property
    def is_fallback(self) -> bool:
        return True


Projection = Annotated[
    Union[AnalyzedProjection, FallbackProjection],
    Field(discriminator="kind"),
]


class PredictionRecord(BaseModel):
    """One row of a prediction file.

    Attributes:
        timestamp: Start of the forecast period, integer seconds since epoch.
        direction: Predicted direction (rendered as ``green`` / ``red``).
        confidence: Confidence in [0.0, 1.0].
        price: Predicted price, strictly positive, rounded to 2 decimals.
        rationale: Analysis summary; not written to CSV.
        is_fallback: ``True`` when the record came from the randomized
            no-history path; not written to CSV.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    direction: Direction
    confidence: float
    price: float
    rationale: Optional[str] = None
    is_fallback: bool = False

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"price must be positive, got {v}.")
        return round(v, 2)

    @property
    def color(self) -> str:
        return self.direction.color
