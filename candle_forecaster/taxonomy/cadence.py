"""
Forecast cadence and direction taxonomy.

Two small vocabularies describe every prediction:
  - ``Cadence``   — the *granularity*: hourly, daily or weekly forecasts.
  - ``Direction`` — the *call*: price goes up (green) or down (red).

The enum values are the externally visible tokens: ``Cadence`` values are the
names accepted on the command line (``hours``, ``days``, ``weeks``) and
``Direction.color`` is the rendering written to the prediction CSV files.

Usage example::

    from candle_forecaster.taxonomy.cadence import Cadence, Direction

    cadence = Cadence("days")
    cadence.period_seconds        # 86400
    Direction.from_color("red")   # Direction.DOWN

This module has NO imports from any other ``candle_forecaster`` package.
"""

from enum import StrEnum


class Cadence(StrEnum):
    """Forecast granularity, one prediction per period."""

    HOURLY = "hours"
    """One prediction per UTC hour; aligned to the top of the hour."""

    DAILY = "days"
    """One prediction per UTC day; aligned to midnight UTC."""

    WEEKLY = "weeks"
    """One prediction per week; aligned to Monday 00:00 UTC."""

    @property
    def period_seconds(self) -> int:
        """Length of one period in seconds."""
        return _PERIOD_SECONDS[self]

    @property
    def max_move(self) -> float:
        """Largest fractional price move expected within one period."""
        return _MAX_MOVE[self]

    @property
    def default_count(self) -> int:
        """Batch size used when generating the full set of prediction files."""
        return _DEFAULT_COUNT[self]

    @property
    def filename(self) -> str:
        """Name of the CSV file this cadence's predictions are written to."""
        return _FILENAMES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


class Direction(StrEnum):
    """Predicted price direction for a period."""

    UP = "up"
    """Close expected above the open — rendered ``green``."""

    DOWN = "down"
    """Close expected below the open — rendered ``red``."""

    @property
    def color(self) -> str:
        """Candle colour used in the CSV ``color`` column."""
        return "green" if self is Direction.UP else "red"

    @property
    def sign(self) -> int:
        """+1 for ``UP``, -1 for ``DOWN``."""
        return 1 if self is Direction.UP else -1

    @classmethod
    def from_color(cls, color: str) -> "Direction":
        """Parse a CSV colour token (``green`` / ``red``, case-insensitive)."""
        token = color.strip().lower()
        if token == "green":
            return cls.UP
        if token == "red":
            return cls.DOWN
        raise ValueError(f"Invalid color '{color}'. Expected 'green' or 'red'.")


_PERIOD_SECONDS: dict[Cadence, int] = {
    Cadence.HOURLY: 3_600,
    Cadence.DAILY:  86_400,
    Cadence.WEEKLY: 604_800,
}

_MAX_MOVE: dict[Cadence, float] = {
    Cadence.HOURLY: 0.025,
    Cadence.DAILY:  0.06,
    Cadence.WEEKLY: 0.12,
}

_DEFAULT_COUNT: dict[Cadence, int] = {
    Cadence.HOURLY: 48,
    Cadence.DAILY:  30,
    Cadence.WEEKLY: 12,
}

_FILENAMES: dict[Cadence, str] = {
    Cadence.HOURLY: "hourly_predictions.csv",
    Cadence.DAILY:  "daily_predictions.csv",
    Cadence.WEEKLY: "weekly_predictions.csv",
}

_LABELS: dict[Cadence, str] = {
    Cadence.HOURLY: "hourly",
    Cadence.DAILY:  "daily",
    Cadence.WEEKLY: "weekly",
}
