"""
Prediction file export and import.

File format (what the miner reads)::

    timestamp,color,confidence,price
    1735693200,green,0.85,452.31
    1735696800,red,0.75,449.07

  - ``timestamp``  — period start, integer epoch seconds.
  - ``color``      — ``green`` (up) or ``red`` (down).
  - ``confidence`` — shortest decimal that round-trips the float (``str()``).
  - ``price``      — always exactly 2 decimal places.

Rows end with ``\\n`` and the file ends with a single final newline.
Rationale and the fallback flag are not part of the format.

``write_predictions_csv()`` returns the written ``Path``, creating parent
directories as needed.  ``parse_predictions_csv()`` validates every row before
returning any, and raises a single ``ValueError`` listing the failures.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from candle_forecaster.models.forecast import PredictionRecord
from candle_forecaster.taxonomy.cadence import Direction

logger = logging.getLogger(__name__)

PREDICTION_COLUMNS: tuple[str, ...] = ("timestamp", "color", "confidence", "price")


def prediction_to_row(record: PredictionRecord) -> list[str]:
    """Render one record as the four CSV cell strings."""
    return [
        str(record.timestamp),
        record.color,
        str(float(record.confidence)),
        f"{record.price:.2f}",
    ]


def predictions_to_csv(records: Iterable[PredictionRecord]) -> str:
    """Serialise records to the prediction file format (header always present)."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(PREDICTION_COLUMNS)
    for record in records:
        writer.writerow(prediction_to_row(record))
    return buf.getvalue()


def write_predictions_csv(records: list[PredictionRecord], path: Path) -> Path:
    """Write ``records`` to ``path`` as UTF-8.

    Args:
        records: Predictions in output order.
        path:    Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(predictions_to_csv(records), encoding="utf-8", newline="")
    logger.info("Saved %d prediction(s) to %s", len(records), path)
    return path


def parse_predictions_csv(text: str) -> list[PredictionRecord]:
    """Parse prediction file content back into ``PredictionRecord`` objects.

    Raises:
        ValueError: If the header is missing/wrong or any row is invalid.
    """
    reader = csv.DictReader(io.StringIO(text))

    if reader.fieldnames is None:
        raise ValueError("Prediction CSV is empty or has no header row.")
    missing = set(PREDICTION_COLUMNS) - set(reader.fieldnames)
    if missing:
        raise ValueError(
            f"Prediction CSV missing required columns: {sorted(missing)}\n"
            f"Found columns: {list(reader.fieldnames)}"
        )

    records: list[PredictionRecord] = []
    errors: list[tuple[int, str]] = []

    for i, row in enumerate(reader):
        line_no = i + 2  # 1-based, skip header row
        try:
            records.append(_row_to_record(row))
        except (TypeError, ValueError, ValidationError) as exc:
            errors.append((line_no, str(exc)))

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:max_shown])
        suffix = f"\n  ... and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(f"{len(errors)} prediction row(s) failed validation:\n{detail}{suffix}")

    return records


def read_predictions_csv(path: Path) -> list[PredictionRecord]:
    """Read and parse a prediction file from disk.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On format or validation errors.
    """
    if not path.exists():
        raise FileNotFoundError(f"Prediction file not found: {path}")
    return parse_predictions_csv(path.read_text(encoding="utf-8"))


def _row_to_record(row: dict[str, str]) -> PredictionRecord:
    try:
        timestamp = int(row["timestamp"].strip())
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid timestamp '{row.get('timestamp')}'.")

    return PredictionRecord(
        timestamp=timestamp,
        direction=Direction.from_color(row.get("color") or ""),
        confidence=float(row["confidence"]),
        price=float(row["price"]),
    )
