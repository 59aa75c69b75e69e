"""
Run metadata — the audit record of one generate / preview run.

Every run records a complete ``config_snapshot`` (full ``AppConfig`` as a dict,
API key masked) and the RNG seed.  The finished record is logged at DEBUG, so
a run with a fixed seed can be reproduced by rebuilding that config, supplying
the key again, and replaying it against the same candles.

``RunMetadata`` is the **only** Pydantic model in the system that is NOT
frozen — its ``status``, ``rows_processed``, ``files_written``,
``error_message`` and ``finished_at`` fields are updated as the stage executes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"generate", "preview"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_slug: UUID4 string uniquely identifying this run.
        pipeline_stage: Which stage produced this run record.
        status: Current execution status.
        cadences: Cadence tokens processed in this run.
        seed: RNG seed, or ``None`` for an unseeded run.
        offline: ``True`` when fixture candles replaced the provider.
        config_snapshot: Full ``AppConfig.model_dump()`` at run start time.
        rows_processed: Number of prediction records produced so far.
        fallback_rows: How many of those came from the randomized path.
        files_written: Paths of prediction files written so far.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the run began.
        finished_at: UTC datetime when the run completed or failed.
    """

    # status, rows_processed and the timing fields change during execution
    model_config = ConfigDict(frozen=False)

    run_slug: str
    pipeline_stage: str
    status: str = "started"
    cadences: list[str] = []
    seed: Optional[int] = None
    offline: bool = False
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    fallback_rows: int = 0
    files_written: list[str] = []
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v

    @property
    def duration_s(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
