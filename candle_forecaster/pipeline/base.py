"""
Abstract base class for pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and finalises the record with ``success`` or ``failed``.
  4. ``_execute()`` is the stage-specific implementation.

Run records are logged, not stored: the complete record goes to the log at
DEBUG when the run finishes, and the prediction files themselves are the only
artefacts a run leaves behind.

Usage::

    class MyStage(PipelineStage):
        stage_name = "generate"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run(offline=True)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from candle_forecaster.config import AppConfig
from candle_forecaster.models.meta import RunMetadata
from candle_forecaster.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for pipeline stages.

    Attributes:
        stage_name: Identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
    """

    stage_name: str  # Override in subclass

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run(self, **kwargs) -> RunMetadata:
        """Execute this stage and return the finalised run record.

        Args:
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with ``status='success'``, ``rows_processed`` and
            ``finished_at`` set.

        Raises:
            Exception: Re-raises anything from ``_execute()`` after marking the
                run as failed.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.redacted_dump(),
            started_at=utcnow(),
        )
        logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._log_run_record(run)
            raise

        run.status = "success"
        run.rows_processed = rows
        run.finished_at = utcnow()
        logger.info(
            "Stage [%s] completed | rows=%d | fallback=%d | %.2fs | run_slug=%s",
            self.stage_name, rows, run.fallback_rows, run.duration_s or 0.0, run.run_slug,
        )
        self._log_run_record(run)
        return run

    def _log_run_record(self, run: RunMetadata) -> None:
        """Emit the full run record (config snapshot, seed, files) at DEBUG."""
        logger.debug("Run record | run_slug=%s | %s", run.run_slug, run.model_dump_json())

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Number of prediction records produced.
        """
        ...
