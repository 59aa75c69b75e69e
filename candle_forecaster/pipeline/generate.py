"""
GenerateStage — fetch candles, run the batch driver per cadence, write CSVs.

For each requested cadence:
  1. Fetch the candle window once (``fetch_ohlc(history_days)``), or take the
     fixture window in offline mode.
  2. Run ``generate_batch`` with that cadence's own RNG stream.
  3. Write ``<output_dir>/<cadence.filename>``.
  4. Sleep ``provider.request_delay_s`` before the next cadence (online only).

A fetch failure aborts the run before anything is written for that cadence;
files already written for earlier cadences are left in place.

RNG streams:
  One ``SeedSequence`` child per ``Cadence`` member, indexed by the member's
  position in the enum.  ``--cadence days`` with ``--seed 7`` therefore yields
  exactly the daily file of a full ``--seed 7`` run.

``PreviewStage`` runs the same steps without writing files; the CLI prints
``stage.batches`` instead.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from candle_forecaster.analysis.projector import spawn_rngs
from candle_forecaster.config import AppConfig
from candle_forecaster.ingestion.coingecko_client import CoinGeckoClient, MarketSnapshot
from candle_forecaster.models.candle import Candle
from candle_forecaster.models.forecast import PredictionRecord
from candle_forecaster.models.meta import RunMetadata
from candle_forecaster.pipeline.base import PipelineStage
from candle_forecaster.pipeline.batch import generate_batch
from candle_forecaster.reporting.export import write_predictions_csv
from candle_forecaster.taxonomy.cadence import Cadence
from candle_forecaster.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_CADENCE_ORDER: tuple[Cadence, ...] = tuple(Cadence)


class GenerateStage(PipelineStage):
    """Generate prediction files for one or more cadences.

    Attributes:
        client: Price provider; built from ``config.provider`` when omitted.
        batches: Records produced by the last run, keyed by cadence.
        snapshot: Spot market data logged at the start of an online run.
    """

    stage_name = "generate"
    writes_files = True

    def __init__(
        self,
        config: AppConfig,
        client: Optional[CoinGeckoClient] = None,
        now: Optional[datetime] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config)
        self.client = client
        self._now = now
        self._sleep = sleep
        self.batches: dict[Cadence, list[PredictionRecord]] = {}
        self.snapshot: Optional[MarketSnapshot] = None

    def _default_count(self, cadence: Cadence) -> int:
        return self.config.forecast.count_for(cadence)

    def _execute(
        self,
        run: RunMetadata,
        cadences: Optional[list[Cadence]] = None,
        count: Optional[int] = None,
        output_dir: Optional[Path] = None,
        offline: bool = False,
        seed: Optional[int] = None,
        **kwargs,
    ) -> int:
        """Produce one batch per cadence.

        Args:
            run: In-progress :class:`RunMetadata` (mutable).
            cadences: Cadences to process, in order. Defaults to all three.
            count: Batch size for every cadence; defaults to the configured
                per-cadence count.
            output_dir: Destination directory; defaults to ``config.output``.
            offline: Use fixture candles instead of the provider.
            seed: RNG seed; defaults to ``config.forecast.seed``.

        Returns:
            Total number of prediction records produced.

        Raises:
            ProviderError: If a candle fetch fails.
            ValueError: If ``count`` is negative.
        """
        cadences = list(cadences) if cadences else list(_CADENCE_ORDER)
        if seed is None:
            seed = self.config.forecast.seed
        out_dir = Path(output_dir) if output_dir else self.config.output.resolved_dir()
        now = self._now or utcnow()
        client = self.client or CoinGeckoClient.from_config(self.config.provider)

        run.cadences = [c.value for c in cadences]
        run.seed = seed
        run.offline = offline

        streams = spawn_rngs(seed, len(_CADENCE_ORDER))
        self.batches = {}

        if not offline:
            self.snapshot = client.get_current_price()
            if self.snapshot is not None:
                logger.info("Current %s price: %.2f", client.coin_id, self.snapshot.price)

        total = 0
        for i, cadence in enumerate(cadences):
            if i > 0 and not offline and self.config.provider.request_delay_s > 0:
                logger.debug("Sleeping %.1fs between provider requests", self.config.provider.request_delay_s)
                self._sleep(self.config.provider.request_delay_s)

            candles = self._load_candles(client, offline)
            batch_size = count if count is not None else self._default_count(cadence)
            records = generate_batch(
                cadence,
                batch_size,
                candles,
                streams[_CADENCE_ORDER.index(cadence)],
                now,
                trend_config=self.config.trend,
                projection_config=self.config.projection,
            )
            self.batches[cadence] = records
            total += len(records)
            run.rows_processed = total
            run.fallback_rows += sum(1 for r in records if r.is_fallback)

            if records:
                logger.info("Sample %s analysis: %s", cadence.label, records[0].rationale)

            if self.writes_files:
                path = write_predictions_csv(records, out_dir / cadence.filename)
                run.files_written.append(str(path))

        return total

    def _load_candles(self, client: CoinGeckoClient, offline: bool) -> list[Candle]:
        if offline:
            return client.get_fixture_candles()
        return client.fetch_ohlc(days=self.config.provider.history_days)


class PreviewStage(GenerateStage):
    """Same pipeline as :class:`GenerateStage`, printed instead of written."""

    stage_name = "preview"
    writes_files = False

    def _default_count(self, cadence: Cadence) -> int:
        return self.config.forecast.preview_count
