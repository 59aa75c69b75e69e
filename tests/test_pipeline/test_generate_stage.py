"""Tests for GenerateStage / PreviewStage."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from candle_forecaster.config import AppConfig, ForecastConfig, OutputConfig
from candle_forecaster.ingestion.coingecko_client import CoinGeckoClient, ProviderError
from candle_forecaster.pipeline.generate import GenerateStage, PreviewStage
from candle_forecaster.reporting.export import read_predictions_csv
from candle_forecaster.taxonomy.cadence import Cadence

OHLC_ROWS = [
    [1_735_689_600_000 + i * 14_400_000, 440.0 + i, 446.0 + i, 436.0 + i, 441.0 + i]
    for i in range(12)
]


def _config(tmp_path: Path, **forecast) -> AppConfig:
    return AppConfig(
        output=OutputConfig(output_dir=str(tmp_path / "out")),
        forecast=ForecastConfig(hourly_count=4, daily_count=3, weekly_count=2, **forecast),
    )


def _mock_client(handler) -> CoinGeckoClient:
    return CoinGeckoClient(transport=httpx.MockTransport(handler))


def _ok_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/ohlc"):
        return httpx.Response(200, json=OHLC_ROWS)
    if request.url.path.endswith("/simple/price"):
        return httpx.Response(200, json={"bittensor": {"usd": 452.0}})
    return httpx.Response(404, text="not found")


class _SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# ── Offline runs ──────────────────────────────────────────────────────────────


def test_offline_writes_three_files(tmp_path, fixed_now):
    stage = GenerateStage(_config(tmp_path), now=fixed_now)
    run = stage.run(offline=True, seed=7)

    out = tmp_path / "out"
    assert run.status == "success"
    assert run.rows_processed == 4 + 3 + 2
    assert run.fallback_rows == 0
    assert sorted(Path(p).name for p in run.files_written) == [
        "daily_predictions.csv",
        "hourly_predictions.csv",
        "weekly_predictions.csv",
    ]
    assert len(read_predictions_csv(out / "hourly_predictions.csv")) == 4
    assert len(read_predictions_csv(out / "weekly_predictions.csv")) == 2


def test_count_override_applies_to_every_cadence(tmp_path, fixed_now):
    stage = GenerateStage(_config(tmp_path), now=fixed_now)
    run = stage.run(offline=True, count=1)
    assert run.rows_processed == 3
    assert all(len(batch) == 1 for batch in stage.batches.values())


def test_explicit_output_dir(tmp_path, fixed_now):
    target = tmp_path / "elsewhere"
    GenerateStage(_config(tmp_path), now=fixed_now).run(
        offline=True, cadences=[Cadence.DAILY], output_dir=target
    )
    assert (target / "daily_predictions.csv").exists()
    assert not (tmp_path / "out").exists()


def test_seeded_run_is_reproducible(tmp_path, fixed_now):
    a = GenerateStage(_config(tmp_path), now=fixed_now)
    b = GenerateStage(_config(tmp_path), now=fixed_now)
    a.run(offline=True, seed=123)
    b.run(offline=True, seed=123)
    assert a.batches == b.batches


def test_single_cadence_matches_full_run(tmp_path, fixed_now):
    full = GenerateStage(_config(tmp_path), now=fixed_now)
    single = PreviewStage(_config(tmp_path, preview_count=3), now=fixed_now)
    full.run(offline=True, seed=7)
    single.run(offline=True, seed=7, cadences=[Cadence.DAILY])
    assert single.batches[Cadence.DAILY] == full.batches[Cadence.DAILY]


def test_seed_falls_back_to_config(tmp_path, fixed_now):
    run = GenerateStage(_config(tmp_path, seed=9), now=fixed_now).run(offline=True)
    assert run.seed == 9


def test_offline_never_sleeps(tmp_path, fixed_now):
    sleeper = _SleepRecorder()
    GenerateStage(_config(tmp_path), now=fixed_now, sleep=sleeper).run(offline=True)
    assert sleeper.calls == []


def test_negative_count_fails_run(tmp_path, fixed_now):
    with pytest.raises(ValueError):
        GenerateStage(_config(tmp_path), now=fixed_now).run(offline=True, count=-1)


# ── Online runs (mocked provider) ─────────────────────────────────────────────


def test_online_sleeps_between_cadences(tmp_path, fixed_now):
    sleeper = _SleepRecorder()
    stage = GenerateStage(
        _config(tmp_path), client=_mock_client(_ok_handler), now=fixed_now, sleep=sleeper
    )
    run = stage.run(seed=1)
    assert run.rows_processed == 9
    assert sleeper.calls == [2.0, 2.0]
    assert stage.snapshot is not None
    assert stage.snapshot.price == 452.0


def test_malformed_spot_price_does_not_abort_run(tmp_path, fixed_now):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/simple/price"):
            return httpx.Response(200, json={"bittensor": {"usd": None}})
        return _ok_handler(request)

    stage = GenerateStage(
        _config(tmp_path), client=_mock_client(handler), now=fixed_now, sleep=_SleepRecorder()
    )
    run = stage.run(seed=1)
    assert run.status == "success"
    assert run.rows_processed == 9
    assert stage.snapshot is None


def test_provider_failure_propagates(tmp_path, fixed_now):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    stage = GenerateStage(
        _config(tmp_path), client=_mock_client(handler), now=fixed_now, sleep=_SleepRecorder()
    )
    with pytest.raises(ProviderError) as exc_info:
        stage.run()
    assert exc_info.value.status_code == 503
    assert not (tmp_path / "out").exists()


# ── Preview ───────────────────────────────────────────────────────────────────


def test_preview_writes_nothing(tmp_path, fixed_now):
    stage = PreviewStage(_config(tmp_path), now=fixed_now)
    run = stage.run(offline=True)
    assert run.pipeline_stage == "preview"
    assert run.files_written == []
    assert not (tmp_path / "out").exists()
    assert all(len(batch) == 5 for batch in stage.batches.values())
