"""
Candle Forecaster — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Run the stage (generate / preview) or provider call (health).
  5. Report result to stdout; errors go to stderr with exit code 1.

Install and run::

    pip install -e .
    candle-forecaster --help
    candle-forecaster validate-config
    candle-forecaster health
    candle-forecaster preview --cadence hours --count 5
    candle-forecaster generate --output ~/.candles/data
    candle-forecaster generate --cadence days --count 7 --seed 42 --offline
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="candle-forecaster",
    help="Candle Forecaster — hourly, daily and weekly price-direction prediction files.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from candle_forecaster.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config, verbose: bool = False):
    """Set up logging from config; ``--verbose`` forces DEBUG."""
    from candle_forecaster.utils.logging import configure_logging
    configure_logging(config.logging, level_override="DEBUG" if verbose else None)


def _parse_cadences(token: Optional[str]):
    """Map a ``--cadence`` token to a list of cadences (all three if omitted)."""
    from candle_forecaster.taxonomy.cadence import Cadence

    if token is None:
        return list(Cadence)
    try:
        return [Cadence(token.strip().lower())]
    except ValueError:
        valid = ", ".join(c.value for c in Cadence)
        typer.echo(f"[ERROR] Unknown cadence '{token}'. Must be one of: {valid}.", err=True)
        raise typer.Exit(code=1)


def _report_provider_error(exc) -> None:
    typer.echo(f"[ERROR] Price provider request failed: {exc}", err=True)
    if exc.is_auth_error:
        typer.echo(
            "  Hint: check COINGECKO_API_KEY in .env (remove it to use the free tier).",
            err=True,
        )


def _run_stage_or_exit(stage, **kwargs):
    """Run a pipeline stage, mapping expected failures to ``[ERROR]`` + exit 1."""
    from candle_forecaster.ingestion.coingecko_client import ProviderError

    try:
        return stage.run(**kwargs)
    except ProviderError as exc:
        _report_provider_error(exc)
        raise typer.Exit(code=1)
    except (OSError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Coin:             {config.provider.coin_id} ({config.provider.vs_currency})")
    typer.echo(f"  API tier:         {'pro' if config.provider.api_key else 'free'}")
    typer.echo(f"  History days:     {config.provider.history_days}")
    typer.echo(f"  Output dir:       {config.output.resolved_dir()}")
    typer.echo(
        f"  Batch sizes:      hourly={config.forecast.hourly_count}, "
        f"daily={config.forecast.daily_count}, weekly={config.forecast.weekly_count}"
    )
    typer.echo(f"  Seed:             {config.forecast.seed if config.forecast.seed is not None else 'random'}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.redacted_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("generate")
def generate(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory for the CSV files (default: output.output_dir from config).",
    ),
    cadence: Optional[str] = typer.Option(
        None,
        "--cadence",
        help="Only generate one cadence: hours, days or weeks. All three if omitted.",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count",
        help="Predictions per cadence (default: 48 hourly / 30 daily / 12 weekly).",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="RNG seed for reproducible output.",
    ),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Use the built-in fixture candles instead of calling CoinGecko.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Generate prediction CSV files for the hourly, daily and weekly cadences.

    \b
    Output files (one per cadence):
      hourly_predictions.csv   daily_predictions.csv   weekly_predictions.csv

    \b
    Each file:
      timestamp,color,confidence,price
      1735693200,green,0.85,452.31
    """
    from candle_forecaster.pipeline.generate import GenerateStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config, verbose)

    cadences = _parse_cadences(cadence)
    out_dir = Path(output).expanduser() if output else config.output.resolved_dir()

    typer.echo(
        f"generate | cadences={', '.join(c.value for c in cadences)} | "
        f"output={out_dir}{' | offline' if offline else ''}"
    )

    stage = GenerateStage(config=config)
    run = _run_stage_or_exit(
        stage,
        cadences=cadences,
        count=count,
        output_dir=out_dir,
        offline=offline,
        seed=seed,
    )

    for c in cadences:
        typer.echo(f"  {c.label:<7} {len(stage.batches.get(c, [])):>3} prediction(s) → {out_dir / c.filename}")
    if run.fallback_rows:
        typer.echo(
            f"  [WARN] {run.fallback_rows} prediction(s) are randomized fallbacks (no candle data)."
        )

    typer.echo("")
    typer.echo(f"[OK] Generated {run.rows_processed} prediction(s) in {run.duration_s or 0.0:.1f}s.")


@app.command("preview")
def preview(
    cadence: Optional[str] = typer.Option(
        None,
        "--cadence",
        help="Only preview one cadence: hours, days or weeks. All three if omitted.",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count",
        help="Predictions per cadence (default: forecast.preview_count, 5).",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="RNG seed for reproducible output.",
    ),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Use the built-in fixture candles instead of calling CoinGecko.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print a short batch of predictions with their analysis; writes no files."""
    from candle_forecaster.pipeline.generate import PreviewStage
    from candle_forecaster.reporting.formatters import (
        format_market_snapshot,
        format_prediction_preview,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config, verbose)

    cadences = _parse_cadences(cadence)

    stage = PreviewStage(config=config)
    _run_stage_or_exit(stage, cadences=cadences, count=count, offline=offline, seed=seed)

    if not offline:
        typer.echo(format_market_snapshot(stage.snapshot))
    for c in cadences:
        typer.echo("")
        typer.echo(format_prediction_preview(stage.batches.get(c, []), c))

    typer.echo("")
    typer.echo("[OK] Preview complete (no files written).")


@app.command("health")
def health(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Check that the price provider is reachable and report the spot price.

    Exits with code 1 if the provider cannot be reached.
    """
    from candle_forecaster.ingestion.coingecko_client import CoinGeckoClient
    from candle_forecaster.reporting.formatters import format_health_status

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    client = CoinGeckoClient.from_config(config.provider)
    typer.echo(f"health | coin={client.coin_id} | tier={client.tier}")

    status = client.health_check()
    typer.echo(format_health_status(status))

    if not status.ok:
        raise typer.Exit(code=1)
    typer.echo("")
    typer.echo("[OK] Provider reachable.")


if __name__ == "__main__":
    app()
