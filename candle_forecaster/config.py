"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``CANDLE_FORECASTER_*`` prefix, plus
                                    ``COINGECKO_API_KEY``

Entry point: ``load_config(config_path=None) -> AppConfig``

The numeric thresholds of the trend analyzer and price projector live in
``TrendConfig`` and ``ProjectionConfig``.  They are policy knobs rather than
values fitted to data, so they are kept out of the algorithm modules and can be
tuned (or overridden in tests) without touching control flow.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from candle_forecaster.taxonomy.cadence import Cadence

# ── Sub-config models ─────────────────────────────────────────────────────────


class ProviderConfig(BaseModel):
    """CoinGecko price provider settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://api.coingecko.com/api/v3"
    pro_base_url: str = "https://pro-api.coingecko.com/api/v3"
    coin_id: str = "bittensor"
    vs_currency: str = "usd"
    history_days: int = 30
    timeout_s: float = 30.0
    request_delay_s: float = 2.0   # free tier allows 10-30 requests/minute
    api_key: Optional[str] = None

    @field_validator("history_days")
    @classmethod
    def validate_history_days(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"history_days must be >= 1, got {v}.")
        return v

    @field_validator("timeout_s", "request_delay_s")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Timing values must be non-negative, got {v}.")
        return v


class OutputConfig(BaseModel):
    """Where prediction CSV files are written."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "~/.candles/data"

    def resolved_dir(self) -> Path:
        return Path(self.output_dir).expanduser()


class ForecastConfig(BaseModel):
    """Batch sizes per cadence and the optional RNG seed."""

    model_config = ConfigDict(frozen=True)

    hourly_count: int = 48
    daily_count: int = 30
    weekly_count: int = 12
    preview_count: int = 5
    seed: Optional[int] = None

    @field_validator("hourly_count", "daily_count", "weekly_count", "preview_count")
    @classmethod
    def validate_count(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Batch counts must be non-negative, got {v}.")
        return v

    def count_for(self, cadence: Cadence) -> int:
        """Return the full-generation batch size configured for ``cadence``."""
        return {
            Cadence.HOURLY: self.hourly_count,
            Cadence.DAILY:  self.daily_count,
            Cadence.WEEKLY: self.weekly_count,
        }[cadence]


class TrendConfig(BaseModel):
    """Indicator thresholds and confidence calibration for the trend analyzer.

    Defaults: a 10-candle window, 3/5 moving averages, ±10% volume bands, a 2%
    support/resistance proximity band and a confidence clamped to [0.55, 0.95].
    """

    model_config = ConfigDict(frozen=True)

    min_candles: int = 3
    window_size: int = 10
    short_ma_period: int = 3
    long_ma_period: int = 5
    volume_lookback: int = 3
    volume_increase_ratio: float = 1.10
    volume_decrease_ratio: float = 0.90
    sr_proximity: float = 0.02
    confidence_base: float = 0.6
    agreement_weight: float = 0.25
    volatility_weight: float = 0.15
    min_volatility_factor: float = 0.1
    confidence_floor: float = 0.55
    confidence_ceiling: float = 0.95
    degenerate_confidence: float = 0.5

    @field_validator("min_candles")
    @classmethod
    def validate_min_candles(cls, v: int) -> int:
        # Momentum needs at least one close-to-close delta.
        if v < 2:
            raise ValueError(f"min_candles must be >= 2, got {v}.")
        return v

    @field_validator("confidence_floor", "confidence_ceiling", "degenerate_confidence")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Confidence bounds must be in [0.0, 1.0], got {v}.")
        return v

    @model_validator(mode="after")
    def validate_consistency(self) -> "TrendConfig":
        if self.confidence_floor > self.confidence_ceiling:
            raise ValueError(
                f"confidence_floor ({self.confidence_floor}) must be <= "
                f"confidence_ceiling ({self.confidence_ceiling})."
            )
        if self.short_ma_period > self.long_ma_period:
            raise ValueError(
                f"short_ma_period ({self.short_ma_period}) must be <= "
                f"long_ma_period ({self.long_ma_period})."
            )
        if self.volume_decrease_ratio > self.volume_increase_ratio:
            raise ValueError(
                "volume_decrease_ratio must be <= volume_increase_ratio."
            )
        if self.window_size < self.min_candles:
            raise ValueError(
                f"window_size ({self.window_size}) must be >= min_candles ({self.min_candles})."
            )
        return self


class ProjectionConfig(BaseModel):
    """Component weights of the price projection and the fallback ranges."""

    model_config = ConfigDict(frozen=True)

    random_weight: float = 0.4
    trend_weight: float = 0.4
    confidence_weight: float = 0.2
    trend_strength_scale: float = 15.0
    price_floor: float = 0.1
    fallback_price_low: float = 45.0
    fallback_price_span: float = 10.0
    fallback_confidence_low: float = 0.5
    fallback_confidence_span: float = 0.3

    @field_validator("price_floor")
    @classmethod
    def validate_price_floor(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"price_floor must be positive, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_fallback_ranges(self) -> "ProjectionConfig":
        if self.fallback_price_low <= 0 or self.fallback_price_span <= 0:
            raise ValueError("Fallback price range must be positive.")
        upper = self.fallback_confidence_low + self.fallback_confidence_span
        if self.fallback_confidence_low < 0 or upper > 1.0:
            raise ValueError(
                f"Fallback confidence range [{self.fallback_confidence_low}, {upper}) "
                "must lie within [0.0, 1.0]."
            )
        return self


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    CLI commands and the generate stage receive an ``AppConfig`` instance.
    It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderConfig = ProviderConfig()
    output: OutputConfig = OutputConfig()
    forecast: ForecastConfig = ForecastConfig()
    trend: TrendConfig = TrendConfig()
    projection: ProjectionConfig = ProjectionConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False

    def redacted_dump(self) -> dict[str, Any]:
        """JSON-safe ``model_dump()`` with the provider API key masked."""
        dumped = self.model_dump(mode="json")
        if dumped["provider"].get("api_key"):
            dumped["provider"]["api_key"] = "***"
        return dumped


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      COINGECKO_API_KEY                → raw["provider"]["api_key"]
      CANDLE_FORECASTER_OUTPUT_DIR     → raw["output"]["output_dir"]
      CANDLE_FORECASTER_LOG_LEVEL      → raw["logging"]["level"]
      CANDLE_FORECASTER_SEED           → raw["forecast"]["seed"]
      CANDLE_FORECASTER_DEBUG          → raw["debug"]
    """
    if api_key := os.environ.get("COINGECKO_API_KEY"):
        raw.setdefault("provider", {})["api_key"] = api_key

    if output_dir := os.environ.get("CANDLE_FORECASTER_OUTPUT_DIR"):
        raw.setdefault("output", {})["output_dir"] = output_dir

    if log_level := os.environ.get("CANDLE_FORECASTER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if seed := os.environ.get("CANDLE_FORECASTER_SEED"):
        raw.setdefault("forecast", {})["seed"] = int(seed)

    if debug := os.environ.get("CANDLE_FORECASTER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        provider=ProviderConfig(**raw.get("provider", {})),
        output=OutputConfig(**raw.get("output", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        trend=TrendConfig(**raw.get("trend", {})),
        projection=ProjectionConfig(**raw.get("projection", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
