"""
CoinGecko price client — OHLC candles and spot market data for one coin.

API:   https://api.coingecko.com/api/v3          (free tier, no key)
       https://pro-api.coingecko.com/api/v3      (pro tier, key required)
Docs:  https://docs.coingecko.com/reference/introduction

Credential setup (.env, gitignored):
  COINGECKO_API_KEY=your_key_here     # optional; switches to the pro host

Endpoints used:
  GET /coins/{id}                     — coin metadata (connection test)
  GET /coins/{id}/ohlc                — [[ms, open, high, low, close], ...]
  GET /simple/price                   — spot price, market cap, 24h stats

The OHLC endpoint reports no volume, so every candle carries ``volume=0``
and the volume indicator abstains.

Failures of the candle fetch raise ``ProviderError``; the spot price lookup is
informational only and returns ``None`` instead.

Offline mode: ``get_fixture_candles()`` returns a deterministic synthetic
window so the pipeline can run without network access.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

import httpx
from pydantic import ValidationError

from candle_forecaster.config import ProviderConfig
from candle_forecaster.models.candle import Candle

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """The price provider could not deliver usable candles.

    Attributes:
        status_code: HTTP status for non-2xx responses, else ``None``.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


# ── Response types ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MarketSnapshot:
    """Spot market data from ``/simple/price``."""

    price: float
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    change_24h: Optional[float] = None   # percent
    last_updated: Optional[int] = None   # epoch seconds


@dataclass
class HealthStatus:
    """Result of ``CoinGeckoClient.health_check()``."""

    ok: bool
    response_time_ms: Optional[float] = None
    price: Optional[float] = None
    error: Optional[str] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ── Client ─────────────────────────────────────────────────────────────────────

class CoinGeckoClient:
    """HTTP client for one coin's price history on CoinGecko.

    Usage (free tier)::

        client = CoinGeckoClient()
        candles = client.fetch_ohlc(days=30)

    Usage (pro tier — COINGECKO_API_KEY in .env)::

        client = CoinGeckoClient.from_config(config.provider)

    Attributes:
        api_key: Pro API key, or ``None`` for the free tier.
        coin_id: CoinGecko coin id (default ``"bittensor"``, i.e. TAO).
        vs_currency: Quote currency for all prices.
        base_url: Host actually used (pro host when a key is set).
    """

    FREE_BASE_URL: ClassVar[str] = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL: ClassVar[str] = "https://pro-api.coingecko.com/api/v3"
    API_KEY_HEADER: ClassVar[str] = "x-cg-pro-api-key"

    # Synthetic 4-hourly TAO-like closes for offline runs.
    FIXTURE_CLOSES: ClassVar[list[float]] = [
        431.20, 428.75, 433.10, 437.85, 435.40, 440.15,
        444.60, 441.95, 446.30, 449.80, 447.25, 452.70,
    ]
    FIXTURE_START: ClassVar[int] = 1_735_689_600   # 2025-01-01T00:00:00Z
    FIXTURE_STEP: ClassVar[int] = 4 * 3_600

    def __init__(
        self,
        api_key: Optional[str] = None,
        coin_id: str = "bittensor",
        vs_currency: str = "usd",
        timeout_s: float = 30.0,
        base_url: Optional[str] = None,
        pro_base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialise the client.

        Args:
            api_key: Pro API key; ``None`` selects the free host.
            coin_id: CoinGecko coin id.
            vs_currency: Quote currency.
            timeout_s: Per-request timeout in seconds.
            base_url: Override for the free host.
            pro_base_url: Override for the pro host.
            transport: Custom ``httpx`` transport (tests use ``MockTransport``).
        """
        self.api_key = api_key
        self.coin_id = coin_id
        self.vs_currency = vs_currency
        self.timeout_s = timeout_s
        free = base_url or self.FREE_BASE_URL
        pro = pro_base_url or self.PRO_BASE_URL
        self.base_url = pro if api_key else free
        self._transport = transport

        logger.info(
            "CoinGecko client ready (%s tier, coin=%s)",
            "pro" if api_key else "free", coin_id,
        )

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "CoinGeckoClient":
        return cls(
            api_key=config.api_key,
            coin_id=config.coin_id,
            vs_currency=config.vs_currency,
            timeout_s=config.timeout_s,
            base_url=config.base_url,
            pro_base_url=config.pro_base_url,
            transport=transport,
        )

    @property
    def tier(self) -> str:
        return "pro" if self.api_key else "free"

    # ── Real API methods ───────────────────────────────────────────────────────

    def get_coin_info(self) -> dict[str, Any]:
        """Fetch coin metadata; used as a connection test.

        Raises:
            ProviderError: On transport failure or non-2xx status.
        """
        data = self._get_json(
            f"/coins/{self.coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
            },
        )
        if not isinstance(data, dict):
            raise ProviderError(f"Unexpected coin info payload for '{self.coin_id}'.")
        logger.info("Found %s on CoinGecko", str(data.get("symbol", self.coin_id)).upper())
        return data

    def fetch_ohlc(self, days: int = 30) -> list[Candle]:
        """Fetch OHLC candles covering the last ``days`` days.

        CoinGecko picks the bucket size from ``days`` (30 days → 4-hourly).

        Args:
            days: History length in days.

        Returns:
            Candles sorted by ascending timestamp (seconds), ``volume=0``.

        Raises:
            ProviderError: On transport failure, non-2xx status, an empty
                payload, or a malformed row (the whole window is rejected).
        """
        logger.info("Fetching %d day(s) of OHLC data for %s", days, self.coin_id)
        data = self._get_json(
            f"/coins/{self.coin_id}/ohlc",
            params={"vs_currency": self.vs_currency, "days": str(days)},
        )
        if not data:
            raise ProviderError("No OHLC data available")
        if not isinstance(data, list):
            raise ProviderError(f"Unexpected OHLC payload type: {type(data).__name__}")

        candles = self._parse_ohlc(data)
        logger.info("Fetched %d OHLC candle(s)", len(candles))
        return candles

    def get_current_price(self) -> Optional[MarketSnapshot]:
        """Fetch spot market data, or ``None`` when it is unavailable.

        This is informational (logged next to a generation run), so failures
        are logged rather than raised.
        """
        try:
            data = self._get_json(
                "/simple/price",
                params={
                    "ids": self.coin_id,
                    "vs_currencies": self.vs_currency,
                    "include_market_cap": "true",
                    "include_24hr_vol": "true",
                    "include_24hr_change": "true",
                    "include_last_updated_at": "true",
                },
            )
        except ProviderError as exc:
            logger.error("Error fetching current price: %s", exc)
            return None

        coin = data.get(self.coin_id) if isinstance(data, dict) else None
        if not isinstance(coin, dict) or self.vs_currency not in coin:
            logger.error("Price data for '%s' not found in response", self.coin_id)
            return None

        cur = self.vs_currency
        try:
            return MarketSnapshot(
                price=float(coin[cur]),
                market_cap=_opt_float(coin.get(f"{cur}_market_cap")),
                volume_24h=_opt_float(coin.get(f"{cur}_24h_vol")),
                change_24h=_opt_float(coin.get(f"{cur}_24h_change")),
                last_updated=coin.get("last_updated_at"),
            )
        except (TypeError, ValueError) as exc:
            logger.error("Malformed price data for '%s': %s", self.coin_id, exc)
            return None

    def health_check(self) -> HealthStatus:
        """Time a metadata request and read the spot price."""
        start = time.perf_counter()
        try:
            self.get_coin_info()
        except ProviderError as exc:
            return HealthStatus(ok=False, error=str(exc))
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        snapshot = self.get_current_price()
        return HealthStatus(
            ok=True,
            response_time_ms=elapsed_ms,
            price=snapshot.price if snapshot else None,
        )

    # ── HTTP plumbing ──────────────────────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers[self.API_KEY_HEADER] = self.api_key
        return headers

    def _get_json(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(
                headers=self._headers(),
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = client.get(url, params=params)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise ProviderError(
                f"HTTP {status}: {exc.response.text[:200]}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"Invalid JSON from {url}: {exc}") from exc

    # ── Response parsers ───────────────────────────────────────────────────────

    def _parse_ohlc(self, rows: list[Any]) -> list[Candle]:
        """Convert ``[ms, o, h, l, c]`` rows into ascending ``Candle`` objects."""
        candles: list[Candle] = []
        for i, row in enumerate(rows):
            try:
                ms, o, h, l, c = row
                candles.append(
                    Candle(
                        timestamp=int(ms) // 1000,
                        open=float(o),
                        high=float(h),
                        low=float(l),
                        close=float(c),
                        volume=0.0,
                    )
                )
            except (TypeError, ValueError, ValidationError) as exc:
                raise ProviderError(f"Malformed OHLC row #{i}: {row!r} ({exc})") from exc
        candles.sort(key=lambda candle: candle.timestamp)
        return candles

    # ── Fixture / offline mode ─────────────────────────────────────────────────

    def get_fixture_candles(self) -> list[Candle]:
        """Return a deterministic synthetic candle window (no network).

        Highs/lows bracket each open/close by 0.6%; volume is 0 as on the
        real OHLC endpoint.
        """
        candles: list[Candle] = []
        prev_close = self.FIXTURE_CLOSES[0]
        for i, close in enumerate(self.FIXTURE_CLOSES):
            open_ = prev_close
            candles.append(
                Candle(
                    timestamp=self.FIXTURE_START + i * self.FIXTURE_STEP,
                    open=open_,
                    high=round(max(open_, close) * 1.006, 2),
                    low=round(min(open_, close) * 0.994, 2),
                    close=close,
                    volume=0.0,
                )
            )
            prev_close = close
        logger.debug("CoinGeckoClient: returning %d fixture candles", len(candles))
        return candles


def _opt_float(v: Any) -> Optional[float]:
    return None if v is None else float(v)
