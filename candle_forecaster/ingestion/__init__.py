"""
Ingestion layer — the price provider client.

Submodules:
  coingecko_client — CoinGecko OHLC candles, spot price and health check

Credential placement (.env, gitignored):
  COINGECKO_API_KEY          — CoinGecko pro key (optional; free tier without)
"""
