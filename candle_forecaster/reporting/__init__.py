"""
candle_forecaster.reporting — prediction file I/O and terminal formatting.

Modules:
  export     — Prediction CSV writer and parser (the miner-facing format).
  formatters — ASCII terminal formatters for the preview and health commands.
"""
