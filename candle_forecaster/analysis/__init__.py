"""
Trend analysis and price projection.

Modules
-------
indicators  Momentum, moving-average, volume and support/resistance readings.
trend       Fuses indicator signals into a direction and a confidence.
projector   Bounded random-walk price projection biased by the trend.
"""
