"""Stellar: resilient artist metadata aggregation across music providers."""

__version__ = "0.1.0"
