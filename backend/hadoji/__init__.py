"""Heikin-Ashi doji breakout signal engine for Delta Exchange."""

__version__ = "0.1.0"
