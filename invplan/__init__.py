"""Inventory forecasting and reorder optimization engine."""

__version__ = "0.1.0"
