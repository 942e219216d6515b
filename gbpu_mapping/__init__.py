"""Grizzly bear mortality and population data → GBPU density map."""

__version__ = "0.1.0"
