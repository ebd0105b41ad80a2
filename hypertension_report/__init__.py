"""Calcium-channel blocker prescribing vs elderly population, heart disease mortality and deprivation by Scottish council area."""

__version__ = "1.0.0"
