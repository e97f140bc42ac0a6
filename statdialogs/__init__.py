"""Bivariate correlation and two-independent-samples analysis dialogs."""

__version__ = "1.0.0"
