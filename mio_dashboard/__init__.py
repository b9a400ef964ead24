"""Command-line dashboard for a localization API."""

__version__ = "0.1.0"
