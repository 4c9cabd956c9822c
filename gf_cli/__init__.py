"""Google Fit cumulative distance CLI."""

__version__ = "0.1.0"
