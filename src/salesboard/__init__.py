"""salesboard - weekly report aggregation for the sales operations dashboard."""

__version__ = "0.3.0"
