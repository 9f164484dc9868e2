"""Non-destructive layered photo editing engine."""

__version__ = "0.3.0"
