"""OTX fetch loops, result writer, settings and console helpers."""

__version__ = "1.4.2"
