"""Affiliate Scout: affiliate program discovery for a catalog of web products."""

__version__ = "1.0.0"
