"""Launchpad: provision a domain, its DNS zone, and hosting in one saga."""

__version__ = "0.1.0"
