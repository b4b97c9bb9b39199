"""Seerr <-> Matrix issue bridge."""

__version__ = "0.1.0"
