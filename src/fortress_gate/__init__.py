"""Fortress Gate: authentication gateway and reverse proxy for the Fortress API."""

__version__ = "0.1.0"
