"""Rosterarr - cached, failure-tolerant Yahoo Fantasy roster gateway."""

__version__ = "0.1.0"
