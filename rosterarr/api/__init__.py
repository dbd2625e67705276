"""HTTP API for roster lookups."""

from rosterarr.api.app import create_app

__all__ = ["create_app"]
