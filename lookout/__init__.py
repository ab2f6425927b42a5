"""Publish Lookout: file lifecycle tracking for watched import/failed folders."""

__version__ = "0.1.0"
