"""Scheduler service package.

- store.py: snapshot file persistence (JSON or YAML)
"""
from .store import EventStore

__all__ = ["EventStore"]
