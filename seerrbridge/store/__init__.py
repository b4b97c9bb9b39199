"""Persistent issue <-> Matrix thread correlation (SQLite)."""

from seerrbridge.store.correlation_store import CorrelationStore

__all__ = ["CorrelationStore"]
