"""Adapters for external storage: usage counter key-value stores."""

from app.adapters.usage_store import InMemoryUsageStore, SqlUsageStore, UsageStore

__all__ = ["InMemoryUsageStore", "SqlUsageStore", "UsageStore"]
