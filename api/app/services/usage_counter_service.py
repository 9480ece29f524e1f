"""Best-effort unique-user counter.

``user:<login>`` marks a user as seen (value: first-seen ISO timestamp);
``global:unique-users`` holds the count. The existence check and the
increment are not atomic: two concurrent first visits by the same login can
count twice. Failures are logged and dropped.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.adapters.usage_store import UsageStore

logger = logging.getLogger(__name__)

GLOBAL_KEY = "global:unique-users"


def user_key(username: str) -> str:
    return f"user:{username.strip().lower()}"


def _as_int(raw: str | None) -> int:
    try:
        return max(0, int(raw or "0"))
    except ValueError:
        return 0


def record_visit(store: UsageStore, username: str) -> bool:
    """Mark ``username`` as seen; return True when it was a first visit."""
    key = user_key(username)
    if store.get(key) is not None:
        return False
    store.put(key, datetime.now(timezone.utc).isoformat())
    store.put(GLOBAL_KEY, str(_as_int(store.get(GLOBAL_KEY)) + 1))
    return True


def record_visit_safely(store: UsageStore, username: str) -> None:
    """Background-task entry point: never raises."""
    try:
        if record_visit(store, username):
            logger.info("usage_new_user username=%s", username.lower())
    except Exception:
        logger.warning("usage_counter_update_failed username=%s", username, exc_info=True)


def unique_users(store: UsageStore) -> int:
    return _as_int(store.get(GLOBAL_KEY))
