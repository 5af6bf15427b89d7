"""
Firestore query and value helpers shared by the services.

NOTE: where() takes positional arguments so the same call works against
firebase_admin queries and the in-memory store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "status", "==", "reported")
        query = where_filter(query, "priority", "==", "high")
    """
    return query.where(field_path, op_string, value)


def snapshot_to_dict(doc) -> Optional[Dict[str, Any]]:
    """Convert a document snapshot to a dict that carries its document ID."""
    if not doc.exists:
        return None
    data = doc.to_dict()
    data["id"] = doc.id
    return data


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value) -> Optional[datetime]:
    """
    Parse various timestamp formats to timezone-aware datetime (UTC).

    All datetimes must be timezone-aware to prevent comparison bugs.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    # Firestore Timestamp / DatetimeWithNanoseconds interface
    if hasattr(value, "timestamp"):
        try:
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (TypeError, ValueError, OSError):
            return None
    return None
