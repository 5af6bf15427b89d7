"""
Seed data loader.

Seed files map collection -> document id -> document:

    {"teams": {"1": {...}}, "reports": {"1": {...}}}

Timestamps are written relative to load time: a key such as
"created_hours_ago": 26 becomes "created_at": now - 26h. This keeps the
analytics windows (last week / last month) populated whenever the seed runs.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging

from civicsense.utils.firestore_helpers import utc_now

logger = logging.getLogger(__name__)

RELATIVE_SUFFIX = "_hours_ago"


def load_seed(path: str) -> Dict[str, Dict[str, Dict]]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def resolve_relative_times(value: Any, now: datetime) -> Any:
    """Replace every `<name>_hours_ago` key with `<name>_at` timestamps, recursively."""
    if isinstance(value, list):
        return [resolve_relative_times(item, now) for item in value]
    if not isinstance(value, dict):
        return value

    resolved = {}
    for key, item in value.items():
        if key.endswith(RELATIVE_SUFFIX) and isinstance(item, (int, float)):
            resolved[key[:-len(RELATIVE_SUFFIX)] + "_at"] = now - timedelta(hours=item)
        else:
            resolved[key] = resolve_relative_times(item, now)
    return resolved


def write_seed(db, seed: Dict[str, Dict[str, Dict]], apply: bool = True) -> int:
    """
    Write seed documents to the store.

    Args:
        db: Firestore client or the in-memory store
        seed: Parsed seed file
        apply: When False only log what would be written

    Returns:
        Number of documents written (or that would be written)
    """
    now = utc_now()
    count = 0
    for collection, docs in seed.items():
        for doc_id, data in docs.items():
            count += 1
            if not apply:
                logger.info(f"[SEED] Would write {collection}/{doc_id}")
                continue
            db.collection(collection).document(doc_id).set(resolve_relative_times(data, now))
            logger.debug(f"[SEED] Wrote {collection}/{doc_id}")
    return count


def store_is_empty(db, collections) -> bool:
    return all(not db.collection(name).limit(1).get() for name in collections)


def seed_if_empty(db, path: str) -> Optional[int]:
    """
    Load the seed file into an empty store.

    Returns:
        Number of documents written, or None when nothing was seeded
    """
    if not Path(path).is_file():
        logger.warning(f"[SEED] Seed file not found: {path}")
        return None

    seed = load_seed(path)
    if not store_is_empty(db, seed.keys()):
        logger.info("[SEED] Store already has data, skipping seed")
        return None

    written = write_seed(db, seed, apply=True)
    logger.info(f"🌱 Seeded {written} documents from {path}")
    return written
