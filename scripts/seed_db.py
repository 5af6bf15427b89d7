"""
Seed script for the CivicSense in-memory store or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Use another seed file: python scripts/seed_db.py --apply --path other_seed.json
  - Force the in-memory store even if Firebase is configured: python scripts/seed_db.py --apply --force-mock

Behavior:
  - Loads `db_seed.json` from the repo root (or --path).
  - Gets the store via `civicsense.config.firebase.get_db()`, which returns the
    in-memory store or real Firestore depending on settings.
  - Writes each collection/document, overwriting documents with the same id.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` is set
and `USE_MOCK_DB=false` in `.env`. Seeding the in-memory store from this script
only lasts for the lifetime of the script; the API seeds itself on startup.
"""

import argparse
import logging
import os

from civicsense.config.firebase import get_db, get_database_mode
from civicsense.core.settings import settings
from civicsense.services.seed_service import load_seed, write_seed


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--path", default=settings.SEED_PATH, help="Seed file to load")
    parser.add_argument("--force-mock", action="store_true", help="Force use of the in-memory store")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(message)s")

    if not os.path.exists(args.path):
        print(f"Seed file not found: {args.path}")
        return

    seed = load_seed(args.path)

    if args.force_mock:
        print("Forcing in-memory store for this run.")
        settings.USE_MOCK_DB = True

    db = get_db()
    print(f"Target store: {get_database_mode()}")

    count = write_seed(db, seed, apply=args.apply)

    if args.apply:
        print(f"Seeding completed: {count} documents written.")
    else:
        print(f"Dry run complete ({count} documents). Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
