#!/usr/bin/env python3
"""
Seed the need catalog from needs_tracker/data/needs_catalog.json, then give
every active need a default learning item.
Safe to run repeatedly: needs already present (same need_key and category)
and needs that already have learning content are skipped.
"""

import sys

from needs_tracker.database import Database
from needs_tracker.constants import DATABASE_URL
from needs_tracker.repositories.need_repository import NeedRepository
from needs_tracker.services.need_catalog_service import (
    seed_catalog, seed_learning_content, load_catalog_entries
)


def seed(database_url):
    print(f"Seeding need catalog: {database_url}")

    database = Database(database_url)
    database.create_all()

    entries = load_catalog_entries()
    db = database.session()
    try:
        inserted = seed_catalog(db, entries)
        print(f"✓ Inserted {inserted} needs ({len(entries) - inserted} already present)")

        learning = seed_learning_content(db)
        print(f"✓ Inserted {learning} learning items")

        print(f"✓ Catalog now holds {NeedRepository.count(db)} needs")
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    database_url = sys.argv[1] if len(sys.argv) > 1 else DATABASE_URL

    try:
        seed(database_url)
    except Exception as e:
        print(f"\n✗ Seeding failed: {e}")
        print(f"\nUsage: python3 seed_needs.py [database_url]")
        sys.exit(1)
