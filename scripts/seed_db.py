"""
Seed the reference collections (wards, workers) in Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to the configured Firestore: python scripts/seed_db.py --apply
  - Other seed file: python scripts/seed_db.py --file ./seed/wards.json --apply

Seed file format:
  {"wards": {"<24-hex id>": {"name": "Kothrud"}, ...},
   "workers": {"<24-hex id>": {"name": "Ramesh"}, ...}}

Only the reference collections may be seeded; issues, budgets, citizens and
accounts are created through the API so their derived fields stay consistent.
Set FIRESTORE_EMULATOR_HOST to seed a local emulator.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List

from app.config.firebase import get_db
from app.utils.firestore_helpers import WARDS, WORKERS, is_valid_id, utcnow

logger = logging.getLogger("seed_db")

SEEDABLE = (WARDS, WORKERS)


def load_seed(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_seed(seed: Dict[str, Dict[str, Any]]) -> List[str]:
    """Return a list of problems; empty when the seed can be written."""
    problems = []
    for collection, docs in seed.items():
        if collection not in SEEDABLE:
            problems.append(f"Collection '{collection}' cannot be seeded (allowed: {', '.join(SEEDABLE)})")
            continue
        for doc_id, data in docs.items():
            if not is_valid_id(doc_id):
                problems.append(f"{collection}/{doc_id}: id must be 24 hex characters")
            if not isinstance(data, dict) or not data.get("name"):
                problems.append(f"{collection}/{doc_id}: a 'name' field is required")
    return problems


def write_to_db(db: Any, seed: dict, apply: bool = False) -> int:
    written = 0
    for collection, docs in seed.items():
        for doc_id, data in docs.items():
            logger.info(f"Preparing: {collection}/{doc_id}")
            if not apply:
                continue
            now = utcnow()
            db.collection(collection).document(doc_id).set({**data, "createdAt": now, "updatedAt": now})
            written += 1
            logger.info(f"Wrote: {collection}/{doc_id}")
    return written


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed JSON file")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        logger.error(f"Seed file not found: {args.file}")
        return 1

    seed = load_seed(args.file)
    problems = validate_seed(seed)
    if problems:
        for problem in problems:
            logger.error(problem)
        return 1

    db = get_db() if args.apply else None
    written = write_to_db(db, seed, apply=args.apply)
    if args.apply:
        logger.info(f"Seeded {written} document(s)")
    else:
        logger.info("Dry run complete. Re-run with --apply to write.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
