#!/usr/bin/env python3
"""
Seed the catalog from a JSON file.

The file is either a list of product entries or an object with an "items"
list. Each entry needs a name and either price_cents or a decimal price;
images may be a list or a single "image" URL. Products whose name already
exists are updated in place instead of duplicated.

Usage:
    python scripts/seed_products.py --file ../public/mock/catalogue.json
"""
import argparse
import json
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from rmerch.db import SessionLocal, init_db
from rmerch.models.product import Product
from rmerch.repositories.product_repo import ProductRepository
from rmerch.utils.logging import get_logger

log = get_logger("rmerch.seed")

DEFAULT_SOURCE = os.path.join(os.path.dirname(__file__), "..", "public", "mock", "catalogue.json")

PLACEHOLDER_IMAGE = "https://placehold.co/600x600?text=R-Merch"


def _normalize_entry(entry):
    """Return a dict of Product fields, or None when the entry has no name."""
    name = entry.get("name") or entry.get("title")
    if not name:
        return None

    if entry.get("price_cents") is not None:
        price_cents = int(entry["price_cents"])
    else:
        # decimal price in currency units
        price_cents = int(round(float(entry.get("price", 0)) * 100))

    images = entry.get("images") or ([entry["image"]] if entry.get("image") else [])

    return {
        "name": name,
        "description": entry.get("description") or "",
        "price_cents": price_cents,
        "stock": int(entry.get("stock", 0) or 0),
        "images": list(images) or [PLACEHOLDER_IMAGE],
        "owner_id": entry.get("owner_id") or entry.get("ownerId"),
        "owner_name": entry.get("owner_name") or entry.get("ownerName"),
        "is_official": bool(entry.get("is_official", entry.get("isOfficial", True))),
    }


def load_entries(path: str):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items", list(data.values()))
    return [e for e in (_normalize_entry(it) for it in data) if e]


def seed(entries) -> int:
    init_db()
    db = SessionLocal()
    repo = ProductRepository(db)
    count = 0
    try:
        for fields in entries:
            if fields["price_cents"] <= 0:
                log.warning("skipping %s: price must be positive", fields["name"])
                continue
            existing = db.query(Product).filter(Product.name == fields["name"]).first()
            if existing:
                repo.update(existing, **fields)
            else:
                repo.create(**fields)
            count += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    log.info("seeded %s products", count)
    return count


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=DEFAULT_SOURCE, help="Path to a product JSON file")
    args = parser.parse_args()
    if not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    seed(load_entries(args.file))
