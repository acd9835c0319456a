from __future__ import annotations

import argparse
import os
from typing import Any, Dict, List

from core.config import get_settings
from core.logging import get_logger
from core.persistence import CATEGORIES, PRODUCTS, USERS, DocumentStore
from core.security import hash_password

log = get_logger("scripts.seed_catalog")

CATEGORIES_SEED: List[Dict[str, Any]] = [
    {"name": "Headphones", "description": "Over-ear, in-ear and wireless headphones"},
    {"name": "Speakers", "description": "Portable and home speakers"},
    {"name": "Accessories", "description": "Cables, cases and adapters"},
]

PRODUCTS_SEED: List[Dict[str, Any]] = [
    {
        "name": "Radeo Studio One",
        "description": "Closed-back studio headphones",
        "price": 149.99,
        "category": "Headphones",
        "brand": "Radeo",
        "imageUrl": "/images/studio-one.jpg",
        "countInStock": 12,
        "rating": 4.6,
        "numReviews": 31,
        "featured": True,
    },
    {
        "name": "Radeo Buds",
        "description": "True wireless earbuds with charging case",
        "price": 79.0,
        "category": "Headphones",
        "brand": "Radeo",
        "imageUrl": "/images/buds.jpg",
        "countInStock": 40,
        "rating": 4.2,
        "numReviews": 88,
        "featured": False,
    },
    {
        "name": "Radeo Boom",
        "description": "Waterproof portable speaker",
        "price": 99.5,
        "category": "Speakers",
        "brand": "Radeo",
        "imageUrl": "/images/boom.jpg",
        "countInStock": 7,
        "rating": 4.4,
        "numReviews": 19,
        "featured": True,
    },
    {
        "name": "USB-C Cable 2m",
        "description": "Braided charging cable",
        "price": 12.0,
        "category": "Accessories",
        "brand": "Radeo",
        "imageUrl": "/images/cable.jpg",
        "countInStock": 150,
        "rating": 4.0,
        "numReviews": 5,
        "featured": False,
    },
]


def seed(store: DocumentStore, admin_email: str, admin_password: str) -> Dict[str, int]:
    """Inserisce categorie, prodotti e utente admin mancanti. Idempotente."""
    created = {"categories": 0, "products": 0, "users": 0}
    for cat in CATEGORIES_SEED:
        if store.find_one(CATEGORIES, {"name": cat["name"]}) is None:
            store.create(CATEGORIES, dict(cat))
            created["categories"] += 1
    for prod in PRODUCTS_SEED:
        if store.find_one(PRODUCTS, {"name": prod["name"]}) is None:
            store.create(PRODUCTS, dict(prod))
            created["products"] += 1
    if store.find_one(USERS, {"email": admin_email}) is None:
        store.create(
            USERS,
            {
                "name": "Admin",
                "email": admin_email,
                "password": hash_password(admin_password),
                "role": "admin",
                "isVerified": True,
            },
        )
        created["users"] += 1
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Popola il catalogo con dati di esempio")
    parser.add_argument("--data-dir", default=None, help="Override di SHOP_DATA_DIR")
    parser.add_argument("--admin-email", default=os.environ.get("SEED_ADMIN_EMAIL", "admin@radeo.local"))
    parser.add_argument("--admin-password", default=os.environ.get("SEED_ADMIN_PASSWORD", "admin123"))
    args = parser.parse_args()

    try:
        settings = get_settings()
    except ValueError as e:
        log.error("Config non valida: %s", e)
        return

    store = DocumentStore(args.data_dir or settings.data_dir)
    created = seed(store, args.admin_email.strip().lower(), args.admin_password)
    log.info("Seed completato in %s: %s", store.data_dir, created)


if __name__ == "__main__":
    main()
