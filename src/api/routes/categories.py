from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_store, require_admin
from api.schemas import CategoryCreate, CategoryUpdate
from core.models import CategoryRecord
from core.logging import get_logger
from core.persistence import CATEGORIES, PRODUCTS, DocumentStore, DuplicateKeyError

router = APIRouter(prefix="/api/categories", tags=["categories"])
logger = get_logger("api.routes.categories")


def _with_product_count(store: DocumentStore, category: CategoryRecord) -> Dict[str, Any]:
    return {
        "_id": category["_id"],
        "name": category.get("name"),
        "description": category.get("description"),
        "imageUrl": category.get("imageUrl"),
        "productCount": store.count(PRODUCTS, {"category": category.get("name")}),
        "createdAt": category.get("createdAt"),
        "updatedAt": category.get("updatedAt"),
    }


def _get_or_404(store: DocumentStore, category_id: str) -> CategoryRecord:
    category = store.find_by_id(CATEGORIES, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("", summary="Lista categorie (ordinate per nome) con numero prodotti")
def list_categories(store: DocumentStore = Depends(get_store)):
    categories = store.find(CATEGORIES, {}, sort=[("name", 1)])
    return [_with_product_count(store, c) for c in categories]


@router.get("/{category_id}", summary="Dettaglio categoria")
def get_category(category_id: str, store: DocumentStore = Depends(get_store)):
    return _with_product_count(store, _get_or_404(store, category_id))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_category(body: CategoryCreate, store: DocumentStore = Depends(get_store)):
    if store.find_one(CATEGORIES, {"name": body.name}):
        raise HTTPException(status_code=400, detail="Category already exists")
    try:
        return store.create(CATEGORIES, body.model_dump())
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Category already exists")


@router.put("/{category_id}", dependencies=[Depends(require_admin)])
def update_category(category_id: str, body: CategoryUpdate, store: DocumentStore = Depends(get_store)):
    category = _get_or_404(store, category_id)
    changes = body.changes()

    new_name = changes.get("name")
    old_name = category.get("name")
    if new_name is not None and new_name != old_name:
        if store.find_one(CATEGORIES, {"name": new_name}):
            raise HTTPException(status_code=400, detail="Category with that name already exists")
    try:
        updated = store.update(CATEGORIES, category_id, changes)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Category with that name already exists")

    # i prodotti referenziano la categoria per nome
    if new_name is not None and new_name != old_name:
        moved = store.find(PRODUCTS, {"category": old_name})
        for product in moved:
            store.update(PRODUCTS, product["_id"], {"category": new_name})
        logger.info("Category renamed %r -> %r (%s products moved)", old_name, new_name, len(moved))
    return updated


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
def delete_category(category_id: str, store: DocumentStore = Depends(get_store)):
    category = _get_or_404(store, category_id)
    in_use = store.count(PRODUCTS, {"category": category.get("name")})
    if in_use > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category. {in_use} products are using this category.",
        )
    store.delete(CATEGORIES, category_id)
    return {"message": "Category removed"}
