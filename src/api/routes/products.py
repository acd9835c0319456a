from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_store, require_admin
from api.schemas import ProductCreate, ProductUpdate
from core.models import ProductRecord
from core.persistence import CATEGORIES, PRODUCTS, DocumentStore

router = APIRouter(prefix="/api/products", tags=["products"])


def _get_or_404(store: DocumentStore, product_id: str) -> ProductRecord:
    product = store.find_by_id(PRODUCTS, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _ensure_category(store: DocumentStore, name: str) -> None:
    if not store.find_one(CATEGORIES, {"name": name}):
        raise HTTPException(status_code=400, detail=f"Category {name!r} does not exist")


@router.get("", summary="Lista prodotti con filtri opzionali")
def list_products(
    category: Optional[str] = Query(None, description="Nome categoria"),
    featured: Optional[bool] = Query(None, description="Solo prodotti in evidenza"),
    keyword: Optional[str] = Query(None, description="Ricerca case-insensitive su nome e brand"),
    store: DocumentStore = Depends(get_store),
):
    """
    Ritorna i prodotti ordinati per data di creazione (piu' recenti prima).
    """
    flt: Dict[str, Any] = {}
    if category is not None:
        flt["category"] = category
    if featured is not None:
        flt["featured"] = featured
    items = store.find(PRODUCTS, flt, sort=[("createdAt", -1)])
    if keyword:
        kw = keyword.strip().lower()
        items = [
            p for p in items
            if kw in str(p.get("name", "")).lower() or kw in str(p.get("brand", "")).lower()
        ]
    return items


@router.get("/{product_id}", summary="Dettaglio prodotto")
def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    return _get_or_404(store, product_id)


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_product(body: ProductCreate, store: DocumentStore = Depends(get_store)):
    _ensure_category(store, body.category)
    return store.create(PRODUCTS, body.model_dump())


@router.put("/{product_id}", dependencies=[Depends(require_admin)])
def update_product(product_id: str, body: ProductUpdate, store: DocumentStore = Depends(get_store)):
    _get_or_404(store, product_id)
    changes = body.changes()
    if "category" in changes:
        _ensure_category(store, changes["category"])
    return store.update(PRODUCTS, product_id, changes)


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: str, store: DocumentStore = Depends(get_store)):
    _get_or_404(store, product_id)
    store.delete(PRODUCTS, product_id)
    return {"message": "Product removed"}
