from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, get_store
from api.schemas import CartAddRequest, CartUpdateRequest
from core.models import CartItem, CartRecord
from core.persistence import CARTS, PRODUCTS, DocumentStore

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _load_items(store: DocumentStore, user_id: str) -> List[CartItem]:
    cart: Optional[CartRecord] = store.find_one(CARTS, {"userId": user_id})
    if not cart:
        return []
    return [i for i in cart.get("items", []) if isinstance(i, dict)]


def _save_items(store: DocumentStore, user_id: str, items: List[CartItem]) -> None:
    cart = store.find_one(CARTS, {"userId": user_id})
    if cart is None:
        store.create(CARTS, {"userId": user_id, "items": items})
    else:
        store.update(CARTS, cart["_id"], {"items": items})


def _cart_view(store: DocumentStore, items: List[CartItem]) -> Dict[str, Any]:
    lines = []
    total_items = 0
    total_price = 0.0
    for item in items:
        product = store.find_by_id(PRODUCTS, item["productId"])
        snapshot = None
        subtotal = 0.0
        if product:
            snapshot = {
                "name": product.get("name"),
                "price": product.get("price", 0),
                "imageUrl": product.get("imageUrl"),
                "countInStock": product.get("countInStock", 0),
            }
            subtotal = round(float(product.get("price", 0)) * item["quantity"], 2)
        lines.append({**item, "product": snapshot, "subtotal": subtotal})
        total_items += item["quantity"]
        total_price += subtotal
    return {"items": lines, "totalItems": total_items, "totalPrice": round(total_price, 2)}


def _check_stock(product: Dict[str, Any], quantity: int) -> None:
    stock = int(product.get("countInStock", 0))
    if quantity > stock:
        raise HTTPException(status_code=400, detail=f"Not enough stock (available: {stock})")


@router.get("", summary="Carrello dell'utente autenticato")
def get_cart(user: Dict[str, Any] = Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    return _cart_view(store, _load_items(store, user["_id"]))


@router.post("")
def add_to_cart(
    body: CartAddRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    product = store.find_by_id(PRODUCTS, body.productId)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    items = _load_items(store, user["_id"])
    for item in items:
        if item["productId"] == body.productId:
            _check_stock(product, item["quantity"] + body.quantity)
            item["quantity"] += body.quantity
            break
    else:
        _check_stock(product, body.quantity)
        items.append({"productId": body.productId, "quantity": body.quantity})
    _save_items(store, user["_id"], items)
    return _cart_view(store, items)


@router.put("/{product_id}")
def update_cart_item(
    product_id: str,
    body: CartUpdateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    items = _load_items(store, user["_id"])
    if not any(i["productId"] == product_id for i in items):
        raise HTTPException(status_code=404, detail="Item not in cart")
    if body.quantity == 0:
        items = [i for i in items if i["productId"] != product_id]
    else:
        product = store.find_by_id(PRODUCTS, product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        _check_stock(product, body.quantity)
        for item in items:
            if item["productId"] == product_id:
                item["quantity"] = body.quantity
    _save_items(store, user["_id"], items)
    return _cart_view(store, items)


@router.delete("/{product_id}")
def remove_from_cart(
    product_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    items = _load_items(store, user["_id"])
    kept = [i for i in items if i["productId"] != product_id]
    if len(kept) == len(items):
        raise HTTPException(status_code=404, detail="Item not in cart")
    _save_items(store, user["_id"], kept)
    return _cart_view(store, kept)
