from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional
import logging
import threading

from partquote.api.deps import get_option_resolver, get_price_engine
from partquote.db.session import get_session
from partquote.services.cart import Cart
from partquote.services.mapping import coerce_configuration
from partquote.services.pricing import PricingMode
from partquote.services.quotes import save_quote
from partquote.utils.currency import format_eur

logger = logging.getLogger(__name__)
router = APIRouter()

# single active editor; the lock only guards against overlapping requests
_cart_lock = threading.Lock()
_cart: Optional[Cart] = None


class ItemEdit(BaseModel):
    field: str
    value: Any = None


class ModeChange(BaseModel):
    mode: PricingMode


def get_cart() -> Cart:
    global _cart
    if _cart is None:
        _cart = Cart(get_price_engine())
    return _cart


def reset_cart() -> None:
    global _cart
    with _cart_lock:
        _cart = None


def cart_summary(cart: Cart) -> Dict[str, Any]:
    total = cart.grand_total()
    return {
        "mode": cart.mode.value,
        "items": [item.model_dump(by_alias=True) for item in cart.items()],
        "grand_total": total,
        "formatted_total": format_eur(total),
    }


@router.get("")
async def show_cart() -> Dict[str, Any]:
    with _cart_lock:
        return cart_summary(get_cart())


@router.post("/items", status_code=201)
async def add_item(payload: Dict[str, Any]) -> Dict[str, Any]:
    resolver = get_option_resolver()
    configuration = resolver.apply_defaults(coerce_configuration(payload))
    with _cart_lock:
        cart = get_cart()
        item = cart.add_item(configuration)
        summary = cart_summary(cart)
    summary["item"] = item.model_dump(by_alias=True)
    summary["notices"] = resolver.notices
    return summary


@router.patch("/items/{item_id}")
async def edit_item(item_id: str, edit: ItemEdit) -> Dict[str, Any]:
    with _cart_lock:
        cart = get_cart()
        if cart.get_item(item_id) is None:
            raise HTTPException(status_code=404, detail="item not found")
        item = cart.edit_item(item_id, edit.field, edit.value)
        if item is None:
            raise HTTPException(status_code=400, detail=f"Unknown field: {edit.field}")
        summary = cart_summary(cart)
    summary["item"] = item.model_dump(by_alias=True)
    return summary


@router.delete("/items/{item_id}")
async def remove_item(item_id: str) -> Dict[str, Any]:
    with _cart_lock:
        cart = get_cart()
        if not cart.remove_item(item_id):
            raise HTTPException(status_code=404, detail="item not found")
        return cart_summary(cart)


@router.put("/mode")
async def change_mode(change: ModeChange) -> Dict[str, Any]:
    with _cart_lock:
        cart = get_cart()
        cart.set_mode(change.mode)
        return cart_summary(cart)


@router.delete("")
async def clear_cart() -> Dict[str, Any]:
    with _cart_lock:
        cart = get_cart()
        cart.clear()
        return cart_summary(cart)


@router.post("/save", status_code=201)
async def save_cart() -> Dict[str, Any]:
    with _cart_lock:
        cart = get_cart()
        if not len(cart):
            raise HTTPException(status_code=400, detail="cart is empty")
        session = get_session()
        try:
            quote = save_quote(session, cart)
            return {"quote_id": quote.id, "item_count": quote.item_count, "total": quote.total}
        finally:
            session.close()
