# vendorcart/routes/cart.py
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from ..schemas.views import cart_view
from ..services.cart import (
    fetch_cart,
    cart_count,
    add_item,
    update_quantity,
    remove_item,
)
from ..services.grouping import group_by_vendor

router = APIRouter(prefix="/cart", tags=["cart"])


# ---- Pydantic models ---------------------------------------------------------
class CartItemIn(BaseModel):
    partnerId: int
    productId: int
    variantId: int
    # validated in services.cart.parse_quantity so "2" and 2.0 are accepted
    quantity: int | float | str = 1


class QuantityIn(BaseModel):
    partnerId: int
    quantity: int | float | str = Field(...)


# ---- Routes ------------------------------------------------------------------
@router.get("")
async def get_cart(
    partnerId: int = Query(...),
    country: Optional[str] = Query(None),
):
    """Partner cart split per vendor, priced with the applicable discounts."""
    items = await fetch_cart(partnerId, country=country)
    return cart_view(group_by_vendor(items))


@router.get("/count")
async def get_cart_count(partnerId: int = Query(...)):
    return {"count": await cart_count(partnerId)}


@router.post("/items")
async def add_cart_item(body: CartItemIn):
    try:
        return await add_item(body.partnerId, body.productId, body.variantId, body.quantity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/items/{item_id}")
async def update_cart_item(item_id: int, body: QuantityIn):
    try:
        found = await update_quantity(body.partnerId, item_id, body.quantity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not found:
        raise HTTPException(status_code=404, detail="cart item not found")
    return {"ok": True}


@router.delete("/items/{item_id}")
async def delete_cart_item(item_id: int, partnerId: int = Query(...)):
    if not await remove_item(partnerId, item_id):
        raise HTTPException(status_code=404, detail="cart item not found")
    return {"ok": True}
