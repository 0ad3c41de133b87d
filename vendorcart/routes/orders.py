# vendorcart/routes/orders.py
from __future__ import annotations
from fastapi import APIRouter, HTTPException, Query
from ..services.orders import get_order, list_partner_orders


router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("")
async def list_orders_endpoint(partnerId: int = Query(...)):
    """
    Return a partner's recent vendor orders.
    We just forward the dictionaries from services.orders.list_partner_orders().
    """
    return await list_partner_orders(partnerId)


@router.get("/{order_id}")
async def get_order_endpoint(order_id: int):
    order = await get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    return order
