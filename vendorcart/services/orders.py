# vendorcart/services/orders.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import asyncpg

from ..db import get_pool
from ..schemas.cart import OrderConfirmation, OrderSubmission
from .cart import clear_vendor_items
from .checkout import OrderSink
from .errors import TransportError
from .proofs import discard_proof, store_proof


def _order_row_to_dict(row) -> Dict[str, Any]:
    """Convert a flat Postgres order row into the nested shape routes expect."""
    items = row["items"] if "items" in row.keys() else []
    if isinstance(items, str):
        items = json.loads(items)
    return {
        "id": row["id"],
        "partnerId": row["partner_id"],
        "vendorId": row["company_id"],
        "status": row["status"],
        "paymentMethod": row["payment_method"],
        "paymentScreenshot": row["payment_screenshot"],
        "shipping": {
            "city": row["city"],
            "province": row["province"],
            "address": row["address"],
            "shippingAddress": row["shipping_address"],
        },
        "items": items or [],
        "total": float(row["total"]),
        "createdAt": row["created_at"].isoformat() if row["created_at"] else None,
    }


async def persist_order(partner_id: int, submission: OrderSubmission) -> OrderConfirmation:
    """
    Write one vendor's order (order row + item rows) in a single transaction
    and drop that vendor's lines from the partner's cart.
    """
    screenshot: Optional[str] = None
    if submission.proof is not None:
        screenshot = await store_proof(partner_id, submission.vendor_id, submission.proof)

    shipping = submission.shipping
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                order_id = await conn.fetchval(
                    """
                    INSERT INTO partner_orders
                        (partner_id, company_id, city, province, address, shipping_address,
                         payment_method, payment_screenshot, total, status)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, 'pending')
                    RETURNING id
                    """,
                    partner_id,
                    submission.vendor_id,
                    shipping.city.strip(),
                    shipping.province.strip(),
                    shipping.address.strip(),
                    shipping.shipping_address or shipping.address.strip(),
                    submission.payment_method.value,
                    screenshot,
                    submission.total,
                )
                await conn.executemany(
                    """
                    INSERT INTO partner_order_items
                        (order_id, product_id, variant_id, quantity, price,
                         original_price, discount_percentage)
                    VALUES ($1, $2, $3, $4, $5, $6, $7)
                    """,
                    [
                        (
                            order_id,
                            line.item.product.id,
                            line.item.variant.id,
                            line.item.quantity,
                            line.unit_price,
                            line.base_price,
                            line.discount.percentage if line.discount else None,
                        )
                        for line in submission.lines
                    ],
                )
                await clear_vendor_items(conn, partner_id, submission.vendor_id)
    except (asyncpg.PostgresError, OSError) as e:
        if screenshot is not None:
            await discard_proof(screenshot)
        raise TransportError(f"Could not save order: {e}", vendor_id=submission.vendor_id) from e

    return OrderConfirmation(vendor_id=submission.vendor_id, order_id=order_id, total=submission.total)


def order_sink_for(partner_id: int) -> OrderSink:
    async def _sink(submission: OrderSubmission) -> OrderConfirmation:
        return await persist_order(partner_id, submission)
    return _sink


_ORDER_SELECT = """
    SELECT o.*,
           COALESCE(
             (SELECT json_agg(json_build_object(
                        'productId', i.product_id,
                        'variantId', i.variant_id,
                        'quantity', i.quantity,
                        'price', i.price,
                        'originalPrice', i.original_price,
                        'discountPercentage', i.discount_percentage))
              FROM partner_order_items i WHERE i.order_id = o.id),
             '[]') AS items
    FROM partner_orders o
"""


async def get_order(order_id: int) -> Optional[Dict[str, Any]]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(_ORDER_SELECT + " WHERE o.id = $1", order_id)
    if not row:
        return None
    return _order_row_to_dict(row)


async def list_partner_orders(partner_id: int, limit: int = 200) -> List[Dict[str, Any]]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            _ORDER_SELECT + " WHERE o.partner_id = $1 ORDER BY o.created_at DESC LIMIT $2",
            partner_id,
            limit,
        )
    return [_order_row_to_dict(r) for r in rows]
