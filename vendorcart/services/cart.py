# vendorcart/services/cart.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..db import get_pool
from ..schemas.cart import Discount, LineItem, Product, Variant, Vendor

logger = logging.getLogger(__name__)


def parse_quantity(value: Any) -> int:
    """Quantities reaching the pricing code are always integers >= 1."""
    if isinstance(value, bool):
        raise ValueError("quantity must be a whole number")
    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            raise ValueError("quantity must be a whole number")
        value = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError("quantity must be a whole number")
        value = int(value)
    elif not isinstance(value, int):
        raise ValueError("quantity must be a whole number")
    if value < 1:
        raise ValueError("quantity must be at least 1")
    return value


def _row_to_discount(row) -> Discount:
    return Discount.from_row(
        id=row["id"],
        name=row["name"],
        percentage=float(row["percentage"]),
        company_id=row["company_id"],
        product_id=row["product_id"],
        variant_id=row["variant_id"],
        is_active=row["is_active"],
        start_date=row["start_date"],
        end_date=row["end_date"],
    )


def _visible_to(d: Discount, product_id: int, variant_id: int, vendor_id: Optional[int]) -> bool:
    if d.variant_id is not None:
        return d.variant_id == variant_id
    if d.product_id is not None:
        return d.product_id == product_id and d.vendor_id is None
    return vendor_id is not None and d.vendor_id == vendor_id


def _row_to_line(row, discounts: List[Discount]) -> LineItem:
    vendor = Vendor(id=row["company_id"], name=row["company_name"] or "Unknown vendor")
    company_price = row["company_price"]
    return LineItem(
        id=row["id"],
        quantity=row["quantity"],
        product=Product(id=row["product_id"], name=row["product_name"], vendor=vendor),
        variant=Variant(
            id=row["variant_id"],
            packing=row["packing_volume"],
            company_price=float(company_price) if company_price is not None else None,
            customer_price=float(row["customer_price"]),
        ),
        discounts=tuple(
            d for d in discounts
            if _visible_to(d, row["product_id"], row["variant_id"], row["company_id"])
        ),
    )


# --- READ ---------------------------------------------------------------------
async def fetch_cart(partner_id: int, country: Optional[str] = None) -> List[LineItem]:
    """
    Cart lines of a partner with product, variant, vendor and the discounts
    currently inside their validity window. `country` narrows to vendors of
    that country ("all" or empty means no filter).
    """
    country = None if not country or country == "all" else country
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            """
            SELECT ci.id, ci.quantity,
                   p.id AS product_id, p.product_name,
                   c.id AS company_id, c.company_name,
                   v.id AS variant_id, v.packing_volume,
                   v.company_price, v.customer_price
            FROM partner_cart_items ci
            JOIN products p          ON p.id = ci.product_id
            JOIN product_variants v  ON v.id = ci.variant_id
            LEFT JOIN companies c    ON c.id = p.company_id
            WHERE ci.partner_id = $1
              AND ($2::text IS NULL OR c.country = $2)
            ORDER BY ci.created_at DESC, ci.id DESC
            """,
            partner_id,
            country,
        )
        if not rows:
            return []
        discount_rows = await conn.fetch(
            """
            SELECT * FROM discounts
            WHERE is_active
              AND start_date <= NOW() AND end_date >= NOW()
              AND (variant_id = ANY($1::int[])
                   OR product_id = ANY($2::int[])
                   OR (company_id = ANY($3::int[]) AND product_id IS NULL AND variant_id IS NULL))
            """,
            list({r["variant_id"] for r in rows}),
            list({r["product_id"] for r in rows}),
            list({r["company_id"] for r in rows if r["company_id"] is not None}),
        )
    discounts = [_row_to_discount(r) for r in discount_rows]
    return [_row_to_line(r, discounts) for r in rows]


async def cart_count(partner_id: int) -> int:
    pool = await get_pool()
    async with pool.acquire() as conn:
        total = await conn.fetchval(
            "SELECT COALESCE(SUM(quantity), 0) FROM partner_cart_items WHERE partner_id = $1",
            partner_id,
        )
    return int(total or 0)


# --- WRITE --------------------------------------------------------------------
async def add_item(partner_id: int, product_id: int, variant_id: int, quantity: Any = 1) -> Dict[str, Any]:
    qty = parse_quantity(quantity)
    pool = await get_pool()
    async with pool.acquire() as conn:
        owner = await conn.fetchval(
            "SELECT product_id FROM product_variants WHERE id = $1", variant_id
        )
        if owner is None or owner != product_id:
            raise ValueError("variant does not belong to product")
        row = await conn.fetchrow(
            """
            INSERT INTO partner_cart_items (partner_id, product_id, variant_id, quantity)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (partner_id, variant_id)
            DO UPDATE SET quantity = partner_cart_items.quantity + EXCLUDED.quantity
            RETURNING id, quantity
            """,
            partner_id, product_id, variant_id, qty,
        )
    logger.info("partner %s cart: variant %s now x%s", partner_id, variant_id, row["quantity"])
    return {"id": row["id"], "quantity": row["quantity"]}


async def update_quantity(partner_id: int, item_id: int, quantity: Any) -> bool:
    qty = parse_quantity(quantity)
    pool = await get_pool()
    async with pool.acquire() as conn:
        result = await conn.execute(
            "UPDATE partner_cart_items SET quantity = $3 WHERE id = $1 AND partner_id = $2",
            item_id, partner_id, qty,
        )
    return result.endswith(" 1")


async def remove_item(partner_id: int, item_id: int) -> bool:
    pool = await get_pool()
    async with pool.acquire() as conn:
        result = await conn.execute(
            "DELETE FROM partner_cart_items WHERE id = $1 AND partner_id = $2",
            item_id, partner_id,
        )
    return result.endswith(" 1")


async def clear_vendor_items(conn, partner_id: int, vendor_id: Optional[int]) -> None:
    """Drop the partner's cart lines owned by one vendor (inside the caller's transaction)."""
    await conn.execute(
        """
        DELETE FROM partner_cart_items ci
        USING products p
        WHERE ci.product_id = p.id
          AND ci.partner_id = $1
          AND p.company_id IS NOT DISTINCT FROM $2
        """,
        partner_id, vendor_id,
    )
