# vendorcart/services/discounts.py
"""
Discount scope resolution.

A line item can see discounts at three scopes. The most specific scope that
has any candidate wins outright (variant > product > vendor) and the highest
percentage wins inside that scope. Scopes are never mixed or stacked.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..schemas.cart import Discount, DiscountScope, LineItem


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _best(candidates: List[Discount]) -> Optional[Discount]:
    # equal percentages: lowest id wins so the choice never depends on row order
    if not candidates:
        return None
    return min(candidates, key=lambda d: (-d.percentage, d.id))


def _variant_tier(item: LineItem, candidates: List[Discount]) -> List[Discount]:
    return [
        d for d in candidates
        if d.scope == DiscountScope.VARIANT and d.variant_id == item.variant.id
    ]


def _product_tier(item: LineItem, candidates: List[Discount]) -> List[Discount]:
    return [
        d for d in candidates
        if d.scope == DiscountScope.PRODUCT
        and d.product_id == item.product.id
        # rows that also name a vendor belong to neither tier
        and d.vendor_id is None
    ]


def _vendor_tier(item: LineItem, candidates: List[Discount]) -> List[Discount]:
    vendor_id = item.product.vendor.id
    if vendor_id is None:
        return []
    return [
        d for d in candidates
        if d.scope == DiscountScope.VENDOR and d.vendor_id == vendor_id
    ]


_TIERS = (_variant_tier, _product_tier, _vendor_tier)


def resolve(item: LineItem, candidates: Optional[Iterable[Discount]] = None) -> Optional[Discount]:
    """
    Return the single discount that applies to `item`, or None.

    `candidates` defaults to the discounts attached to the item. They are
    expected to be time-window filtered already; inactive ones are ignored.
    """
    pool = [d for d in (item.discounts if candidates is None else candidates) if d.is_active]
    for tier in _TIERS:
        chosen = _best(tier(item, pool))
        if chosen is not None:
            return chosen
    return None


# --- WINDOW HELPERS -----------------------------------------------------------
def is_discount_active(discount: Discount, now: Optional[datetime] = None) -> bool:
    if not discount.is_active:
        return False
    now = now or _now()
    if discount.start_date is not None and now < discount.start_date:
        return False
    if discount.end_date is not None and now > discount.end_date:
        return False
    return True


def eligible(candidates: Iterable[Discount], now: Optional[datetime] = None) -> List[Discount]:
    """Keep only discounts that are switched on and inside their window."""
    now = now or _now()
    return [d for d in candidates if is_discount_active(d, now)]


def discount_status(discount: Discount, now: Optional[datetime] = None) -> str:
    """One of: active | scheduled | expired | disabled."""
    if not discount.is_active:
        return "disabled"
    now = now or _now()
    if discount.start_date is not None and now < discount.start_date:
        return "scheduled"
    if discount.end_date is not None and now > discount.end_date:
        return "expired"
    return "active"


def is_ending_soon(discount: Discount, now: Optional[datetime] = None, hours: int = 24) -> bool:
    now = now or _now()
    if not is_discount_active(discount, now) or discount.end_date is None:
        return False
    remaining = (discount.end_date - now).total_seconds() / 3600
    return 0 < remaining <= hours


def format_time_remaining(end_date: datetime, now: Optional[datetime] = None) -> str:
    now = now or _now()
    diff = int((end_date - now).total_seconds())
    if diff <= 0:
        return "Expired"
    days, rest = divmod(diff, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    return f"{minutes}m remaining"
