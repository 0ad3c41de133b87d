# vendorcart/services/pricing.py
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from ..schemas.cart import Discount, LineItem, PricedLine, Variant, VendorGroup
from .discounts import resolve


def _round2(amount: float) -> float:
    return round(amount * 100) / 100


def select_base_price(variant: Variant) -> float:
    """Partner-channel price: the vendor's own price if set, else the retail one."""
    if variant.company_price:
        return float(variant.company_price)
    return float(variant.customer_price)


def final_unit_price(base_price: float, discount: Optional[Discount]) -> float:
    """Apply `discount` to `base_price`, rounded to 2 decimals, never above base."""
    if discount is None or discount.percentage == 0:
        return base_price
    price = _round2(base_price - base_price * discount.percentage / 100)
    return min(price, base_price)


def savings_amount(base_price: float, discount: Optional[Discount]) -> float:
    return max(0.0, _round2(base_price - final_unit_price(base_price, discount)))


def price_line(item: LineItem) -> PricedLine:
    base = select_base_price(item.variant)
    discount = resolve(item)
    unit = final_unit_price(base, discount)
    line_total = _round2(unit * item.quantity)
    original = _round2(base * item.quantity)
    return PricedLine(
        item=item,
        base_price=base,
        discount=discount,
        unit_price=unit,
        line_total=line_total,
        original_line_total=original,
        savings=max(0.0, _round2(original - line_total)),
    )


def group_totals(lines: Iterable[PricedLine]) -> Tuple[float, float]:
    """(subtotal, original_subtotal) over priced lines."""
    subtotal = 0.0
    original = 0.0
    for line in lines:
        subtotal += line.line_total
        original += line.original_line_total
    return _round2(subtotal), _round2(original)


def cart_subtotal(items: Iterable[LineItem]) -> float:
    """Discounted subtotal straight over an ungrouped cart."""
    subtotal, _ = group_totals(price_line(i) for i in items)
    return subtotal


def groups_subtotal(groups: Iterable[VendorGroup]) -> Tuple[float, float]:
    """(subtotal, original_subtotal) summed over vendor groups, rounded like a
    single group so it matches `cart_subtotal` of the same items exactly."""
    subtotal = 0.0
    original = 0.0
    for group in groups:
        subtotal += group.subtotal
        original += group.original_subtotal
    return _round2(subtotal), _round2(original)
