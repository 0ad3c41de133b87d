# vendorcart/services/grouping.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..schemas.cart import LineItem, Vendor, VendorGroup
from .pricing import group_totals, price_line


def build_group(vendor: Vendor, items: Iterable[LineItem]) -> VendorGroup:
    lines = tuple(price_line(i) for i in items)
    subtotal, original = group_totals(lines)
    return VendorGroup(
        vendor=vendor,
        lines=lines,
        subtotal=subtotal,
        original_subtotal=original,
    )


def group_by_vendor(items: Iterable[LineItem]) -> List[VendorGroup]:
    """
    Partition cart lines by the vendor that owns each product.

    Lines without a vendor id share one "unknown vendor" group. Line order
    inside a group follows the input order. Each group is priced on creation.
    """
    buckets: Dict[Optional[int], List[LineItem]] = {}
    vendors: Dict[Optional[int], Vendor] = {}
    for item in items:
        vendor = item.product.vendor
        if vendor.id not in buckets:
            buckets[vendor.id] = []
            vendors[vendor.id] = vendor if vendor.id is not None else Vendor()
        buckets[vendor.id].append(item)
    return [build_group(vendors[vid], rows) for vid, rows in buckets.items()]
