# vendorcart/schemas/views.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..services.pricing import groups_subtotal
from .cart import PaymentProfile, PricedLine, VendorGroup


def line_view(line: PricedLine) -> Dict[str, Any]:
    item = line.item
    return {
        "itemId": item.id,
        "productId": item.product.id,
        "productName": item.product.name,
        "variantId": item.variant.id,
        "packing": item.variant.packing,
        "quantity": item.quantity,
        "basePrice": line.base_price,
        "unitPrice": line.unit_price,
        "discountId": line.discount.id if line.discount else None,
        "discountScope": line.discount.scope.value if line.discount else None,
        "discountPercentage": line.discount.percentage if line.discount else None,
        "lineTotal": line.line_total,
        "savings": line.savings,
    }


def profile_view(profile: Optional[PaymentProfile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {
        **profile.model_dump(by_alias=True),
        "methods": [
            {"method": m.value, "account": profile.account_details(m)}
            for m in profile.enabled_methods()
        ],
    }


def group_view(group: VendorGroup) -> Dict[str, Any]:
    return {
        "vendorId": group.vendor.id,
        "vendorName": group.vendor.name,
        "lines": [line_view(l) for l in group.lines],
        "subtotal": group.subtotal,
        "originalSubtotal": group.original_subtotal,
        "savings": group.savings,
        "profileStatus": group.profile_state.status.value,
        "profileError": group.profile_state.error,
        "paymentProfile": profile_view(group.payment_profile),
    }


def cart_view(groups: List[VendorGroup]) -> Dict[str, Any]:
    subtotal, original = groups_subtotal(groups)
    return {
        "groups": [group_view(g) for g in groups],
        "itemCount": sum(l.item.quantity for g in groups for l in g.lines),
        "subtotal": subtotal,
        "originalSubtotal": original,
        "savings": max(0.0, round(original - subtotal, 2)),
    }
