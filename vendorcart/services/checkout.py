# vendorcart/services/checkout.py
"""
Split a multi-vendor cart into one order per vendor.

Everything the buyer can fix (shipping fields, payment selection, proof of
payment, vendor minimums) is checked before any order is written, so a
preventable mistake never leaves half of a cart submitted. Once submission
starts, each vendor's order succeeds or fails on its own.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from ..schemas.cart import (
    CheckoutStatus,
    CheckoutSummary,
    OrderConfirmation,
    OrderSubmission,
    PaymentMethod,
    ProofOfPayment,
    ShippingInfo,
    SubmissionOutcome,
    VendorGroup,
)
from ..settings import settings
from .errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

OrderSink = Callable[[OrderSubmission], Awaitable[OrderConfirmation]]

SHIPPING_FIELDS = ("city", "province", "address")


def _label(group: VendorGroup) -> str:
    return group.vendor.name or f"vendor {group.vendor.id}"


def _money(amount: float) -> str:
    return f"{settings.currency} {amount:,.2f}"


def select_payment(
    group: VendorGroup,
    method: Optional[PaymentMethod],
    proof: Optional[ProofOfPayment] = None,
) -> VendorGroup:
    """Return `group` with the buyer's payment choice; COD never keeps a proof."""
    if method == PaymentMethod.COD:
        proof = None
    return group.model_copy(update={"payment_method": method, "proof": proof})


def apply_selections(
    groups: List[VendorGroup],
    selections: Dict[Optional[int], Tuple[Optional[PaymentMethod], Optional[ProofOfPayment]]],
) -> List[VendorGroup]:
    """
    Keep the groups the buyer is checking out, each with its payment choice.

    Groups without a selection stay in the cart untouched, so an unconfigured
    vendor never blocks the others. Selecting a vendor that has nothing in the
    cart is an error.
    """
    by_vendor = {g.vendor.id: g for g in groups}
    chosen: List[VendorGroup] = []
    for vendor_id, (method, proof) in selections.items():
        group = by_vendor.get(vendor_id)
        if group is None:
            raise ValidationError(
                f"No items from vendor {vendor_id} in cart",
                vendor_id=vendor_id, field="vendorId",
            )
        chosen.append(select_payment(group, method, proof))
    return chosen


# --- VALIDATION ---------------------------------------------------------------
def validate_shipping(shipping: ShippingInfo) -> None:
    for field in SHIPPING_FIELDS:
        if not (getattr(shipping, field) or "").strip():
            raise ValidationError("Please fill in all shipping fields", field=field)


def validate_group(group: VendorGroup) -> None:
    vendor_id = group.vendor.id
    profile = group.payment_profile
    if profile is None:
        raise ConfigurationError(vendor_id, group.vendor.name)

    method = group.payment_method
    if method is None:
        raise ValidationError(
            f"Please select a payment method for {_label(group)}",
            vendor_id=vendor_id, field="paymentMethod",
        )
    if method not in profile.enabled_methods():
        raise ValidationError(
            f"{method.value} is not accepted by {_label(group)}",
            vendor_id=vendor_id, field="paymentMethod",
        )
    if method != PaymentMethod.COD and (group.proof is None or not group.proof.content):
        raise ValidationError(
            f"Please upload payment screenshot for {_label(group)}",
            vendor_id=vendor_id, field="proof",
        )
    minimum = profile.minimum_order_amount
    if minimum and group.subtotal < minimum:
        raise ValidationError(
            f"Minimum order for {_label(group)} is {_money(minimum)}",
            vendor_id=vendor_id, field="subtotal",
        )


def validate_and_split(groups: List[VendorGroup], shipping: ShippingInfo) -> List[OrderSubmission]:
    """
    Validate the whole checkout and build one submission per vendor group.

    Raises on the first failure: shipping fields first, then each group in
    order (profile present, method chosen and enabled, proof for non-COD,
    vendor minimum against the discounted subtotal).
    """
    if not groups:
        raise ValidationError("Cart is empty", field="cart")
    validate_shipping(shipping)
    for group in groups:
        validate_group(group)

    return [
        OrderSubmission(
            vendor_id=g.vendor.id,
            payment_method=g.payment_method,
            shipping=shipping,
            lines=g.lines,
            total=g.subtotal,
            proof=g.proof if g.payment_method != PaymentMethod.COD else None,
        )
        for g in groups
    ]


# --- SUBMISSION ---------------------------------------------------------------
def summarize(outcomes: List[SubmissionOutcome]) -> CheckoutSummary:
    ok = sum(1 for o in outcomes if o.ok)
    if outcomes and ok == len(outcomes):
        status = CheckoutStatus.ALL_SUCCEEDED
    elif ok:
        status = CheckoutStatus.PARTIAL
    else:
        status = CheckoutStatus.ALL_FAILED
    return CheckoutSummary(status=status, outcomes=tuple(outcomes))


async def _submit_one(submission: OrderSubmission, sink: OrderSink) -> SubmissionOutcome:
    try:
        confirmation = await sink(submission)
    except Exception as e:
        logger.exception("order for vendor %s failed", submission.vendor_id)
        return SubmissionOutcome(vendor_id=submission.vendor_id, ok=False, error=str(e))
    logger.info(
        "order %s placed for vendor %s (total %.2f)",
        confirmation.order_id, submission.vendor_id, confirmation.total,
    )
    return SubmissionOutcome(
        vendor_id=submission.vendor_id, ok=True, order_id=confirmation.order_id
    )


async def submit_orders(submissions: List[OrderSubmission], sink: OrderSink) -> CheckoutSummary:
    """Send each vendor's order independently and report per-vendor outcomes."""
    outcomes = await asyncio.gather(*(_submit_one(s, sink) for s in submissions))
    summary = summarize(list(outcomes))
    if summary.status != CheckoutStatus.ALL_SUCCEEDED:
        logger.warning("checkout finished with status %s", summary.status.value)
    return summary


def checkout_overview(groups: List[VendorGroup]) -> List[Dict[str, object]]:
    """Per-vendor readiness rows for the checkout page."""
    rows: List[Dict[str, object]] = []
    for g in groups:
        blocked = g.payment_profile is None
        rows.append({
            "vendorId": g.vendor.id,
            "vendorName": g.vendor.name,
            "profileStatus": g.profile_state.status.value,
            "checkoutAvailable": not blocked,
            "message": ConfigurationError(g.vendor.id, g.vendor.name).message if blocked else None,
        })
    return rows
