# vendorcart/routes/checkout.py
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError as SchemaError
from starlette.datastructures import UploadFile

from ..schemas.cart import CheckoutStatus, PaymentMethod, ProofOfPayment, ShippingInfo
from ..schemas.views import group_view
from ..services.cart import fetch_cart
from ..services.checkout import (
    apply_selections,
    checkout_overview,
    submit_orders,
    validate_and_split,
    validate_shipping,
)
from ..services.errors import CheckoutError, ValidationError
from ..services.grouping import group_by_vendor
from ..services.orders import order_sink_for
from ..services.payment_profiles import load_profiles
from ..services.proofs import validate_proof

router = APIRouter(prefix="/checkout", tags=["checkout"])

_STATUS_CODES = {
    CheckoutStatus.ALL_SUCCEEDED: 200,
    CheckoutStatus.PARTIAL: 207,
    CheckoutStatus.ALL_FAILED: 502,
}


class VendorOrderIn(BaseModel):
    # one entry per vendor the buyer is checking out
    vendorId: Optional[int] = None
    paymentMethod: Optional[PaymentMethod] = None
    proofKey: Optional[str] = None


def _error_detail(e: CheckoutError) -> Dict[str, Any]:
    return {
        "code": e.code,
        "message": e.message,
        "vendorId": getattr(e, "vendor_id", None),
        "field": getattr(e, "field", None),
    }


def _parse_json(raw: Any, name: str) -> Any:
    if not isinstance(raw, str) or not raw.strip():
        raise HTTPException(status_code=400, detail=f"{name} is required")
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"{name} must be valid JSON")


async def _read_proof(form, key: Optional[str]) -> Optional[ProofOfPayment]:
    if not key:
        return None
    upload = form.get(key)
    if not isinstance(upload, UploadFile):
        return None
    content = await upload.read()
    return ProofOfPayment(
        filename=upload.filename or key,
        content_type=upload.content_type or "application/octet-stream",
        content=content,
    )


@router.get("/preview")
async def checkout_preview(
    partnerId: int = Query(...),
    country: Optional[str] = Query(None),
):
    """Vendor groups with each vendor's payment options, loaded concurrently."""
    items = await fetch_cart(partnerId, country=country)
    groups = await load_profiles(group_by_vendor(items))
    return {
        "groups": [group_view(g) for g in groups],
        "vendors": checkout_overview(groups),
    }


@router.post("")
async def place_orders(request: Request):
    """
    Multipart checkout.

    Fields: `partnerId`, `shipping` (JSON object), `orders` (JSON list of
    {vendorId, paymentMethod, proofKey}) and one file per `proofKey`.
    Nothing is written unless every selected vendor passes validation.
    """
    form = await request.form()
    try:
        partner_id = int(form.get("partnerId") or "")
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="partnerId is required")

    try:
        shipping = ShippingInfo.model_validate(_parse_json(form.get("shipping"), "shipping"))
        orders_raw = _parse_json(form.get("orders"), "orders")
        if not isinstance(orders_raw, list) or not orders_raw:
            raise HTTPException(status_code=400, detail="orders must be a non-empty list")
        orders = [VendorOrderIn.model_validate(o) for o in orders_raw]
    except SchemaError as e:
        raise HTTPException(status_code=400, detail=str(e))

    items = await fetch_cart(partner_id)
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")
    groups = await load_profiles(group_by_vendor(items))

    selections: Dict[Optional[int], Tuple[Optional[PaymentMethod], Optional[ProofOfPayment]]] = {}
    try:
        # shared shipping fields are reported before any per-vendor problem
        validate_shipping(shipping)
        for o in orders:
            if o.vendorId in selections:
                raise ValidationError(
                    f"Vendor {o.vendorId} appears more than once in orders",
                    vendor_id=o.vendorId, field="vendorId",
                )
            proof = await _read_proof(form, o.proofKey)
            if proof is not None and o.paymentMethod != PaymentMethod.COD:
                validate_proof(proof, o.vendorId)
            selections[o.vendorId] = (o.paymentMethod, proof)
        submissions = validate_and_split(apply_selections(groups, selections), shipping)
    except CheckoutError as e:
        raise HTTPException(status_code=400, detail=_error_detail(e))

    summary = await submit_orders(submissions, order_sink_for(partner_id))
    body: Dict[str, Any] = {
        "status": summary.status.value,
        "orderIds": summary.order_ids,
        "outcomes": [o.model_dump(by_alias=True) for o in summary.outcomes],
    }
    if summary.status != CheckoutStatus.ALL_SUCCEEDED:
        body["message"] = (
            "Some vendor orders could not be placed; retry the remaining vendors"
            if summary.status == CheckoutStatus.PARTIAL
            else "No orders could be placed, please retry"
        )
    return JSONResponse(status_code=_STATUS_CODES[summary.status], content=body)
