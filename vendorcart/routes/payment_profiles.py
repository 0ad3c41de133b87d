# vendorcart/routes/payment_profiles.py
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..schemas.views import profile_view
from ..services.payment_profiles import load_profile, upsert_profile

router = APIRouter(prefix="/payment-profiles", tags=["payment-profiles"])


class PaymentSettingsIn(BaseModel):
    # camelCase to match the vendor dashboard form
    bankName: Optional[str] = None
    accountTitle: Optional[str] = None
    accountNumber: Optional[str] = None
    jazzcashNumber: Optional[str] = None
    easypaisaNumber: Optional[str] = None
    enableCod: bool = True
    enableBank: bool = False
    enableJazzcash: bool = False
    enableEasypaisa: bool = False
    minimumOrderAmount: Optional[float | str] = None
    policyText: Optional[str] = None


@router.get("/{vendor_id}")
async def get_payment_profile(vendor_id: int):
    profile = await load_profile(vendor_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="payment options not configured")
    return profile_view(profile)


@router.put("/{vendor_id}")
async def put_payment_profile(vendor_id: int, body: PaymentSettingsIn):
    try:
        profile = await upsert_profile(vendor_id, body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return profile_view(profile)
