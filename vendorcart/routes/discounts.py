# vendorcart/routes/discounts.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..schemas.cart import Discount
from ..services.discounts import discount_status, format_time_remaining, is_ending_soon
from ..settings import settings

router = APIRouter(prefix="/discounts", tags=["discounts"])


class DiscountWindowIn(BaseModel):
    id: int = 0
    percentage: float = Field(..., ge=0, le=100)
    isActive: bool = True
    startDate: datetime
    endDate: datetime
    companyId: Optional[int] = None
    productId: Optional[int] = None
    variantId: Optional[int] = None


@router.post("/status")
def discount_window_status(body: DiscountWindowIn):
    """Badge data for a discount: status, scope and time left."""
    d = Discount.from_row(
        id=body.id,
        percentage=body.percentage,
        company_id=body.companyId,
        product_id=body.productId,
        variant_id=body.variantId,
        is_active=body.isActive,
        start_date=body.startDate,
        end_date=body.endDate,
    )
    now = datetime.now(body.endDate.tzinfo)
    return {
        "status": discount_status(d, now),
        "scope": d.scope.value,
        "endingSoon": is_ending_soon(d, now, hours=settings.discount_ending_soon_hours),
        "timeRemaining": format_time_remaining(d.end_date, now),
    }
