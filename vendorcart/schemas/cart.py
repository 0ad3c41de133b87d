"""Cart, pricing and checkout models.

Every model is frozen: a pipeline step (grouping, pricing, profile loading,
payment selection, validation) returns new values instead of mutating the
ones it was given. JSON uses camelCase to match the frontend.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---- Catalog -----------------------------------------------------------------
class Vendor(_Model):
    # None is the "unknown vendor" bucket
    id: Optional[int] = None
    name: str = "Unknown vendor"


class Product(_Model):
    id: int
    name: str
    vendor: Vendor = Field(default_factory=Vendor)


class Variant(_Model):
    id: int
    packing: Optional[str] = None
    company_price: Optional[float] = None
    customer_price: float = Field(..., ge=0)


# ---- Discounts ---------------------------------------------------------------
class DiscountScope(str, Enum):
    VARIANT = "variant"
    PRODUCT = "product"
    VENDOR = "vendor"


class Discount(_Model):
    id: int
    name: str = ""
    percentage: float = Field(..., ge=0, le=100)
    scope: DiscountScope
    vendor_id: Optional[int] = None
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @classmethod
    def from_row(
        cls,
        *,
        id: int,
        percentage: float,
        name: str = "",
        company_id: Optional[int] = None,
        product_id: Optional[int] = None,
        variant_id: Optional[int] = None,
        is_active: bool = True,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> "Discount":
        """Build a discount from its stored foreign keys, tagging the scope
        by the most specific key that is set."""
        if variant_id is not None:
            scope = DiscountScope.VARIANT
        elif product_id is not None:
            scope = DiscountScope.PRODUCT
        else:
            scope = DiscountScope.VENDOR
        return cls(
            id=id,
            name=name,
            percentage=float(percentage),
            scope=scope,
            vendor_id=company_id,
            product_id=product_id,
            variant_id=variant_id,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
        )


# ---- Cart lines --------------------------------------------------------------
class LineItem(_Model):
    id: int
    product: Product
    variant: Variant
    quantity: int = Field(..., ge=1)
    # discounts visible to this line, already active/time-window filtered
    discounts: Tuple[Discount, ...] = ()


class PricedLine(_Model):
    item: LineItem
    base_price: float
    discount: Optional[Discount] = None
    unit_price: float
    line_total: float
    original_line_total: float
    savings: float


# ---- Payment profiles --------------------------------------------------------
class PaymentMethod(str, Enum):
    COD = "cod"
    BANK = "bank"
    JAZZCASH = "jazzcash"
    EASYPAISA = "easypaisa"


class PaymentProfile(_Model):
    vendor_id: int
    enable_cod: bool = True
    enable_bank: bool = False
    enable_jazzcash: bool = False
    enable_easypaisa: bool = False
    bank_name: Optional[str] = None
    account_title: Optional[str] = None
    account_number: Optional[str] = None
    jazzcash_number: Optional[str] = None
    easypaisa_number: Optional[str] = None
    minimum_order_amount: Optional[float] = None
    policy_text: Optional[str] = None

    def enabled_methods(self) -> List[PaymentMethod]:
        flags = {
            PaymentMethod.COD: self.enable_cod,
            PaymentMethod.BANK: self.enable_bank,
            PaymentMethod.JAZZCASH: self.enable_jazzcash,
            PaymentMethod.EASYPAISA: self.enable_easypaisa,
        }
        return [m for m, on in flags.items() if on]

    def account_details(self, method: PaymentMethod) -> Dict[str, Optional[str]]:
        """What the buyer needs to pay this vendor out-of-band by `method`."""
        if method == PaymentMethod.BANK:
            return {
                "bankName": self.bank_name,
                "accountTitle": self.account_title,
                "accountNumber": self.account_number,
            }
        if method == PaymentMethod.JAZZCASH:
            return {"jazzcashNumber": self.jazzcash_number}
        if method == PaymentMethod.EASYPAISA:
            return {"easypaisaNumber": self.easypaisa_number}
        return {}


class ProfileStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    UNCONFIGURED = "unconfigured"
    FAILED = "failed"


class ProfileState(_Model):
    status: ProfileStatus = ProfileStatus.IDLE
    profile: Optional[PaymentProfile] = None
    error: Optional[str] = None


# ---- Groups & checkout -------------------------------------------------------
class ProofOfPayment(_Model):
    filename: str
    content_type: str = "application/octet-stream"
    content: bytes = Field(default=b"", repr=False, exclude=True)

    @property
    def size(self) -> int:
        return len(self.content)


class VendorGroup(_Model):
    vendor: Vendor
    lines: Tuple[PricedLine, ...] = ()
    subtotal: float = 0.0
    original_subtotal: float = 0.0
    profile_state: ProfileState = Field(default_factory=ProfileState)
    payment_method: Optional[PaymentMethod] = None
    proof: Optional[ProofOfPayment] = None

    @property
    def items(self) -> List[LineItem]:
        return [line.item for line in self.lines]

    @property
    def payment_profile(self) -> Optional[PaymentProfile]:
        return self.profile_state.profile

    @property
    def savings(self) -> float:
        return max(0.0, round(self.original_subtotal - self.subtotal, 2))


class ShippingInfo(_Model):
    city: str = ""
    province: str = ""
    address: str = ""
    shipping_address: Optional[str] = None


class OrderSubmission(_Model):
    vendor_id: Optional[int]
    payment_method: PaymentMethod
    shipping: ShippingInfo
    lines: Tuple[PricedLine, ...]
    total: float
    proof: Optional[ProofOfPayment] = None


class OrderConfirmation(_Model):
    vendor_id: Optional[int]
    order_id: int
    total: float


class SubmissionOutcome(_Model):
    vendor_id: Optional[int]
    ok: bool
    order_id: Optional[int] = None
    error: Optional[str] = None


class CheckoutStatus(str, Enum):
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL = "partial"
    ALL_FAILED = "all_failed"


class CheckoutSummary(_Model):
    status: CheckoutStatus
    outcomes: Tuple[SubmissionOutcome, ...]

    @property
    def order_ids(self) -> List[int]:
        return [o.order_id for o in self.outcomes if o.ok and o.order_id is not None]
