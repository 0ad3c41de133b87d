# vendorcart/services/errors.py
from __future__ import annotations

from typing import Optional


class CheckoutError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ValidationError(CheckoutError):
    """User-correctable input problem (shipping, payment selection, proof, minimum)."""

    def __init__(self, message: str, vendor_id: Optional[int] = None, field: Optional[str] = None) -> None:
        super().__init__("VALIDATION", message)
        self.vendor_id = vendor_id
        self.field = field


class ConfigurationError(CheckoutError):
    """Vendor has no payment profile; only that vendor's checkout is blocked."""

    def __init__(self, vendor_id: Optional[int], vendor_name: str = "") -> None:
        label = vendor_name or f"vendor {vendor_id}"
        super().__init__(
            "NOT_CONFIGURED",
            f"Payment options not configured for {label}, checkout unavailable",
        )
        self.vendor_id = vendor_id


class TransportError(CheckoutError):
    """Store or collaborator failure; safe for the user to retry."""

    def __init__(self, message: str, vendor_id: Optional[int] = None) -> None:
        super().__init__("TRANSPORT", message)
        self.vendor_id = vendor_id
