# vendorcart/services/payment_profiles.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..db import get_pool
from ..schemas.cart import PaymentProfile, ProfileState, ProfileStatus, VendorGroup

logger = logging.getLogger(__name__)

ProfileLoader = Callable[[int], Awaitable[Optional[PaymentProfile]]]


def _row_to_profile(row) -> PaymentProfile:
    minimum = row["minimum_order_amount"]
    return PaymentProfile(
        vendor_id=row["company_id"],
        enable_cod=row["enable_cod"],
        enable_bank=row["enable_bank"],
        enable_jazzcash=row["enable_jazzcash"],
        enable_easypaisa=row["enable_easypaisa"],
        bank_name=row["bank_name"],
        account_title=row["account_title"],
        account_number=row["account_number"],
        jazzcash_number=row["jazzcash_number"],
        easypaisa_number=row["easypaisa_number"],
        minimum_order_amount=float(minimum) if minimum else None,
        policy_text=row["policy_text"],
    )


# --- STORE --------------------------------------------------------------------
async def load_profile(vendor_id: int) -> Optional[PaymentProfile]:
    """Payment settings of one vendor; None when the vendor never configured them."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            "SELECT * FROM company_payment_settings WHERE company_id = $1", vendor_id
        )
    if not row:
        return None
    return _row_to_profile(row)


def _clean(value: Any) -> Optional[str]:
    s = (value or "").strip() if isinstance(value, str) else value
    return s or None


async def upsert_profile(vendor_id: int, payload: Dict[str, Any]) -> PaymentProfile:
    """
    Create or replace a vendor's payment settings.

    Blank account fields are stored as NULL, flags as booleans and a missing
    minimum as 0 (no minimum).
    """
    raw_min = payload.get("minimumOrderAmount")
    try:
        minimum = float(raw_min) if raw_min not in (None, "") else 0.0
    except (TypeError, ValueError):
        raise ValueError("minimumOrderAmount must be a number")
    if minimum < 0:
        raise ValueError("minimumOrderAmount cannot be negative")

    values = (
        vendor_id,
        _clean(payload.get("bankName")),
        _clean(payload.get("accountTitle")),
        _clean(payload.get("accountNumber")),
        _clean(payload.get("jazzcashNumber")),
        _clean(payload.get("easypaisaNumber")),
        bool(payload.get("enableCod")),
        bool(payload.get("enableBank")),
        bool(payload.get("enableJazzcash")),
        bool(payload.get("enableEasypaisa")),
        minimum,
        _clean(payload.get("policyText")),
    )

    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """
            INSERT INTO company_payment_settings
                (company_id, bank_name, account_title, account_number,
                 jazzcash_number, easypaisa_number, enable_cod, enable_bank,
                 enable_jazzcash, enable_easypaisa, minimum_order_amount,
                 policy_text, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, NOW())
            ON CONFLICT (company_id) DO UPDATE SET
                bank_name            = EXCLUDED.bank_name,
                account_title        = EXCLUDED.account_title,
                account_number       = EXCLUDED.account_number,
                jazzcash_number      = EXCLUDED.jazzcash_number,
                easypaisa_number     = EXCLUDED.easypaisa_number,
                enable_cod           = EXCLUDED.enable_cod,
                enable_bank          = EXCLUDED.enable_bank,
                enable_jazzcash      = EXCLUDED.enable_jazzcash,
                enable_easypaisa     = EXCLUDED.enable_easypaisa,
                minimum_order_amount = EXCLUDED.minimum_order_amount,
                policy_text          = EXCLUDED.policy_text,
                updated_at           = EXCLUDED.updated_at
            RETURNING *
            """,
            *values,
        )
    logger.info("payment settings saved for vendor %s", vendor_id)
    return _row_to_profile(row)


# --- PER-GROUP LOADING --------------------------------------------------------
def _with_state(group: VendorGroup, state: ProfileState) -> VendorGroup:
    return group.model_copy(update={"profile_state": state})


async def load_group_profile(group: VendorGroup, loader: Optional[ProfileLoader] = None) -> VendorGroup:
    """
    Load the profile for a single group and return the group with its new state.

    A missing profile is a terminal `unconfigured` state. A loader exception
    only marks this group `failed`; it never propagates to other vendors.
    """
    loader = loader or load_profile
    vendor_id = group.vendor.id
    if vendor_id is None:
        return _with_state(group, ProfileState(status=ProfileStatus.UNCONFIGURED))
    try:
        profile = await loader(vendor_id)
    except Exception as e:
        logger.warning("payment profile load failed for vendor %s: %s", vendor_id, e)
        return _with_state(group, ProfileState(status=ProfileStatus.FAILED, error=str(e)))
    if profile is None:
        logger.info("vendor %s has no payment profile", vendor_id)
        return _with_state(group, ProfileState(status=ProfileStatus.UNCONFIGURED))
    return _with_state(group, ProfileState(status=ProfileStatus.LOADED, profile=profile))


async def load_profiles(groups: List[VendorGroup], loader: Optional[ProfileLoader] = None) -> List[VendorGroup]:
    """Load every group's profile concurrently; output order follows `groups`."""
    return list(await asyncio.gather(*(load_group_profile(g, loader) for g in groups)))


class ProfileBoard:
    """
    Profile states for the groups of the most recent cart fetch.

    Each `refresh` starts a new generation. A load finishing after a newer
    refresh started is dropped instead of overwriting the newer state.

    HTTP handlers fetch the cart per request and use `load_profiles`
    directly; this holder is for long-lived callers (a worker or a UI
    session) that re-fetch the same cart while earlier loads are in flight.
    """

    def __init__(self, loader: Optional[ProfileLoader] = None) -> None:
        self._loader = loader or load_profile
        self._generation = 0
        self._groups: List[VendorGroup] = []
        self._states: Dict[Optional[int], ProfileState] = {}

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def groups(self) -> List[VendorGroup]:
        return [
            _with_state(g, self._states.get(g.vendor.id, ProfileState()))
            for g in self._groups
        ]

    def state(self, vendor_id: Optional[int]) -> ProfileState:
        return self._states.get(vendor_id, ProfileState())

    async def refresh(self, groups: List[VendorGroup]) -> List[VendorGroup]:
        self._generation += 1
        generation = self._generation
        self._groups = list(groups)
        self._states = {g.vendor.id: ProfileState(status=ProfileStatus.LOADING) for g in groups}

        async def _one(group: VendorGroup) -> None:
            loaded = await load_group_profile(group, self._loader)
            if generation != self._generation:
                logger.debug("dropping stale profile for vendor %s", group.vendor.id)
                return
            self._states[group.vendor.id] = loaded.profile_state

        await asyncio.gather(*(_one(g) for g in groups))
        return self.groups
