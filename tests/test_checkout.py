"""Tests for checkout validation, order splitting and per-vendor submission."""
from __future__ import annotations

import pytest

from tests.conftest import line_item
from vendorcart.schemas.cart import (
    CheckoutStatus,
    PaymentMethod,
    ProofOfPayment,
    ShippingInfo,
)
from vendorcart.services.checkout import (
    apply_selections,
    checkout_overview,
    select_payment,
    submit_orders,
    validate_and_split,
)
from vendorcart.services.errors import ConfigurationError, ValidationError
from vendorcart.services.grouping import group_by_vendor
from vendorcart.services.payment_profiles import load_profiles

SHIPPING = ShippingInfo(city="Lahore", province="Punjab", address="12 Canal Road")
PROOF = ProofOfPayment(filename="receipt.png", content_type="image/png", content=b"\x89PNG...")


@pytest.fixture()
async def groups(cart_rows, profile_store):
    loaded = await load_profiles(group_by_vendor(cart_rows), profile_store.load)
    return {g.vendor.id: g for g in loaded}


def _cod(group):
    return select_payment(group, PaymentMethod.COD)


# ---------- Selection ----------

def test_selecting_cod_drops_attached_proof(cart_rows):
    [group, *_] = group_by_vendor(cart_rows)
    with_bank = select_payment(group, PaymentMethod.BANK, PROOF)
    assert with_bank.proof == PROOF
    switched = select_payment(with_bank, PaymentMethod.COD, PROOF)
    assert switched.proof is None
    assert with_bank.proof == PROOF


async def test_apply_selections_keeps_only_chosen_vendors(groups):
    chosen = apply_selections(list(groups.values()), {2: (PaymentMethod.COD, None)})
    assert [g.vendor.id for g in chosen] == [2]
    assert chosen[0].payment_method == PaymentMethod.COD


async def test_apply_selections_rejects_vendor_not_in_cart(groups):
    with pytest.raises(ValidationError) as exc:
        apply_selections(list(groups.values()), {42: (PaymentMethod.COD, None)})
    assert exc.value.vendor_id == 42


# ---------- Validation ----------

async def test_missing_shipping_field_fails_before_groups(groups):
    shipping = SHIPPING.model_copy(update={"province": "  "})
    with pytest.raises(ValidationError) as exc:
        validate_and_split([_cod(groups[2])], shipping)
    assert exc.value.field == "province"
    assert exc.value.vendor_id is None


def test_empty_checkout_is_rejected():
    with pytest.raises(ValidationError):
        validate_and_split([], SHIPPING)


async def test_unconfigured_vendor_blocks_only_its_own_submission(groups):
    with pytest.raises(ConfigurationError) as exc:
        validate_and_split([_cod(groups[3])], SHIPPING)
    assert exc.value.vendor_id == 3
    assert "not configured" in exc.value.message

    # vendors with profiles still check out
    submissions = validate_and_split([_cod(groups[2])], SHIPPING)
    assert [s.vendor_id for s in submissions] == [2]


async def test_missing_payment_method(groups):
    with pytest.raises(ValidationError) as exc:
        validate_and_split([groups[2]], SHIPPING)
    assert exc.value.field == "paymentMethod"
    assert "Agrimed" in exc.value.message


async def test_method_not_enabled_by_vendor(groups):
    group = select_payment(groups[2], PaymentMethod.EASYPAISA, PROOF)
    with pytest.raises(ValidationError) as exc:
        validate_and_split([group], SHIPPING)
    assert exc.value.field == "paymentMethod"


async def test_bank_without_screenshot_is_blocked(groups):
    group = select_payment(groups[2], PaymentMethod.BANK)
    with pytest.raises(ValidationError) as exc:
        validate_and_split([group], SHIPPING)
    assert exc.value.field == "proof"
    assert exc.value.vendor_id == 2
    assert "screenshot" in exc.value.message


async def test_minimum_order_names_only_failing_vendor(groups):
    # vendor 1: subtotal 500, minimum 1000; vendor 2: subtotal 2000, minimum 500
    with pytest.raises(ValidationError) as exc:
        validate_and_split([_cod(groups[1]), _cod(groups[2])], SHIPPING)
    assert exc.value.vendor_id == 1
    assert exc.value.field == "subtotal"
    assert "Vetco" in exc.value.message
    assert "1,000.00" in exc.value.message


async def test_minimum_order_passes_after_adding_items(profile_store):
    rows = [
        line_item(1, vendor_id=1, price=250.0, qty=4),
        line_item(2, vendor_id=2, price=1000.0, qty=2),
    ]
    groups = await load_profiles(group_by_vendor(rows), profile_store.load)
    submissions = validate_and_split([_cod(g) for g in groups], SHIPPING)
    assert {s.vendor_id: s.total for s in submissions} == {1: 1000.0, 2: 2000.0}


async def test_minimum_uses_discounted_subtotal(profile_store):
    from tests.conftest import discount
    # 1000 before discount, 900 after: below vendor 1's minimum of 1000
    rows = [line_item(1, vendor_id=1, price=500.0, qty=2, discounts=[discount(1, 10, vendor_id=1)])]
    [group] = await load_profiles(group_by_vendor(rows), profile_store.load)
    assert group.original_subtotal == 1000
    with pytest.raises(ValidationError):
        validate_and_split([_cod(group)], SHIPPING)


# ---------- Splitting ----------

async def test_split_emits_one_submission_per_vendor(groups):
    chosen = [_cod(groups[2]), select_payment(groups[1], PaymentMethod.BANK, PROOF)]
    chosen[1] = chosen[1].model_copy(update={"subtotal": 1500.0})
    submissions = validate_and_split(chosen, SHIPPING)

    by_vendor = {s.vendor_id: s for s in submissions}
    assert set(by_vendor) == {1, 2}
    assert by_vendor[2].proof is None
    assert by_vendor[1].proof == PROOF
    assert all(s.shipping == SHIPPING for s in submissions)
    assert [l.item.id for l in by_vendor[2].lines] == [2]
    assert [l.item.id for l in by_vendor[1].lines] == [1]


# ---------- Submission ----------

async def test_all_vendors_succeed(groups, order_sink):
    submissions = validate_and_split([_cod(groups[2])], SHIPPING)
    summary = await submit_orders(submissions, order_sink)
    assert summary.status == CheckoutStatus.ALL_SUCCEEDED
    assert summary.order_ids == [501]


async def test_partial_failure_is_reported_per_vendor(profile_store, order_sink):
    rows = [
        line_item(1, vendor_id=1, price=600.0, qty=2),
        line_item(2, vendor_id=2, price=1000.0, qty=1),
    ]
    groups = await load_profiles(group_by_vendor(rows), profile_store.load)
    submissions = validate_and_split([_cod(g) for g in groups], SHIPPING)

    order_sink.failing.add(1)
    summary = await submit_orders(submissions, order_sink)
    assert summary.status == CheckoutStatus.PARTIAL
    outcomes = {o.vendor_id: o for o in summary.outcomes}
    assert outcomes[2].ok and outcomes[2].order_id is not None
    assert not outcomes[1].ok and "unavailable" in outcomes[1].error
    assert [s.vendor_id for s in order_sink.accepted] == [2]


async def test_all_failed(groups, order_sink):
    order_sink.failing.add(2)
    submissions = validate_and_split([_cod(groups[2])], SHIPPING)
    summary = await submit_orders(submissions, order_sink)
    assert summary.status == CheckoutStatus.ALL_FAILED
    assert summary.order_ids == []


# ---------- Overview ----------

async def test_overview_flags_unconfigured_vendor(groups):
    rows = {r["vendorId"]: r for r in checkout_overview(list(groups.values()))}
    assert rows[1]["checkoutAvailable"] and rows[2]["checkoutAvailable"]
    assert not rows[3]["checkoutAvailable"]
    assert rows[3]["profileStatus"] == "unconfigured"
    assert "checkout unavailable" in rows[3]["message"]
