"""Tests for discount scope resolution and discount window helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from tests.conftest import discount, line_item
from vendorcart.schemas.cart import DiscountScope
from vendorcart.services.discounts import (
    discount_status,
    eligible,
    format_time_remaining,
    is_discount_active,
    is_ending_soon,
    resolve,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _item(*discounts):
    # product 10, variant 100, vendor 1
    return line_item(1, vendor_id=1, discounts=discounts)


# ---------- Scope tagging ----------

def test_scope_is_tagged_from_most_specific_key():
    assert discount(1, 10, vendor_id=1, product_id=10, variant_id=100).scope == DiscountScope.VARIANT
    assert discount(2, 10, vendor_id=1, product_id=10).scope == DiscountScope.PRODUCT
    assert discount(3, 10, vendor_id=1).scope == DiscountScope.VENDOR


# ---------- Priority cascade ----------

def test_variant_discount_beats_product_and_vendor():
    variant = discount(1, 20, vendor_id=1, product_id=10, variant_id=100)
    item = _item(
        variant,
        discount(2, 40, product_id=10),
        discount(3, 50, vendor_id=1),
    )
    assert resolve(item) == variant


def test_product_discount_beats_vendor_discount():
    product = discount(2, 5, product_id=10)
    item = _item(product, discount(3, 50, vendor_id=1))
    assert resolve(item) == product


def test_product_row_that_names_a_vendor_is_excluded():
    vendor_wide = discount(3, 15, vendor_id=1)
    item = _item(discount(2, 40, vendor_id=1, product_id=10), vendor_wide)
    assert resolve(item) == vendor_wide
    # alone it matches no tier
    assert resolve(_item(discount(2, 40, vendor_id=1, product_id=10))) is None


def test_vendor_discount_applies_when_nothing_more_specific():
    vendor = discount(3, 15, vendor_id=1)
    assert resolve(_item(vendor)) == vendor


def test_highest_percentage_wins_within_a_tier():
    item = _item(
        discount(1, 10, product_id=10),
        discount(2, 35, product_id=10),
        discount(3, 20, product_id=10),
    )
    assert resolve(item).percentage == 35


def test_equal_percentage_ties_break_on_lowest_id():
    item = _item(discount(9, 25, vendor_id=1), discount(4, 25, vendor_id=1))
    assert resolve(item).id == 4
    # order of candidates does not matter
    item = _item(discount(4, 25, vendor_id=1), discount(9, 25, vendor_id=1))
    assert resolve(item).id == 4


def test_discounts_for_other_variants_products_or_vendors_are_ignored():
    item = _item(
        discount(1, 60, variant_id=999, product_id=10),
        discount(2, 60, product_id=11),
        discount(3, 60, vendor_id=2),
    )
    assert resolve(item) is None


def test_inactive_discount_never_selected():
    item = _item(
        discount(1, 80, variant_id=100, product_id=10, is_active=False),
        discount(2, 10, vendor_id=1),
    )
    assert resolve(item).id == 2


def test_empty_candidates_resolve_to_none():
    assert resolve(_item()) is None
    assert resolve(_item(discount(1, 30, vendor_id=1)), candidates=[]) is None


def test_zero_percent_discount_is_still_selected():
    zero = discount(1, 0, variant_id=100, product_id=10)
    assert resolve(_item(zero, discount(2, 50, vendor_id=1))) == zero


def test_unknown_vendor_item_gets_no_vendor_discount():
    item = line_item(1, vendor_id=None, discounts=[discount(3, 50, vendor_id=1)])
    assert resolve(item) is None


def test_resolve_is_idempotent():
    item = _item(discount(1, 10, product_id=10), discount(2, 30, vendor_id=1))
    assert resolve(item) == resolve(item)


# ---------- Window helpers ----------

def _windowed(start_offset_h, end_offset_h, active=True):
    d = discount(1, 10, vendor_id=1, is_active=active)
    return d.model_copy(update={
        "start_date": NOW + timedelta(hours=start_offset_h),
        "end_date": NOW + timedelta(hours=end_offset_h),
    })


def test_discount_status_values():
    assert discount_status(_windowed(-1, 1), NOW) == "active"
    assert discount_status(_windowed(1, 5), NOW) == "scheduled"
    assert discount_status(_windowed(-5, -1), NOW) == "expired"
    assert discount_status(_windowed(-1, 1, active=False), NOW) == "disabled"


def test_eligible_keeps_only_live_discounts():
    live = _windowed(-1, 1)
    result = eligible([live, _windowed(1, 5), _windowed(-5, -1), _windowed(-1, 1, active=False)], NOW)
    assert result == [live]
    assert is_discount_active(live, NOW)


def test_is_ending_soon():
    assert is_ending_soon(_windowed(-1, 5), NOW, hours=24)
    assert not is_ending_soon(_windowed(-1, 48), NOW, hours=24)
    assert not is_ending_soon(_windowed(-5, -1), NOW, hours=24)


def test_format_time_remaining():
    assert format_time_remaining(NOW + timedelta(days=2, hours=3), NOW) == "2d 3h remaining"
    assert format_time_remaining(NOW + timedelta(hours=4, minutes=30), NOW) == "4h 30m remaining"
    assert format_time_remaining(NOW + timedelta(minutes=7), NOW) == "7m remaining"
    assert format_time_remaining(NOW - timedelta(minutes=1), NOW) == "Expired"
