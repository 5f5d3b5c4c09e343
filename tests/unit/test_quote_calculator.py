from datetime import datetime
from decimal import Decimal

import pytest

from studio_booking.core.exceptions import ValidationError
from studio_booking.models.base.enums import DiscountType, PaymentOption
from studio_booking.schemas.booking.quote import AddonSelection, BookingDraft
from studio_booking.schemas.discount.discount import DiscountTerms
from studio_booking.services.pricing.quote_calculator import (
    add_addon,
    apply_discount,
    calculate_deposit,
    calculate_quote,
    recompute,
    remove_addon,
    remove_discount,
    set_payment_option,
    validate_requested_deposit,
)

NOW = datetime(2030, 6, 1, 9, 0)


def _ten_percent(**overrides):
    data = {
        "id": "disc-1",
        "studio_id": "studio-1",
        "code": "HEMAT10",
        "type": DiscountType.PERCENTAGE,
        "value": Decimal("10"),
        "minimum_amount": Decimal("100000"),
        "maximum_discount": Decimal("80000"),
    }
    data.update(overrides)
    return DiscountTerms(**data)


def _prints(quantity=2):
    return AddonSelection(addon_id="prints", name="Prints", unit_price=Decimal("50000"), quantity=quantity)


def _draft(**overrides):
    data = {
        "studio_id": "studio-1",
        "package_id": "pkg-1",
        "package_price": Decimal("500000"),
        "dp_percentage": 50,
        "addons": [_prints()],
    }
    data.update(overrides)
    return BookingDraft(**data)


def test_family_package_with_prints_and_discount():
    draft = apply_discount(_draft(), _ten_percent(), NOW)
    breakdown = draft.breakdown

    assert breakdown.subtotal == Decimal("600000")
    assert breakdown.discount_amount == Decimal("60000")
    assert breakdown.total_amount == Decimal("540000")
    assert breakdown.dp_amount == Decimal("270000")
    assert breakdown.remaining_amount == Decimal("270000")
    assert draft.discount_id == "disc-1"
    assert draft.notices == []


def test_percentage_discount_is_capped_at_maximum():
    draft = apply_discount(_draft(package_price=Decimal("1500000")), _ten_percent(), NOW)

    assert draft.breakdown.discount_amount == Decimal("80000")
    assert draft.breakdown.total_amount == Decimal("1520000")


def test_included_addon_contributes_nothing():
    album = AddonSelection(addon_id="album", name="Album", unit_price=Decimal("75000"), is_included=True)

    breakdown = calculate_quote(Decimal("500000"), [album, _prints(1)])

    assert breakdown.addon_total == Decimal("50000")
    assert breakdown.subtotal == Decimal("550000")
    assert breakdown.lines[0].total_price == Decimal("0")
    assert breakdown.lines[0].is_included is True


def test_package_specific_price_and_percentage():
    special = AddonSelection(unit_price=Decimal("50000"), package_price=Decimal("30000"), quantity=2)
    reduced = AddonSelection(unit_price=Decimal("80000"), discount_percentage=25)

    breakdown = calculate_quote(Decimal("100000"), [special, reduced])

    assert [line.total_price for line in breakdown.lines] == [Decimal("60000"), Decimal("60000")]
    assert breakdown.subtotal == Decimal("220000")


def test_facility_and_other_addons_are_totalled_separately():
    makeup = AddonSelection(unit_price=Decimal("100000"), quantity=2, is_facility=True, is_hourly=True)

    breakdown = calculate_quote(Decimal("500000"), [makeup, _prints(1)])

    assert breakdown.facility_addon_total == Decimal("200000")
    assert breakdown.other_addon_total == Decimal("50000")
    assert breakdown.subtotal == breakdown.package_price + breakdown.addon_total


def test_discount_larger_than_total_is_clamped():
    breakdown = calculate_quote(Decimal("100000"), discount_amount=Decimal("150000"))

    assert breakdown.discount_amount == Decimal("100000")
    assert breakdown.total_amount == Decimal("0")
    assert breakdown.dp_amount == Decimal("0")
    assert breakdown.subtotal + breakdown.tax_amount - breakdown.discount_amount == breakdown.total_amount


def test_deposit_is_floored():
    assert calculate_deposit(Decimal("333333"), dp_percentage=50) == Decimal("166666")


def test_deposit_uses_default_percentage():
    assert calculate_deposit(Decimal("400000")) == Decimal("200000")


def test_full_payment_deposit_is_the_total():
    assert calculate_deposit(Decimal("540000"), PaymentOption.FULL) == Decimal("540000")


def test_tax_is_added_before_discount():
    breakdown = calculate_quote(Decimal("100000"), discount_amount=Decimal("5000"), tax_rate=Decimal("10"))

    assert breakdown.tax_amount == Decimal("10000")
    assert breakdown.total_amount == Decimal("105000")


def test_requested_deposit_bounds():
    assert validate_requested_deposit(Decimal("540000"), Decimal("300000"), 50) == Decimal("300000")

    with pytest.raises(ValidationError) as below:
        validate_requested_deposit(Decimal("540000"), Decimal("269999"), 50)
    assert below.value.field == "requested_dp_amount"

    with pytest.raises(ValidationError):
        validate_requested_deposit(Decimal("540000"), Decimal("540001"), 50)


def test_discount_dropped_when_subtotal_falls_below_minimum():
    terms = _ten_percent(minimum_amount=Decimal("550000"))
    draft = apply_discount(_draft(), terms, NOW)
    assert draft.discount_id == "disc-1"

    draft = remove_addon(draft, "prints", terms, NOW)

    assert draft.discount_id is None
    assert draft.breakdown.discount_amount == Decimal("0")
    assert draft.breakdown.total_amount == Decimal("500000")
    assert any("HEMAT10" in notice for notice in draft.notices)


def test_discount_dropped_when_terms_are_missing():
    draft = recompute(_draft(discount_id="disc-gone"), None, NOW)

    assert draft.discount_id is None
    assert draft.notices == ["Discount removed: it is no longer available"]


def test_adding_addon_recomputes_discount_and_deposit():
    terms = _ten_percent()
    draft = apply_discount(_draft(addons=[]), terms, NOW)
    assert draft.breakdown.discount_amount == Decimal("50000")

    draft = add_addon(draft, _prints(), terms, NOW)

    assert draft.breakdown.discount_amount == Decimal("60000")
    assert draft.breakdown.dp_amount == Decimal("270000")


def test_requested_deposit_above_total_is_reset():
    draft = set_payment_option(_draft(), PaymentOption.DEPOSIT, Decimal("700000"))

    assert draft.requested_dp_amount is None
    assert draft.breakdown.dp_amount == Decimal("300000")
    assert draft.notices[-1].startswith("Requested deposit reset")


def test_switching_to_full_payment():
    draft = set_payment_option(_draft(), PaymentOption.FULL)

    assert draft.breakdown.dp_amount == draft.breakdown.total_amount
    assert draft.breakdown.remaining_amount == Decimal("0")


def test_remove_discount_restores_full_total():
    draft = apply_discount(_draft(), _ten_percent(), NOW)

    draft = remove_discount(draft, NOW)

    assert draft.discount_id is None
    assert draft.breakdown.total_amount == Decimal("600000")
