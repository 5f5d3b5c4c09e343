from datetime import datetime, timedelta
from decimal import Decimal

from studio_booking.models.base.enums import DiscountScope, DiscountType
from studio_booking.schemas.discount.discount import DiscountTerms
from studio_booking.services.discount.discount_validator import compute_discount_amount, evaluate_discount

NOW = datetime(2030, 6, 1, 9, 0)


def _terms(**overrides):
    data = {
        "id": "disc-1",
        "studio_id": "studio-1",
        "code": "HEMAT10",
        "type": DiscountType.PERCENTAGE,
        "value": Decimal("10"),
        "minimum_amount": Decimal("100000"),
    }
    data.update(overrides)
    return DiscountTerms(**data)


def test_valid_percentage_discount():
    result = evaluate_discount(_terms(), Decimal("600000"), "studio-1", NOW)

    assert result.is_valid
    assert result.discount_amount == Decimal("60000")
    assert result.error is None


def test_other_studio_is_rejected():
    result = evaluate_discount(_terms(), Decimal("600000"), "studio-2", NOW)

    assert not result.is_valid
    assert result.discount_amount == Decimal("0")
    assert "studio" in result.error


def test_checks_stop_at_first_failure():
    terms = _terms(is_active=False, valid_until=NOW - timedelta(days=1), usage_limit=1, used_count=1)

    result = evaluate_discount(terms, Decimal("10"), "studio-1", NOW)

    assert result.error == "Discount code is not active"


def test_validity_window():
    early = evaluate_discount(_terms(valid_from=NOW + timedelta(hours=1)), Decimal("600000"), "studio-1", NOW)
    late = evaluate_discount(_terms(valid_until=NOW - timedelta(seconds=1)), Decimal("600000"), "studio-1", NOW)

    assert early.error == "Discount code is not yet valid"
    assert late.error == "Discount code has expired"


def test_usage_limit_reached():
    result = evaluate_discount(_terms(usage_limit=3, used_count=3), Decimal("600000"), "studio-1", NOW)

    assert not result.is_valid
    assert "usage limit" in result.error


def test_minimum_amount():
    result = evaluate_discount(_terms(minimum_amount=Decimal("700000")), Decimal("600000"), "studio-1", NOW)

    assert not result.is_valid
    assert result.error.startswith("Minimum booking amount")


def test_fixed_amount_never_exceeds_base():
    terms = _terms(type=DiscountType.FIXED_AMOUNT, value=Decimal("150000"), minimum_amount=Decimal("0"))

    assert compute_discount_amount(terms, Decimal("100000")) == Decimal("100000")
    assert compute_discount_amount(terms, Decimal("400000")) == Decimal("150000")


def test_percentage_respects_cap():
    terms = _terms(maximum_discount=Decimal("80000"))

    assert compute_discount_amount(terms, Decimal("2000000")) == Decimal("80000")


def test_scope_limits_the_base():
    terms = _terms(applies_to=DiscountScope.ADDONS)

    result = evaluate_discount(
        terms,
        Decimal("600000"),
        "studio-1",
        NOW,
        package_amount=Decimal("500000"),
        addon_amount=Decimal("100000"),
    )

    assert result.discount_amount == Decimal("10000")


def test_same_inputs_same_answer():
    terms = _terms(usage_limit=10, used_count=2)

    first = evaluate_discount(terms, Decimal("250000"), "studio-1", NOW)
    second = evaluate_discount(terms, Decimal("250000"), "studio-1", NOW)

    assert first == second
