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

__all__ = [
    "add_addon",
    "apply_discount",
    "calculate_deposit",
    "calculate_quote",
    "recompute",
    "remove_addon",
    "remove_discount",
    "set_payment_option",
    "validate_requested_deposit",
]
