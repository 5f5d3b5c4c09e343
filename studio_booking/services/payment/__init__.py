from studio_booking.services.payment.payment_fee_calculator import calculate_payment_fee, format_fee

__all__ = ["calculate_payment_fee", "format_fee"]
