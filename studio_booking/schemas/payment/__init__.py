from studio_booking.schemas.payment.payment import (
    GATEWAY_STATUS_MAP,
    PaymentFeeBreakdown,
    PaymentResponse,
    PaymentWebhookEvent,
)

__all__ = ["GATEWAY_STATUS_MAP", "PaymentWebhookEvent", "PaymentFeeBreakdown", "PaymentResponse"]
