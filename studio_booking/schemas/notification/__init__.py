from studio_booking.schemas.notification.notification import BookingNotificationPayload

__all__ = ["BookingNotificationPayload"]
