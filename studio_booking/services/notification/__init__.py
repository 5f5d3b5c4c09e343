from studio_booking.services.notification.booking_notification_service import (
    BookingNotificationService,
    NotificationKind,
)

__all__ = ["BookingNotificationService", "NotificationKind"]
