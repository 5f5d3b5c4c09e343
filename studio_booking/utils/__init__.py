from studio_booking.utils.datetime_utils import DateTimeHelper

__all__ = ["DateTimeHelper"]
