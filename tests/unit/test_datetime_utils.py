from datetime import datetime, time, timezone

from studio_booking.utils.datetime_utils import DateTimeHelper


def test_utc_now_is_naive_utc():
    before = datetime.now(timezone.utc).replace(tzinfo=None)

    stamp = DateTimeHelper.utc_now()

    assert stamp.tzinfo is None
    assert (stamp - before).total_seconds() < 5


def test_duration_minutes():
    assert DateTimeHelper.duration_minutes(time(10, 0), time(12, 30)) == 150
