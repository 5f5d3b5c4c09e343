from datetime import datetime, time

import pytest
from sqlalchemy import create_engine

from studio_booking.config.database import build_session_factory, init_db
from studio_booking.models import Reservation, ReservationAddon
from studio_booking.services.availability.availability_service import AvailabilityService
from studio_booking.services.base.service_result import ErrorCode
from studio_booking.services.booking.reservation_service import ReservationService

NOW = datetime(2030, 6, 1, 9, 0)


@pytest.fixture
def engine(tmp_path):
    # A file database gives every session its own connection
    engine = create_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def rival_session(engine):
    db = build_session_factory(engine)()
    yield db
    db.close()


def test_slot_taken_after_check_is_rejected(session, rival_session, admin, guest, booking_request, studio):
    request = booking_request(start=time(10, 0))
    check = AvailabilityService(session).check_slot(studio.id, request.reservation_date, time(10, 0), time(12, 0))
    assert check.data.available

    rival = ReservationService(rival_session, isolation_level=None).create_reservation(
        admin, booking_request(start=time(11, 0)), now=NOW
    )
    assert rival.is_success

    result = ReservationService(session, isolation_level=None).create_reservation(guest, request, now=NOW)

    assert result.error_code == ErrorCode.CONFLICT
    assert session.query(Reservation).count() == 1


def test_facility_taken_after_check_is_rejected(session, rival_session, admin, guest, booking_request, makeup_addon):
    makeup = [{"addon_id": makeup_addon.id, "start_time": time(14, 0), "duration_hours": 1}]
    request = booking_request(start=time(10, 0), addons=makeup)
    check = AvailabilityService(session).check_facility_addon(
        makeup_addon.facility_id, request.reservation_date, time(14, 0), duration_hours=1
    )
    assert check.data.available

    rival = ReservationService(rival_session, isolation_level=None).create_reservation(
        admin, booking_request(start=time(12, 0), addons=makeup), now=NOW
    )
    assert rival.is_success

    result = ReservationService(session, isolation_level=None).create_reservation(guest, request, now=NOW)

    assert result.error_code == ErrorCode.CONFLICT
    assert session.query(ReservationAddon).count() == 1
