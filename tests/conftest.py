from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from studio_booking.config.database import build_session_factory, init_db
from studio_booking.core.permissions import ActorContext
from studio_booking.models import Addon, Discount, Facility, Package, PackageAddon, Studio
from studio_booking.models.base.enums import (
    ActorRole,
    AddonPricingType,
    AddonType,
    DiscountScope,
    DiscountType,
)
from studio_booking.schemas.booking.quote import AddonRequest
from studio_booking.schemas.booking.reservation import CustomerInfo, RecordedPayment, ReservationCreate
from studio_booking.services.availability.availability_service import AvailabilityService
from studio_booking.services.booking.reservation_service import ReservationService
from studio_booking.services.discount.discount_service import DiscountService

EVENT_DATE = date(2030, 6, 17)
NOW = datetime(2030, 6, 1, 9, 0)

OPEN_EVERY_DAY = {
    day: {"open": "09:00", "close": "21:00", "is_open": True}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    db = build_session_factory(engine)()
    yield db
    db.close()


@pytest.fixture
def studio(session):
    studio = Studio(name="Lumiere Studio", phone="0215550100", operating_hours=OPEN_EVERY_DAY)
    session.add(studio)
    session.commit()
    return studio


@pytest.fixture
def other_studio(session):
    studio = Studio(name="Second Studio", operating_hours=OPEN_EVERY_DAY)
    session.add(studio)
    session.commit()
    return studio


@pytest.fixture
def facility(session, studio):
    facility = Facility(studio_id=studio.id, name="Makeup Room A")
    session.add(facility)
    session.commit()
    return facility


@pytest.fixture
def package(session, studio):
    package = Package(
        studio_id=studio.id,
        name="Family Portrait",
        price=Decimal("500000"),
        duration_minutes=120,
        dp_percentage=50,
    )
    session.add(package)
    session.commit()
    return package


@pytest.fixture
def print_addon(session, studio):
    addon = Addon(
        studio_id=studio.id,
        name="Extra 10R Print",
        type=AddonType.PRINTING,
        price=Decimal("50000"),
        max_quantity=5,
    )
    session.add(addon)
    session.commit()
    return addon


@pytest.fixture
def makeup_addon(session, studio, facility):
    addon = Addon(
        studio_id=studio.id,
        facility_id=facility.id,
        name="Makeup Room",
        type=AddonType.MAKEUP,
        price=Decimal("0"),
        pricing_type=AddonPricingType.HOURLY,
        hourly_rate=Decimal("100000"),
        max_quantity=4,
    )
    session.add(addon)
    session.commit()
    return addon


@pytest.fixture
def album_addon(session, studio, package):
    addon = Addon(
        studio_id=studio.id,
        name="Digital Album",
        type=AddonType.STORAGE,
        price=Decimal("75000"),
    )
    session.add(addon)
    session.flush()
    session.add(PackageAddon(package_id=package.id, addon_id=addon.id, is_included=True, quantity=1))
    session.commit()
    return addon


@pytest.fixture
def discount(session, studio):
    discount = Discount(
        studio_id=studio.id,
        code="HEMAT10",
        name="Ten percent off",
        type=DiscountType.PERCENTAGE,
        value=Decimal("10"),
        minimum_amount=Decimal("100000"),
        maximum_discount=Decimal("80000"),
        usage_limit=5,
        used_count=0,
        applies_to=DiscountScope.ALL,
    )
    session.add(discount)
    session.commit()
    return discount


@pytest.fixture
def admin():
    return ActorContext(role=ActorRole.ADMIN, user_id="admin-1")


@pytest.fixture
def cs(studio):
    return ActorContext(role=ActorRole.CS, studio_id=studio.id, user_id="cs-1")


@pytest.fixture
def guest():
    return ActorContext.anonymous()


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def reservation_service(session, notifications):
    return ReservationService(session, notifier=notifications.append, isolation_level=None)


@pytest.fixture
def availability_service(session):
    return AvailabilityService(session)


@pytest.fixture
def discount_service(session):
    return DiscountService(session)


@pytest.fixture
def booking_request(studio, package):
    """Factory for booking submissions on ``EVENT_DATE``."""

    def build(start=time(10, 0), addons=(), recorded_amount=None, phone="081234567890", **overrides):
        recorded = None
        if recorded_amount is not None:
            recorded = RecordedPayment(
                amount=Decimal(recorded_amount),
                payment_type="full" if Decimal(recorded_amount) >= package.price else "dp",
                payment_method="bank_transfer",
            )
        data = {
            "studio_id": studio.id,
            "package_id": package.id,
            "reservation_date": EVENT_DATE,
            "start_time": start,
            "customer": CustomerInfo(full_name="Ayu Lestari", phone=phone, email="ayu@example.com"),
            "addons": [a if isinstance(a, AddonRequest) else AddonRequest(**a) for a in addons],
            "recorded_payment": recorded,
        }
        data.update(overrides)
        return ReservationCreate(**data)

    return build
