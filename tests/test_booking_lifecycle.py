import asyncio
from datetime import date, datetime, time

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.core.database import create_schema
from src.core.exceptions import (
    BookingTimeoutError,
    BookingValidationError,
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from src.core.locks import BookingLockManager
from src.modules.bookings.models import Booking
from src.modules.bookings.schemas import BookingCreate, BookingUpdate
from src.modules.bookings.service import BookingService, ensure_transition
from src.modules.scheduling.schemas import (
    AppointmentTypeCreate,
    AppointmentTypeUpdate,
    SchedulingSettingsUpdate,
    TimeRangeSchema,
)
from src.modules.scheduling.service import SchedulingService
from src.shared.enums import BookingStatus, Weekday

BREEDER_ID = "breeder-1"
MONDAY = date(2025, 6, 2)
NOW = datetime(2025, 6, 1, 8, 0)


async def _configure_breeder(db_session, **overrides):
    scheduling = SchedulingService(db_session)
    values = {
        "timezone": "America/New_York",
        "min_advance_booking_hours": 0,
        "max_advance_booking_days": 7,
        "slot_interval_minutes": 30,
        "booking_page_enabled": True,
        "weekly_availability": {Weekday.MONDAY: [TimeRangeSchema(start="09:00", end="12:00")]},
    }
    values.update(overrides)
    await scheduling.save_settings(BREEDER_ID, SchedulingSettingsUpdate(**values))
    visit = await scheduling.create_appointment_type(
        BREEDER_ID,
        AppointmentTypeCreate(
            name="Kennel Visit",
            duration_minutes=30,
            buffer_before_minutes=15,
            buffer_after_minutes=15,
        ),
    )
    return scheduling, visit.appointment_type_id


def _request(appointment_type_id: str, slot: time, day: date = MONDAY, **overrides) -> BookingCreate:
    values = {
        "appointment_type_id": appointment_type_id,
        "date": day,
        "slot_start": slot,
        "customer_name": "  Dana Smith ",
        "customer_email": "Dana@Example.com",
        "customer_phone": "555-0100",
        "notes": "Interested in the spring litter",
    }
    values.update(overrides)
    return BookingCreate(**values)


async def _count_bookings(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(Booking))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_booking_persists_pending_booking(db_session):
    _, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())

    booking = await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    assert booking.status == BookingStatus.PENDING
    assert booking.start_time == datetime(2025, 6, 2, 10, 0)
    assert booking.end_time == datetime(2025, 6, 2, 10, 30)
    assert booking.appointment_type_name == "Kennel Visit"
    assert booking.customer_name == "Dana Smith"
    assert booking.customer_email == "dana@example.com"
    assert booking.booked_at == NOW
    assert await _count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_new_booking_removes_buffered_slots(db_session):
    scheduling, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    day = await scheduling.get_available_slots(BREEDER_ID, type_id, MONDAY, now=NOW)

    assert day.slots == ["09:00", "11:00", "11:30"]
    assert day.labels == ["09:00 AM", "11:00 AM", "11:30 AM"]


@pytest.mark.asyncio
async def test_slot_taken_after_fetch_raises_conflict(db_session):
    scheduling, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())

    fetched = await scheduling.get_available_slots(BREEDER_ID, type_id, MONDAY, now=NOW)
    assert "10:00" in fetched.slots

    await service.create_booking(
        BREEDER_ID,
        _request(type_id, time(10, 0), customer_email="first@example.com"),
        now=NOW,
    )
    with pytest.raises(ConflictError):
        await service.create_booking(
            BREEDER_ID,
            _request(type_id, time(10, 0), customer_email="second@example.com"),
            now=NOW,
        )

    stored = (await db_session.execute(select(Booking))).scalars().all()
    assert len(stored) == 1
    assert stored[0].customer_email == "first@example.com"


@pytest.mark.asyncio
async def test_buffer_overlap_counts_as_conflict(db_session):
    _, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    with pytest.raises(ConflictError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(10, 30)), now=NOW)
    assert await _count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_date_past_max_advance_is_validation_error(db_session):
    scheduling, type_id = await _configure_breeder(db_session)
    eight_days_out = date(2025, 6, 9)

    with pytest.raises(BookingValidationError):
        await scheduling.get_available_slots(BREEDER_ID, type_id, eight_days_out, now=NOW)

    service = BookingService(db_session, BookingLockManager())
    with pytest.raises(BookingValidationError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0), day=eight_days_out), now=NOW)
    assert await _count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_off_grid_and_too_soon_starts_are_rejected(db_session):
    _, type_id = await _configure_breeder(db_session, min_advance_booking_hours=26)
    service = BookingService(db_session, BookingLockManager())

    with pytest.raises(BookingValidationError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(10, 15)), now=NOW)
    with pytest.raises(BookingValidationError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(9, 30)), now=NOW)
    with pytest.raises(BookingValidationError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(12, 0)), now=NOW)

    booking = await service.create_booking(BREEDER_ID, _request(type_id, time(10, 30)), now=NOW)
    assert booking.start_time.time() == time(10, 30)


@pytest.mark.asyncio
async def test_disabled_page_and_type_are_unavailable(db_session):
    scheduling, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())

    await scheduling.update_appointment_type(BREEDER_ID, type_id, AppointmentTypeUpdate(enabled=False))
    with pytest.raises(ConfigurationError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    await scheduling.update_appointment_type(BREEDER_ID, type_id, AppointmentTypeUpdate(enabled=True))
    await scheduling.save_settings(BREEDER_ID, SchedulingSettingsUpdate(booking_page_enabled=False))
    with pytest.raises(ConfigurationError):
        await scheduling.get_available_slots(BREEDER_ID, type_id, MONDAY, now=NOW)
    with pytest.raises(ConfigurationError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)
    assert await _count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_unknown_breeder_is_not_found(db_session):
    scheduling = SchedulingService(db_session)
    with pytest.raises(ConfigurationError) as exc_info:
        await scheduling.get_available_dates("nobody", now=NOW)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_submission_times_out_while_date_is_locked(db_session):
    _, type_id = await _configure_breeder(db_session)
    locks = BookingLockManager(acquire_timeout=5)
    service = BookingService(db_session, locks)

    async with locks.hold(BREEDER_ID, MONDAY):
        with pytest.raises(BookingTimeoutError):
            await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW, timeout=0.5)
    assert await _count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_confirm_then_terminal(db_session):
    _, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    booking = await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    confirmed = await service.confirm_booking(BREEDER_ID, booking.booking_id)
    assert confirmed.status == BookingStatus.CONFIRMED
    assert confirmed.confirmed_at is not None

    with pytest.raises(InvalidTransitionError):
        await service.confirm_booking(BREEDER_ID, booking.booking_id)
    with pytest.raises(InvalidTransitionError):
        await service.cancel_booking(BREEDER_ID, booking.booking_id)


@pytest.mark.asyncio
async def test_cancel_frees_slot(db_session):
    scheduling, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    booking = await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    cancelled = await service.cancel_booking(BREEDER_ID, booking.booking_id, reason="Customer rescheduled")
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancellation_reason == "Customer rescheduled"
    with pytest.raises(InvalidTransitionError):
        await service.confirm_booking(BREEDER_ID, booking.booking_id)

    day = await scheduling.get_available_slots(BREEDER_ID, type_id, MONDAY, now=NOW)
    assert day.slots == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    rebooked = await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)
    assert rebooked.booking_id != booking.booking_id


def test_transition_table():
    ensure_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    ensure_transition(BookingStatus.PENDING, BookingStatus.CANCELLED)
    for current in (BookingStatus.CONFIRMED, BookingStatus.CANCELLED):
        for target in BookingStatus:
            with pytest.raises(InvalidTransitionError):
                ensure_transition(current, target)


@pytest.mark.asyncio
async def test_list_and_update_bookings(db_session):
    _, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    first = await service.create_booking(BREEDER_ID, _request(type_id, time(9, 0)), now=NOW)
    second = await service.create_booking(BREEDER_ID, _request(type_id, time(11, 0)), now=NOW)
    await service.confirm_booking(BREEDER_ID, first.booking_id)

    everything = await service.list_bookings(BREEDER_ID)
    assert [item.booking_id for item in everything] == [second.booking_id, first.booking_id]
    pending = await service.list_bookings(BREEDER_ID, BookingStatus.PENDING)
    assert [item.booking_id for item in pending] == [second.booking_id]

    updated = await service.update_notes(
        BREEDER_ID,
        second.booking_id,
        BookingUpdate(internal_notes="Prefers the female pup"),
    )
    assert updated.internal_notes == "Prefers the female pup"
    assert updated.notes == "Interested in the spring litter"

    with pytest.raises(NotFoundError):
        await service.update_notes("someone-else", second.booking_id, BookingUpdate(notes="x"))


@pytest.mark.asyncio
async def test_range_query_skips_closed_days(db_session):
    scheduling, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    days = await scheduling.get_slots_for_range(BREEDER_ID, type_id, date(2025, 5, 25), date(2025, 6, 30), now=NOW)

    assert [item.date for item in days] == [MONDAY]
    assert days[0].slots == ["09:00", "11:00", "11:30"]


@pytest.mark.asyncio
async def test_concurrent_lock_holders_run_one_at_a_time():
    locks = BookingLockManager(acquire_timeout=1)
    order: list[str] = []

    async def worker(name: str):
        async with locks.hold(BREEDER_ID, MONDAY):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


def _flaky_insert(service: BookingService, failures: int):
    real_insert = service.repository.insert
    calls = {"count": 0}

    async def insert(booking):
        calls["count"] += 1
        if calls["count"] <= failures:
            raise OperationalError("INSERT INTO bookings", {}, Exception("database is locked"))
        return await real_insert(booking)

    service.repository.insert = insert
    return calls


@pytest.mark.asyncio
async def test_insert_failure_is_retried_once(db_session):
    _, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    calls = _flaky_insert(service, failures=1)

    booking = await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    assert calls["count"] == 2
    assert booking.appointment_type_id == type_id
    assert booking.appointment_type_name == "Kennel Visit"
    assert await _count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_repeated_insert_failure_surfaces_conflict(db_session):
    _, type_id = await _configure_breeder(db_session)
    service = BookingService(db_session, BookingLockManager())
    calls = _flaky_insert(service, failures=2)

    with pytest.raises(ConflictError):
        await service.create_booking(BREEDER_ID, _request(type_id, time(10, 0)), now=NOW)

    assert calls["count"] == 2
    assert await _count_bookings(db_session) == 0


@pytest.mark.parametrize(
    "email",
    ["a b@x.com", "a@@x.com", "a@.", "a@x..com", "<a>@x.com", "no-at-sign.example.com"],
)
def test_booking_request_rejects_malformed_email(email):
    with pytest.raises(ValidationError):
        _request("type", time(10, 0), customer_email=email)


def test_booking_request_lowercases_email():
    assert _request("type", time(10, 0), customer_email="Dana.Smith@Example.COM").customer_email == (
        "dana.smith@example.com"
    )


@pytest.mark.asyncio
async def test_simultaneous_submissions_store_one_booking(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}", future=True)
    await create_schema(engine)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as setup_session:
        _, type_id = await _configure_breeder(setup_session)

    locks = BookingLockManager(acquire_timeout=10)

    async def submit(index: int) -> str:
        async with SessionLocal() as session:
            service = BookingService(session, locks)
            request = _request(type_id, time(10, 0), customer_email=f"customer{index}@example.com")
            try:
                await service.create_booking(BREEDER_ID, request, now=NOW, timeout=10)
            except ConflictError:
                return "conflict"
            return "ok"

    try:
        results = await asyncio.gather(*(submit(index) for index in range(5)))
        async with SessionLocal() as check_session:
            stored = await _count_bookings(check_session)
    finally:
        await engine.dispose()

    assert sorted(results) == ["conflict"] * 4 + ["ok"]
    assert stored == 1
