import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest
from slotbook.domain.errors import EmailTakenError, ExternalRefInUseError, SlotTakenError
from slotbook.models import BlockedDay, Booking, BookingStatus, User, slot_key
from slotbook.utils.time import LocalNow


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FakeBookingRepo:
    """In-memory ledger. insert() checks and stores without yielding, like a unique index."""

    def __init__(self) -> None:
        self.rows: dict[int, Booking] = {}
        self._next_id = 1
        self.insert_calls = 0

    def add(self, *, day: str, slot: str, status: BookingStatus = BookingStatus.SCHEDULED, external_ref: str | None = None) -> Booking:
        now = _utc_now_naive()
        booking = Booking(
            id=self._next_id,
            external_ref=external_ref or f"ref-{self._next_id}",
            customer_name="Ana",
            customer_phone="555-0100",
            service_label="Haircut",
            day=day,
            slot=slot,
            combined_start=f"{day}T{slot}:00",
            slot_key=None if status == BookingStatus.CANCELLED else slot_key(day, slot),
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.rows[booking.id] = booking
        self._next_id += 1
        return booking

    async def find_by_day_slot(self, day: str, slot: str) -> Optional[Booking]:
        found = None
        for booking in self.rows.values():
            if booking.day == day and booking.slot == slot and booking.status != BookingStatus.CANCELLED:
                found = booking
        # Yield after reading so concurrent admissions all pass the pre-check.
        await asyncio.sleep(0)
        return found

    async def find_by_day(self, day: str) -> list[Booking]:
        return [b for b in self.rows.values() if b.day == day]

    async def find_by_external_ref(self, external_ref: str) -> Optional[Booking]:
        for booking in self.rows.values():
            if booking.external_ref == external_ref:
                return booking
        return None

    async def has_active_on_day(self, day: str) -> bool:
        return any(b.day == day and b.status != BookingStatus.CANCELLED for b in self.rows.values())

    async def insert(
        self,
        *,
        external_ref: str,
        customer_name: str,
        customer_phone: str,
        service_label: str,
        day: str,
        slot: str,
        combined_start: str,
        status: BookingStatus,
    ) -> Booking:
        self.insert_calls += 1
        key = slot_key(day, slot)
        if any(b.slot_key == key for b in self.rows.values()):
            raise SlotTakenError("slot already booked")
        if any(b.external_ref == external_ref for b in self.rows.values()):
            raise ExternalRefInUseError("external_ref already used by another booking")
        booking = self.add(day=day, slot=slot, status=status, external_ref=external_ref)
        booking.customer_name = customer_name
        booking.customer_phone = customer_phone
        booking.service_label = service_label
        booking.combined_start = combined_start
        return booking

    async def list_all(self) -> list[Booking]:
        return list(self.rows.values())

    async def get(self, booking_id: int) -> Optional[Booking]:
        return self.rows.get(booking_id)

    async def update_status(self, booking: Booking, status: BookingStatus) -> Booking:
        booking.status = status
        return booking

    async def delete(self, booking: Booking) -> None:
        del self.rows[booking.id]

    async def delete_all_with_status(self, status: BookingStatus) -> int:
        doomed = [i for i, b in self.rows.items() if b.status == status]
        for booking_id in doomed:
            del self.rows[booking_id]
        return len(doomed)


class FakeBlockedDayRepo:
    def __init__(self) -> None:
        self.rows: dict[int, BlockedDay] = {}
        self._next_id = 1

    async def find_by_day(self, day: str) -> Optional[BlockedDay]:
        for record in self.rows.values():
            if record.day == day:
                return record
        return None

    async def create(self, day: str) -> BlockedDay:
        record = BlockedDay(id=self._next_id, day=day, blocked=True, created_at=_utc_now_naive())
        self.rows[record.id] = record
        self._next_id += 1
        return record

    async def list_all(self) -> list[BlockedDay]:
        return list(self.rows.values())

    async def get(self, blocked_day_id: int) -> Optional[BlockedDay]:
        return self.rows.get(blocked_day_id)

    async def delete(self, blocked_day: BlockedDay) -> None:
        del self.rows[blocked_day.id]


class FakeUserRepo:
    def __init__(self) -> None:
        self.rows: dict[int, User] = {}

    async def find_by_email(self, email: str) -> Optional[User]:
        for user in self.rows.values():
            if user.email == email:
                return user
        return None

    async def exists(self, user_id: int) -> bool:
        return user_id in self.rows

    async def create(self, *, email: str, password_hash: str) -> User:
        if await self.find_by_email(email) is not None:
            raise EmailTakenError("email already registered")
        user = User(id=len(self.rows) + 1, email=email, password_hash=password_hash, created_at=_utc_now_naive())
        self.rows[user.id] = user
        return user


class FixedClock:
    def __init__(self, day: str, hour: int = 0, minute: int = 0) -> None:
        self.current = LocalNow(day=day, hour=hour, minute=minute)

    def now(self) -> LocalNow:
        return self.current


class DummySession:
    """Minimal async session stub that supports `async with session.begin()`."""

    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


@pytest.fixture
def booking_repo() -> FakeBookingRepo:
    return FakeBookingRepo()


@pytest.fixture
def blocked_repo() -> FakeBlockedDayRepo:
    return FakeBlockedDayRepo()


@pytest.fixture
def user_repo() -> FakeUserRepo:
    return FakeUserRepo()


@pytest.fixture
def make_clock():
    return FixedClock


@pytest.fixture
def dummy_session() -> DummySession:
    return DummySession()
