from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import EmailTakenError, ExternalRefInUseError, SlotTakenError
from ..domain.repositories import BlockedDayRepository, BookingRepository, UserRepository
from ..models import BlockedDay, Booking, BookingStatus, User, slot_key


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_day_slot(self, day: str, slot: str) -> Booking | None:
        stmt = select(Booking).where(
            Booking.day == day,
            Booking.slot == slot,
            Booking.status != BookingStatus.CANCELLED,
        )
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Booking) else None

    async def find_by_day(self, day: str) -> List[Booking]:
        rows = await self.session.scalars(select(Booking).where(Booking.day == day).order_by(Booking.slot))
        return list(rows.all())

    async def find_by_external_ref(self, external_ref: str) -> Booking | None:
        result = await self.session.scalar(select(Booking).where(Booking.external_ref == external_ref))
        return result if isinstance(result, Booking) else None

    async def has_active_on_day(self, day: str) -> bool:
        # FOR UPDATE takes next-key locks on the day index (InnoDB), holding off concurrent inserts.
        stmt = (
            select(Booking.id)
            .where(Booking.day == day, Booking.status != BookingStatus.CANCELLED)
            .limit(1)
            .with_for_update()
        )
        return await self.session.scalar(stmt) is not None

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
        now = _now()
        booking = Booking(
            external_ref=external_ref,
            customer_name=customer_name,
            customer_phone=customer_phone,
            service_label=service_label,
            day=day,
            slot=slot,
            combined_start=combined_start,
            slot_key=None if status == BookingStatus.CANCELLED else slot_key(day, slot),
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.session.add(booking)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # SQLite names the column, MySQL the constraint; both contain the column name.
            violated = str(exc.orig)
            if "slot_key" in violated:
                raise SlotTakenError("slot already booked") from exc
            if "external_ref" in violated:
                raise ExternalRefInUseError("external_ref already used by another booking") from exc
            raise
        return booking

    async def list_all(self) -> List[Booking]:
        rows = await self.session.scalars(select(Booking).order_by(Booking.combined_start, Booking.id))
        return list(rows.all())

    async def get(self, booking_id: int) -> Booking | None:
        return await self.session.get(Booking, booking_id)

    async def update_status(self, booking: Booking, status: BookingStatus) -> Booking:
        booking.status = status
        if status == BookingStatus.CANCELLED:
            booking.slot_key = None
        booking.updated_at = _now()
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def delete(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()

    async def delete_all_with_status(self, status: BookingStatus) -> int:
        result = await self.session.execute(delete(Booking).where(Booking.status == status))
        return int(result.rowcount or 0)


class SqlAlchemyBlockedDayRepository(BlockedDayRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_day(self, day: str) -> BlockedDay | None:
        result = await self.session.scalar(select(BlockedDay).where(BlockedDay.day == day))
        return result if isinstance(result, BlockedDay) else None

    async def create(self, day: str) -> BlockedDay:
        record = BlockedDay(day=day, blocked=True, created_at=_now())
        self.session.add(record)
        await self.session.flush()
        return record

    async def list_all(self) -> List[BlockedDay]:
        rows = await self.session.scalars(select(BlockedDay).order_by(BlockedDay.day))
        return list(rows.all())

    async def get(self, blocked_day_id: int) -> BlockedDay | None:
        return await self.session.get(BlockedDay, blocked_day_id)

    async def delete(self, blocked_day: BlockedDay) -> None:
        await self.session.delete(blocked_day)
        await self.session.flush()


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_email(self, email: str) -> User | None:
        result = await self.session.scalar(select(User).where(User.email == email))
        return result if isinstance(result, User) else None

    async def exists(self, user_id: int) -> bool:
        return await self.session.scalar(select(User.id).where(User.id == user_id)) is not None

    async def create(self, *, email: str, password_hash: str) -> User:
        user = User(email=email, password_hash=password_hash, created_at=_now())
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise EmailTakenError("email already registered") from exc
        return user
