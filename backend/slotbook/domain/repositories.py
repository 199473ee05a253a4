from __future__ import annotations

from typing import Protocol

from ..models import BlockedDay, Booking, BookingStatus, User


class BookingRepository(Protocol):
    async def find_by_day_slot(self, day: str, slot: str) -> Booking | None: ...

    async def find_by_day(self, day: str) -> list[Booking]: ...

    async def find_by_external_ref(self, external_ref: str) -> Booking | None: ...

    async def has_active_on_day(self, day: str) -> bool: ...

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
        """Persist a booking.

        Raises SlotTakenError when (day, slot) is already held and
        ExternalRefInUseError when another booking owns external_ref.
        """
        ...

    async def list_all(self) -> list[Booking]: ...

    async def get(self, booking_id: int) -> Booking | None: ...

    async def update_status(self, booking: Booking, status: BookingStatus) -> Booking: ...

    async def delete(self, booking: Booking) -> None: ...

    async def delete_all_with_status(self, status: BookingStatus) -> int: ...


class BlockedDayRepository(Protocol):
    async def find_by_day(self, day: str) -> BlockedDay | None: ...

    async def create(self, day: str) -> BlockedDay:
        """Insert a block record; a concurrent duplicate surfaces as IntegrityError."""
        ...

    async def list_all(self) -> list[BlockedDay]: ...

    async def get(self, blocked_day_id: int) -> BlockedDay | None: ...

    async def delete(self, blocked_day: BlockedDay) -> None: ...


class UserRepository(Protocol):
    async def find_by_email(self, email: str) -> User | None: ...

    async def exists(self, user_id: int) -> bool: ...

    async def create(self, *, email: str, password_hash: str) -> User: ...
