import uuid

from ..domain.errors import (
    BookingNotFoundError,
    DayBlockedError,
    ExternalRefInUseError,
    InvalidSlotError,
    SlotTakenError,
)
from ..domain.repositories import BlockedDayRepository, BookingRepository
from ..domain.services import DayTemplate, combine_start, occupies_slot, parse_day, slot_hour_minute
from ..models import Booking, BookingStatus
from .availability import is_day_blocked


def generate_external_ref() -> str:
    return str(uuid.uuid4())


async def admit_booking(
    booking_repo: BookingRepository,
    blocked_repo: BlockedDayRepository,
    *,
    template: DayTemplate,
    day: str,
    slot: str,
    customer_name: str,
    customer_phone: str,
    service_label: str,
    external_ref: str | None = None,
    reject_on_blocked_day: bool = False,
) -> tuple[Booking, bool]:
    """Admit a booking; the flag is False when a retry replays an existing one."""
    day = parse_day(day)
    slot_hour_minute(slot)
    if slot not in template:
        raise InvalidSlotError("slot is not offered")

    if external_ref:
        previous = await booking_repo.find_by_external_ref(external_ref)
        if previous is not None:
            # A retry of an admission that already went through.
            if previous.day == day and previous.slot == slot:
                return previous, False
            raise ExternalRefInUseError("external_ref already used by another booking")

    if reject_on_blocked_day and await is_day_blocked(blocked_repo, day):
        raise DayBlockedError("day unavailable")

    existing = await booking_repo.find_by_day_slot(day, slot)
    if existing is not None and occupies_slot(existing.status):
        raise SlotTakenError("slot already booked")

    # insert() enforces (day, slot) exclusivity itself; losing a race also raises SlotTakenError.
    booking = await booking_repo.insert(
        external_ref=external_ref or generate_external_ref(),
        customer_name=customer_name,
        customer_phone=customer_phone,
        service_label=service_label,
        day=day,
        slot=slot,
        combined_start=combine_start(day, slot),
        status=BookingStatus.SCHEDULED,
    )
    return booking, True


async def list_bookings(booking_repo: BookingRepository) -> list[Booking]:
    return await booking_repo.list_all()


async def complete_booking(
    booking_repo: BookingRepository,
    *,
    booking_id: int,
) -> tuple[Booking, BookingStatus]:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        raise BookingNotFoundError("booking not found")
    previous = booking.status
    # Idempotent: completing twice reports the same outcome
    if previous == BookingStatus.COMPLETED:
        return booking, previous
    updated = await booking_repo.update_status(booking, BookingStatus.COMPLETED)
    return updated, previous


async def delete_booking(booking_repo: BookingRepository, *, booking_id: int) -> Booking:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        raise BookingNotFoundError("booking not found")
    await booking_repo.delete(booking)
    return booking


async def delete_completed_bookings(booking_repo: BookingRepository) -> int:
    return await booking_repo.delete_all_with_status(BookingStatus.COMPLETED)
