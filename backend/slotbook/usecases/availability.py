import logging
from typing import Sequence

from ..domain.errors import DayBlockedError, DayInPastError
from ..domain.repositories import BlockedDayRepository, BookingRepository
from ..domain.services import AvailabilitySnapshot, occupies_slot, parse_day, resolve_available_slots
from ..utils.time import VenueClock

logger = logging.getLogger(__name__)


async def is_day_blocked(blocked_repo: BlockedDayRepository, day: str) -> bool:
    record = await blocked_repo.find_by_day(day)
    return record is not None and record.blocked


async def list_available_slots(
    booking_repo: BookingRepository,
    blocked_repo: BlockedDayRepository,
    *,
    day: str | None,
    clock: VenueClock,
    template: Sequence[str],
) -> list[str]:
    day = parse_day(day)
    now = clock.now()
    if day < now.day:
        raise DayInPastError("cannot book days before today")
    if await is_day_blocked(blocked_repo, day):
        raise DayBlockedError("day unavailable")

    bookings = await booking_repo.find_by_day(day)
    occupied = frozenset(booking.slot for booking in bookings if occupies_slot(booking.status))
    available = resolve_available_slots(AvailabilitySnapshot(day=day, now=now, occupied=occupied), template)
    logger.debug(
        "availability day=%s now=%s %02d:%02d occupied=%d available=%s",
        day,
        now.day,
        now.hour,
        now.minute,
        len(occupied),
        available,
    )
    return available
