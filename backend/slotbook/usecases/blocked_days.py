from enum import StrEnum

from ..domain.repositories import BlockedDayRepository, BookingRepository
from ..domain.services import parse_day
from ..models import BlockedDay


class BlockOutcome(StrEnum):
    BLOCKED = "blocked"
    ALREADY_BLOCKED = "already_blocked"
    REJECTED_HAS_BOOKINGS = "rejected_has_bookings"


async def block_day(
    blocked_repo: BlockedDayRepository,
    booking_repo: BookingRepository,
    *,
    day: str,
) -> tuple[BlockOutcome, BlockedDay | None]:
    """
    Close a whole day to bookings. Refused when any scheduled or completed booking
    exists for it. Run inside one transaction so the booking check and the insert
    see the same state.
    """
    day = parse_day(day)
    existing = await blocked_repo.find_by_day(day)
    if existing is not None:
        return BlockOutcome.ALREADY_BLOCKED, existing
    if await booking_repo.has_active_on_day(day):
        return BlockOutcome.REJECTED_HAS_BOOKINGS, None
    created = await blocked_repo.create(day)
    return BlockOutcome.BLOCKED, created


async def list_blocked_days(blocked_repo: BlockedDayRepository) -> list[BlockedDay]:
    return await blocked_repo.list_all()


async def unblock_day(blocked_repo: BlockedDayRepository, *, blocked_day_id: int) -> BlockedDay | None:
    record = await blocked_repo.get(blocked_day_id)
    if record is None:
        return None
    await blocked_repo.delete(record)
    return record
