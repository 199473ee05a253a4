from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_user_id, get_session
from ..infrastructure.repositories import SqlAlchemyBlockedDayRepository, SqlAlchemyBookingRepository
from ..schemas import BlockDayRequest, BlockDayResult, BlockedDayRead, Message
from ..usecases import blocked_days as blocked_day_usecase
from ..usecases.blocked_days import BlockOutcome
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="/blocked-days", tags=["blocked-days"], dependencies=[Depends(get_current_user_id)])

_OUTCOME_MESSAGES = {
    BlockOutcome.BLOCKED: "day blocked",
    BlockOutcome.ALREADY_BLOCKED: "day is already blocked",
    BlockOutcome.REJECTED_HAS_BOOKINGS: "day has bookings and cannot be blocked",
}


@router.post("", response_model=BlockDayResult)
async def block_day(
    payload: BlockDayRequest,
    session: AsyncSession = Depends(get_session),
) -> BlockDayResult:
    blocked_repo = SqlAlchemyBlockedDayRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        async with session.begin():
            outcome, record = await blocked_day_usecase.block_day(blocked_repo, booking_repo, day=payload.day)
    except IntegrityError:
        # uq_blocked_days_day: a concurrent request blocked the day first
        outcome, record = BlockOutcome.ALREADY_BLOCKED, None

    if outcome == BlockOutcome.BLOCKED and record is not None:
        try:
            emit_audit_log(action="day.blocked", initiator="staff", day=record.day, extra={"blocked_day_id": record.id})
        except RuntimeError:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record audit log")

    return BlockDayResult(
        outcome=outcome,
        blocked=outcome != BlockOutcome.REJECTED_HAS_BOOKINGS,
        message=_OUTCOME_MESSAGES[outcome],
    )


@router.get("", response_model=List[BlockedDayRead])
async def list_blocked_days(session: AsyncSession = Depends(get_session)) -> list[BlockedDayRead]:
    blocked_repo = SqlAlchemyBlockedDayRepository(session)
    rows = await blocked_day_usecase.list_blocked_days(blocked_repo)
    return [BlockedDayRead.from_db(blocked_day=row) for row in rows]


@router.delete("/{blocked_day_id}", response_model=Message)
async def unblock_day(
    blocked_day_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> Message:
    blocked_repo = SqlAlchemyBlockedDayRepository(session)
    async with session.begin():
        removed = await blocked_day_usecase.unblock_day(blocked_repo, blocked_day_id=blocked_day_id)

    if removed is not None:
        try:
            emit_audit_log(action="day.unblocked", initiator="staff", day=removed.day, extra={"blocked_day_id": removed.id})
        except RuntimeError:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record audit log")

    # Removing an unknown id still answers 200.
    return Message(message="blocked day removed")
