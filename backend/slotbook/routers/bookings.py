import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_current_user_id, get_day_template, get_session
from ..domain.errors import (
    BookingNotFoundError,
    DayBlockedError,
    ExternalRefInUseError,
    InvalidDayFormatError,
    InvalidSlotError,
    SlotTakenError,
)
from ..domain.services import DayTemplate
from ..infrastructure.repositories import SqlAlchemyBlockedDayRepository, SqlAlchemyBookingRepository
from ..models import BookingStatus
from ..schemas import BookingCreate, BookingCreated, BookingRead, BookingStatusUpdated, DeletedCount, Message
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _audit_failed(exc: RuntimeError) -> HTTPException:
    logger.error("audit log failed: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="failed to record audit log")


@router.post("", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    template: DayTemplate = Depends(get_day_template),
) -> BookingCreated:
    booking_repo = SqlAlchemyBookingRepository(session)
    blocked_repo = SqlAlchemyBlockedDayRepository(session)
    async with session.begin():
        try:
            booking, created = await booking_usecase.admit_booking(
                booking_repo,
                blocked_repo,
                template=template,
                day=payload.day,
                slot=payload.slot,
                customer_name=payload.customer_name,
                customer_phone=payload.customer_phone,
                service_label=payload.service_label,
                external_ref=payload.external_ref,
                reject_on_blocked_day=get_settings().reject_bookings_on_blocked_days,
            )
        except SlotTakenError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="slot already booked")
        except DayBlockedError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="day unavailable")
        except (InvalidDayFormatError, InvalidSlotError) as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except ExternalRefInUseError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="external_ref already in use")

    if created:
        try:
            emit_audit_log(
                action="booking.created",
                initiator="customer",
                booking_id=booking.id,
                external_ref=booking.external_ref,
                day=booking.day,
                slot=booking.slot,
                status_to=booking.status,
            )
        except RuntimeError as exc:
            raise _audit_failed(exc)

    return BookingCreated(
        message="booking created" if created else "booking already exists",
        external_ref=booking.external_ref,
        booking=BookingRead.from_db(booking=booking),
    )


@router.get("", response_model=List[BookingRead])
async def list_bookings(
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> list[BookingRead]:
    booking_repo = SqlAlchemyBookingRepository(session)
    rows = await booking_usecase.list_bookings(booking_repo)
    return [BookingRead.from_db(booking=booking) for booking in rows]


@router.put("/{booking_id}/status", response_model=BookingStatusUpdated)
async def complete_booking(
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> BookingStatusUpdated:
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        try:
            booking, previous = await booking_usecase.complete_booking(booking_repo, booking_id=booking_id)
        except BookingNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")

    if previous != BookingStatus.COMPLETED:
        try:
            emit_audit_log(
                action="booking.completed",
                initiator="staff",
                booking_id=booking.id,
                external_ref=booking.external_ref,
                day=booking.day,
                slot=booking.slot,
                user_id=user_id,
                status_from=previous,
                status_to=booking.status,
            )
        except RuntimeError as exc:
            raise _audit_failed(exc)

    return BookingStatusUpdated(message="booking marked as completed", booking_id=booking.id, status=booking.status)


@router.delete("/completed", response_model=DeletedCount)
async def delete_completed_bookings(
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> DeletedCount:
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        deleted = await booking_usecase.delete_completed_bookings(booking_repo)
    logger.info("deleted %d completed bookings", deleted)

    try:
        emit_audit_log(
            action="booking.purged",
            initiator="staff",
            user_id=user_id,
            status_from=BookingStatus.COMPLETED,
            extra={"deleted": deleted},
        )
    except RuntimeError as exc:
        raise _audit_failed(exc)

    return DeletedCount(message="completed bookings deleted", deleted=deleted)


@router.delete("/{booking_id}", response_model=Message)
async def delete_booking(
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> Message:
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        try:
            booking = await booking_usecase.delete_booking(booking_repo, booking_id=booking_id)
        except BookingNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")

    try:
        emit_audit_log(
            action="booking.deleted",
            initiator="staff",
            booking_id=booking_id,
            external_ref=booking.external_ref,
            day=booking.day,
            slot=booking.slot,
            user_id=user_id,
            status_from=booking.status,
        )
    except RuntimeError as exc:
        raise _audit_failed(exc)

    return Message(message="booking deleted")
