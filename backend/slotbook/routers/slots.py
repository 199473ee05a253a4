from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_clock, get_day_template, get_session
from ..domain.errors import DayBlockedError, DayInPastError, InvalidDayFormatError
from ..domain.services import DayTemplate
from ..infrastructure.repositories import SqlAlchemyBlockedDayRepository, SqlAlchemyBookingRepository
from ..usecases import availability as availability_usecase
from ..utils.time import VenueClock

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=List[str])
async def list_available_slots(
    day: Optional[str] = Query(default=None, description="Local day, YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
    clock: VenueClock = Depends(get_clock),
    template: DayTemplate = Depends(get_day_template),
) -> list[str]:
    booking_repo = SqlAlchemyBookingRepository(session)
    blocked_repo = SqlAlchemyBlockedDayRepository(session)
    try:
        return await availability_usecase.list_available_slots(
            booking_repo,
            blocked_repo,
            day=day,
            clock=clock,
            template=template.slots_for_day(),
        )
    except InvalidDayFormatError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid day format, use YYYY-MM-DD")
    except DayInPastError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cannot book days before today")
    except DayBlockedError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="day unavailable")
