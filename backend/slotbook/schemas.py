from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain.errors import BookingError
from .domain.services import parse_day, slot_hour_minute
from .models import BlockedDay, Booking, BookingStatus
from .usecases.blocked_days import BlockOutcome


def _check_day(value: str) -> str:
    try:
        return parse_day(value)
    except BookingError as exc:
        raise ValueError(str(exc)) from exc


class BookingCreate(BaseModel):
    # Unknown keys (id, status, ...) are dropped, never copied onto the record.
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    day: str
    slot: str
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str = Field(min_length=1, max_length=50)
    service_label: str = Field(min_length=1, max_length=255)
    external_ref: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @field_validator("day")
    @classmethod
    def _validate_day(cls, value: str) -> str:
        return _check_day(value)

    @field_validator("slot")
    @classmethod
    def _validate_slot(cls, value: str) -> str:
        try:
            slot_hour_minute(value)
        except BookingError as exc:
            raise ValueError(str(exc)) from exc
        return value


class BookingRead(BaseModel):
    booking_id: int
    external_ref: str
    customer_name: str
    customer_phone: str
    service_label: str
    day: str
    slot: str
    combined_start: str
    status: BookingStatus
    created_at: datetime

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingRead":
        return cls(
            booking_id=booking.id,
            external_ref=booking.external_ref,
            customer_name=booking.customer_name,
            customer_phone=booking.customer_phone,
            service_label=booking.service_label,
            day=booking.day,
            slot=booking.slot,
            combined_start=booking.combined_start,
            status=booking.status,
            created_at=booking.created_at,
        )


class BookingCreated(BaseModel):
    message: str
    external_ref: str
    booking: BookingRead


class BookingStatusUpdated(BaseModel):
    message: str
    booking_id: int
    status: BookingStatus


class DeletedCount(BaseModel):
    message: str
    deleted: int


class Message(BaseModel):
    message: str


class BlockDayRequest(BaseModel):
    day: str

    @field_validator("day")
    @classmethod
    def _validate_day(cls, value: str) -> str:
        return _check_day(value)


class BlockedDayRead(BaseModel):
    blocked_day_id: int
    day: str
    blocked: bool

    @classmethod
    def from_db(cls, *, blocked_day: BlockedDay) -> "BlockedDayRead":
        return cls(blocked_day_id=blocked_day.id, day=blocked_day.day, blocked=blocked_day.blocked)


class BlockDayResult(BaseModel):
    outcome: BlockOutcome
    blocked: bool
    message: str


class Credentials(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    token: str


class ServiceRead(BaseModel):
    id: int
    name: str
    price: int
