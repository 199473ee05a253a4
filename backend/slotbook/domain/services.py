import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from ..models import BookingStatus
from ..utils.time import LocalNow
from .errors import InvalidDayFormatError, InvalidSlotError

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLOT_RE = re.compile(r"^\d{2}:\d{2}$")


def parse_day(value: str | None) -> str:
    """Return `value` unchanged if it is a real calendar date written as YYYY-MM-DD."""
    if value is None or not _DAY_RE.match(value):
        raise InvalidDayFormatError("day must use the YYYY-MM-DD format")
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDayFormatError("day is not a valid calendar date") from exc
    return value


def slot_hour_minute(slot: str) -> tuple[int, int]:
    if not _SLOT_RE.match(slot):
        raise InvalidSlotError("slot must use the HH:MM format")
    hour, minute = (int(part) for part in slot.split(":"))
    if hour > 23 or minute > 59:
        raise InvalidSlotError("slot is not a valid time of day")
    return hour, minute


def combine_start(day: str, slot: str) -> str:
    return f"{day}T{slot}:00"


class DayTemplate:
    """The fixed, ordered slot starts offered on every calendar day."""

    def __init__(self, slots: Iterable[str]) -> None:
        ordered = tuple(slots)
        for slot in ordered:
            slot_hour_minute(slot)
        if len(set(ordered)) != len(ordered):
            raise ValueError("day template contains duplicate slots")
        self._slots = ordered

    def slots_for_day(self) -> tuple[str, ...]:
        return self._slots

    def __contains__(self, slot: object) -> bool:
        return slot in self._slots


def occupies_slot(status: BookingStatus) -> bool:
    # Completed bookings still hold their slot.
    return status != BookingStatus.CANCELLED


def is_slot_elapsed(slot: str, now: LocalNow) -> bool:
    hour, minute = slot_hour_minute(slot)
    return hour < now.hour or (hour == now.hour and minute <= now.minute)


@dataclass(frozen=True)
class AvailabilitySnapshot:
    day: str
    now: LocalNow
    occupied: frozenset[str] = field(default_factory=frozenset)


def resolve_available_slots(snapshot: AvailabilitySnapshot, template: Sequence[str]) -> list[str]:
    """
    Pure filtering step of availability: drops elapsed slots when the day is today and
    slots already held by a booking. Template order is preserved.
    """
    is_today = snapshot.day == snapshot.now.day
    available: list[str] = []
    for slot in template:
        if is_today and is_slot_elapsed(slot, snapshot.now):
            continue
        if slot in snapshot.occupied:
            continue
        available.append(slot)
    return available
