class BookingError(Exception):
    """Base class for business-rule refusals raised by the use cases."""


class InvalidDayFormatError(BookingError):
    pass


class InvalidSlotError(BookingError):
    pass


class DayInPastError(BookingError):
    pass


class DayBlockedError(BookingError):
    pass


class SlotTakenError(BookingError):
    pass


class BookingNotFoundError(BookingError):
    pass


class EmailTakenError(BookingError):
    pass


class InvalidCredentialsError(BookingError):
    pass


class ExternalRefInUseError(BookingError):
    pass
