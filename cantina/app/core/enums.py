import enum
from typing import TypeVar


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class DayType(str, enum.Enum):
    WEEKDAY = "WEEKDAY"
    WEEKEND = "WEEKEND"
    SPECIAL_EVENT = "SPECIAL_EVENT"


class NotificationType(str, enum.Enum):
    CONFIRMATION = "CONFIRMATION"
    REMINDER = "REMINDER"
    CANCELLATION = "CANCELLATION"


# Statuses that hold a table slot for the night.
ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)

STATUS_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


class InvalidEnumValue(ValueError):
    def __init__(self, enum_cls: type[enum.Enum], value: object):
        self.enum_cls = enum_cls
        self.value = value
        allowed = ", ".join(member.value for member in enum_cls)
        super().__init__(f"Invalid {enum_cls.__name__} '{value}'. Must be one of: {allowed}")


E = TypeVar("E", bound=enum.Enum)


def parse_enum(enum_cls: type[E], value: object) -> E:
    """Validate a raw request value against one of the shared enums.

    Every handler that accepts a status or day type goes through here so the
    accepted spellings cannot drift between routes.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    raise InvalidEnumValue(enum_cls, value)


def is_expected_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return current == target or target in STATUS_TRANSITIONS[current]
