from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cantina.app.core.config import settings
from cantina.app.core.enums import ACTIVE_STATUSES, ReservationStatus
from cantina.app.db.models import Reservation, ReservationBottle


EVENING_STARTS_AT = 18


def venue_tz() -> ZoneInfo:
    return ZoneInfo(settings.VENUE_TIMEZONE)


def venue_today(now: datetime | None = None) -> date:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(venue_tz()).date()


def night_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [start, end) of a night, matching the date key inventory and pricing use."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def to_venue_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(venue_tz())


async def bookings_for_day(session: AsyncSession, day: date, *, evening_only: bool = False) -> list[Reservation]:
    start, end = night_bounds(day)
    result = await session.execute(
        select(Reservation)
        .options(
            selectinload(Reservation.table_type),
            selectinload(Reservation.bottles).selectinload(ReservationBottle.bottle),
        )
        .where(Reservation.date >= start, Reservation.date < end)
        .order_by(Reservation.date)
    )
    bookings = list(result.scalars())
    if evening_only:
        bookings = [b for b in bookings if to_venue_time(b.date).hour >= EVENING_STARTS_AT]
    return bookings


@dataclass(frozen=True)
class NightStats:
    total_bookings: int
    pending: int
    confirmed: int
    completed: int
    no_shows: int
    cancelled: int
    expected_revenue: Decimal
    actual_revenue: Decimal


def night_stats(bookings: list[Reservation]) -> NightStats:
    def count(status: ReservationStatus) -> int:
        return sum(1 for b in bookings if b.status is status)

    return NightStats(
        total_bookings=len(bookings),
        pending=count(ReservationStatus.PENDING),
        confirmed=count(ReservationStatus.CONFIRMED),
        completed=count(ReservationStatus.COMPLETED),
        no_shows=count(ReservationStatus.NO_SHOW),
        cancelled=count(ReservationStatus.CANCELLED),
        expected_revenue=sum((b.minimum_spend for b in bookings if b.status in ACTIVE_STATUSES), Decimal("0.00")),
        actual_revenue=sum(
            (b.minimum_spend for b in bookings if b.status is ReservationStatus.COMPLETED), Decimal("0.00")
        ),
    )
