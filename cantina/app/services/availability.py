import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.core.enums import ACTIVE_STATUSES
from cantina.app.db.models import Reservation, TableInventory, TableType
from cantina.app.services.pricing import build_quote, load_active_rules


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayAvailability:
    date: date
    available: int
    total: int
    price_multiplier: Decimal
    is_special_event: bool


def _utc_day(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


async def active_reservation_counts(
    session: AsyncSession, table_type_id: str, start: date, end: date
) -> Counter:
    """PENDING/CONFIRMED reservations per UTC night in [start, end]."""
    window_start = datetime.combine(start, time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    result = await session.execute(
        select(Reservation.date).where(
            Reservation.table_type_id == table_type_id,
            Reservation.date >= window_start,
            Reservation.date < window_end,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
    )
    return Counter(_utc_day(booked_at) for booked_at in result.scalars())


async def table_availability(
    session: AsyncSession, table_type_id: str, start: date, end: date
) -> list[DayAvailability]:
    table_type = await session.get(TableType, table_type_id)
    if table_type is None:
        return []

    result = await session.execute(
        select(TableInventory)
        .where(
            TableInventory.table_type_id == table_type_id,
            TableInventory.date >= start,
            TableInventory.date <= end,
            TableInventory.blocked.is_(False),
        )
        .order_by(TableInventory.date)
    )
    rows = list(result.scalars())
    reserved = await active_reservation_counts(session, table_type_id, start, end)
    rules = await load_active_rules(session, table_type_id)

    days = []
    for row in rows:
        # The stored counter can be reset by staff while bookings exist, so
        # it is also capped by what the active reservations leave free.
        remaining = min(row.available, row.total_count - reserved.get(row.date, 0))
        quote = build_quote(table_type, rules, row.date)
        days.append(
            DayAvailability(
                date=row.date,
                available=max(0, remaining),
                total=row.total_count,
                price_multiplier=quote.price_multiplier,
                is_special_event=quote.is_special_event,
            )
        )
    logger.debug(f"Availability for {table_type.slug} {start}..{end}: {len(days)} open nights")
    return days
