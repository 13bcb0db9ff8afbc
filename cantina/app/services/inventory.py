import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cantina.app.db.models import TableInventory, TableType
from cantina.app.services.errors import BookingValidationError


logger = logging.getLogger(__name__)


def date_range(start: date, end: date) -> list[date]:
    if start > end:
        raise BookingValidationError("Start date must be before or equal to end date")
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


async def list_inventory(
    session: AsyncSession, *, table_type_id: str | None = None, on_date: date | None = None
) -> list[TableInventory]:
    query = (
        select(TableInventory)
        .join(TableType)
        .options(selectinload(TableInventory.table_type))
        .order_by(TableInventory.date, TableType.name)
    )
    if table_type_id and table_type_id != "all":
        query = query.where(TableInventory.table_type_id == table_type_id)
    if on_date is not None:
        query = query.where(TableInventory.date == on_date)
    result = await session.execute(query)
    return list(result.scalars())


async def upsert_range(
    session: AsyncSession,
    *,
    table_type_id: str,
    start: date,
    end: date,
    total_count: int,
    blocked: bool = False,
) -> list[TableInventory]:
    """Create or reset one inventory row per night in [start, end].

    Existing rows get ``available`` reset to ``total_count``; this is an
    absolute staff override and does not look at bookings already taken.
    """
    nights = date_range(start, end)
    async with session.begin():
        result = await session.execute(
            select(TableInventory).where(
                TableInventory.table_type_id == table_type_id,
                TableInventory.date >= start,
                TableInventory.date <= end,
            )
        )
        existing = {row.date: row for row in result.scalars()}

        records = []
        for night in nights:
            row = existing.get(night)
            if row is None:
                row = TableInventory(table_type_id=table_type_id, date=night)
                session.add(row)
            row.total_count = total_count
            row.available = total_count
            row.blocked = blocked
            records.append(row)

    logger.info(f"Inventory set to {total_count} for table type {table_type_id} on {len(records)} nights")
    return records
