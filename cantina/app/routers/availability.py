from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.db.models import TableType
from cantina.app.db.session import get_session
from cantina.app.routers.schemas import AvailabilityDayOut, PricingQuoteOut
from cantina.app.services.availability import table_availability
from cantina.app.services.errors import PricingConflictError
from cantina.app.services.pricing import resolve_pricing


router = APIRouter(tags=["availability"])

MAX_RANGE_DAYS = 366


def _parse_day(value: str | None, name: str) -> date:
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError) as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=f"Invalid {name}; expected YYYY-MM-DD") from exc


@router.get("/availability", response_model=list[AvailabilityDayOut])
async def get_availability(
    tableId: str | None = None,
    startDate: str | None = None,
    endDate: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[AvailabilityDayOut]:
    if not tableId or not startDate or not endDate:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Missing required parameters")

    start = _parse_day(startDate, "startDate")
    end = _parse_day(endDate, "endDate")
    if start > end:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="startDate must be on or before endDate")
    if (end - start).days > MAX_RANGE_DAYS:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=f"Range is limited to {MAX_RANGE_DAYS} days")

    try:
        days = await table_availability(session, tableId, start, end)
    except PricingConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return [
        AvailabilityDayOut(
            date=day.date,
            available=day.available,
            total=day.total,
            price_multiplier=float(day.price_multiplier),
            is_special_event=day.is_special_event,
        )
        for day in days
    ]


@router.get("/pricing/quote", response_model=PricingQuoteOut)
async def get_pricing_quote(
    tableId: str,
    date: str,
    session: AsyncSession = Depends(get_session),
) -> PricingQuoteOut:
    """Minimum spend and deposit rate to show before checkout."""
    on_date = _parse_day(date, "date")
    table_type = await session.get(TableType, tableId)
    if table_type is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")

    try:
        quote = await resolve_pricing(session, table_type, on_date)
    except PricingConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return PricingQuoteOut(
        table_type_id=quote.table_type_id,
        date=quote.date,
        day_type=quote.day_type,
        minimum_spend=quote.minimum_spend,
        deposit_rate=quote.deposit_rate,
        base_minimum_spend=quote.base_minimum_spend,
        price_multiplier=float(quote.price_multiplier),
        is_special_event=quote.is_special_event,
        rule_id=quote.rule_id,
        event_name=quote.event_name,
    )
