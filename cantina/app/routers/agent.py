"""Tool endpoints called by the manager assistant."""
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.core.security import require_manager
from cantina.app.db.session import get_session
from cantina.app.routers.admin_schemas import (
    AdjustedBottleOut,
    AdjustInventoryIn,
    AdjustInventoryOut,
    BookingsTonightIn,
    BookingsTonightOut,
    CreatedRuleOut,
    FindReservationIn,
    FoundReservationOut,
    GetInventoryIn,
    GetInventoryOut,
    PurchaseOrderIn,
    PurchaseOrderOut,
    SetMinimumSpendIn,
    SetMinimumSpendOut,
    StockItemOut,
    TableTypeSummary,
    TonightBookingLine,
)
from cantina.app.routers.schemas import ReservationOut
from cantina.app.services import manager_tools
from cantina.app.services import tonight as tonight_service
from cantina.app.services.errors import AmbiguousBottleError, BookingValidationError, NotFoundError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["agent"], dependencies=[Depends(require_manager)])


def _lookup_error_to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, AmbiguousBottleError):
        return HTTPException(
            status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "candidates": [
                    {"id": b.id, "sku": b.sku, "brand": b.brand, "name": b.name, "size": b.size}
                    for b in exc.candidates
                ],
            },
        )
    if isinstance(exc, NotFoundError):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=f"Invalid date: {value}") from exc


@router.post("/get_inventory", response_model=GetInventoryOut)
async def get_inventory(payload: GetInventoryIn, session: AsyncSession = Depends(get_session)):
    bottles = await manager_tools.search_bottles(session, payload.sku_or_name, payload.limit)
    return GetInventoryOut(count=len(bottles), items=[StockItemOut.model_validate(b) for b in bottles])


@router.post("/adjust_inventory", response_model=AdjustInventoryOut)
async def adjust_inventory(payload: AdjustInventoryIn, session: AsyncSession = Depends(get_session)):
    try:
        bottle = await manager_tools.adjust_stock(
            session,
            payload.sku_or_name,
            set_on_hand=payload.set_on_hand,
            delta_on_hand=payload.delta_on_hand,
            set_par=payload.set_par,
        )
    except (AmbiguousBottleError, NotFoundError, BookingValidationError) as exc:
        raise _lookup_error_to_http(exc) from exc

    if bottle.on_hand < 0:
        logger.warning(f"{bottle.brand} {bottle.name} is below zero on hand ({bottle.on_hand})")
    return AdjustInventoryOut(
        updated=AdjustedBottleOut.model_validate(bottle),
        message=f"Updated {bottle.brand} {bottle.name}: onHand={bottle.on_hand}, par={bottle.par}",
    )


@router.post("/find_reservation", response_model=FoundReservationOut)
async def find_reservation(payload: FindReservationIn, session: AsyncSession = Depends(get_session)):
    results = await manager_tools.find_reservations(
        session,
        name=payload.name,
        email=payload.email,
        confirmation_code=payload.confirmation_code,
        day=_day(payload.date) if payload.date else None,
    )
    return FoundReservationOut(count=len(results), results=[ReservationOut.model_validate(r) for r in results])


@router.post("/bookings_tonight", response_model=BookingsTonightOut)
async def bookings_tonight(payload: BookingsTonightIn, session: AsyncSession = Depends(get_session)):
    day = _day(payload.date) if payload.date else tonight_service.venue_today()
    bookings = await tonight_service.bookings_for_day(session, day, evening_only=payload.shift == "evening")

    lines = [
        TonightBookingLine(
            booking_id=b.id,
            guest=b.customer_name,
            size=b.party_size,
            time_utc=b.date,
            time_local=tonight_service.to_venue_time(b.date),
            status=b.status.value,
            table_type_id=b.table_type_id,
            table_type_name=b.table_type.name if b.table_type else "",
            section=b.table_type.section if b.table_type else None,
            slug=b.table_type.slug if b.table_type else None,
        )
        for b in bookings
    ]
    return BookingsTonightOut(date=day, shift=payload.shift, count=len(lines), bookings=lines)


@router.post("/set_minimum_spend", response_model=SetMinimumSpendOut, status_code=status.HTTP_201_CREATED)
async def set_minimum_spend(payload: SetMinimumSpendIn, session: AsyncSession = Depends(get_session)):
    start = _day(payload.date or payload.start_date)
    end = _day(payload.date or payload.end_date)
    try:
        rule, table_type = await manager_tools.set_event_minimum_spend(
            session,
            table_type=payload.table_type,
            amount=payload.amount,
            start=start,
            end=end,
            deposit_rate=payload.deposit_rate,
            event_name=payload.event_name,
        )
    except (NotFoundError, BookingValidationError) as exc:
        raise _lookup_error_to_http(exc) from exc

    return SetMinimumSpendOut(
        created=CreatedRuleOut(
            id=rule.id,
            table_type=TableTypeSummary.model_validate(table_type),
            minimum_spend=rule.minimum_spend,
            deposit_rate=rule.deposit_rate,
            start_date=rule.start_date,
            end_date=rule.end_date,
        )
    )


@router.post("/create_purchase_order", response_model=PurchaseOrderOut)
async def create_purchase_order(payload: PurchaseOrderIn, session: AsyncSession = Depends(get_session)):
    try:
        lines, email_draft = await manager_tools.create_purchase_order(
            session,
            [(item.sku_or_name, item.quantity) for item in payload.items],
            payload.supplier_email,
            payload.notes,
        )
    except (AmbiguousBottleError, NotFoundError) as exc:
        raise _lookup_error_to_http(exc) from exc

    return PurchaseOrderOut(
        saved_key=manager_tools.PURCHASE_ORDER_KEY,
        item_count=len(lines),
        email_draft=email_draft,
    )
