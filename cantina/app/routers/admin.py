import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cantina.app.core.enums import ACTIVE_STATUSES, DayType, InvalidEnumValue, ReservationStatus, parse_enum
from cantina.app.core.security import require_manager
from cantina.app.db.models import Bottle, PricingRule, Reservation, ReservationBottle, TableType
from cantina.app.db.session import get_session
from cantina.app.routers.admin_schemas import (
    AdminBookingsOut,
    AdminBookingUpdatedOut,
    AdminStatusIn,
    BottleCreate,
    BottleUpdate,
    InventoryUpsertIn,
    InventoryUpsertOut,
    InventoryWithTableOut,
    MessageOut,
    NightStatsOut,
    PricingRuleCreate,
    PricingRuleOut,
    PricingRuleUpdate,
    RevenueTotals,
    StatusCount,
    TableTypeCreate,
    TableTypeUpdate,
    TonightOut,
)
from cantina.app.routers.schemas import BottleOut, ReservationOut, TableTypeOut
from cantina.app.services import bookings as booking_service
from cantina.app.services import inventory as inventory_service
from cantina.app.services import tonight as tonight_service
from cantina.app.services.errors import BookingValidationError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_manager)])


def _invalid_enum(exc: InvalidEnumValue) -> HTTPException:
    return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc))


# Bookings


@router.get("/bookings", response_model=AdminBookingsOut)
async def list_bookings(
    status_filter: str | None = Query(default=None, alias="status"),
    search: str | None = None,
    on_date: date | None = Query(default=None, alias="date"),
    limit: int = Query(default=50, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
) -> AdminBookingsOut:
    query = (
        select(Reservation)
        .options(
            selectinload(Reservation.table_type),
            selectinload(Reservation.bottles).selectinload(ReservationBottle.bottle),
        )
        .order_by(Reservation.date.desc())
        .limit(limit)
    )
    if status_filter and status_filter.upper() != "ALL":
        try:
            query = query.where(Reservation.status == parse_enum(ReservationStatus, status_filter))
        except InvalidEnumValue as exc:
            raise _invalid_enum(exc) from exc
    if search:
        query = query.where(booking_service.search_clause(search))
    if on_date is not None:
        start, end = tonight_service.night_bounds(on_date)
        query = query.where(Reservation.date >= start, Reservation.date < end)

    bookings = list((await session.execute(query)).scalars())

    grouped = await session.execute(
        select(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status)
    )
    stats = [StatusCount(status=row[0].value, count=row[1]) for row in grouped.all()]

    revenue = (
        await session.execute(
            select(
                func.coalesce(func.sum(Reservation.bottle_subtotal), 0),
                func.coalesce(func.sum(Reservation.deposit_amount), 0),
            ).where(Reservation.status.in_((ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED)))
        )
    ).one()

    return AdminBookingsOut(
        bookings=[ReservationOut.model_validate(b) for b in bookings],
        stats=stats,
        total_revenue=RevenueTotals(
            total=booking_service.to_money(revenue[0]),
            deposits=booking_service.to_money(revenue[1]),
        ),
    )


@router.patch("/bookings", response_model=AdminBookingUpdatedOut)
async def update_booking(payload: AdminStatusIn, session: AsyncSession = Depends(get_session)):
    if not payload.booking_id or not payload.status:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Missing required fields")
    try:
        reservation = await booking_service.update_status(session, payload.booking_id, payload.status)
    except InvalidEnumValue as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Invalid status") from exc
    if reservation is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return AdminBookingUpdatedOut(booking=ReservationOut.model_validate(reservation))


@router.get("/tonights-bookings", response_model=TonightOut)
async def tonights_bookings(session: AsyncSession = Depends(get_session)) -> TonightOut:
    today = tonight_service.venue_today()
    bookings = await tonight_service.bookings_for_day(session, today)
    stats = tonight_service.night_stats(bookings)
    logger.debug(f"Found {len(bookings)} bookings for {today}")
    return TonightOut(
        date=today,
        bookings=[ReservationOut.model_validate(b) for b in bookings],
        stats=NightStatsOut.model_validate(stats),
    )


# Table types


async def _slug_taken(session: AsyncSession, slug: str, exclude_id: str | None = None) -> bool:
    query = select(TableType.id).where(TableType.slug == slug)
    if exclude_id is not None:
        query = query.where(TableType.id != exclude_id)
    return (await session.execute(query.limit(1))).first() is not None


async def _get_table_or_404(session: AsyncSession, table_id: str) -> TableType:
    table = await session.get(TableType, table_id)
    if table is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")
    return table


@router.get("/tables", response_model=list[TableTypeOut])
async def list_tables(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(TableType).order_by(TableType.base_minimum_spend))
    return list(result.scalars())


@router.post("/tables", response_model=TableTypeOut, status_code=status.HTTP_201_CREATED)
async def create_table(payload: TableTypeCreate, session: AsyncSession = Depends(get_session)):
    if await _slug_taken(session, payload.slug):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Table with this slug already exists")

    table = TableType(**payload.model_dump())
    session.add(table)
    await session.commit()
    await session.refresh(table)
    logger.info(f"Table type {table.slug} created")
    return table


@router.get("/tables/{table_id}", response_model=TableTypeOut)
async def get_table(table_id: str, session: AsyncSession = Depends(get_session)):
    return await _get_table_or_404(session, table_id)


@router.patch("/tables/{table_id}", response_model=TableTypeOut)
async def update_table(table_id: str, payload: TableTypeUpdate, session: AsyncSession = Depends(get_session)):
    table = await _get_table_or_404(session, table_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("slug") and await _slug_taken(session, changes["slug"], exclude_id=table_id):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="A table with this slug already exists")

    for field, value in changes.items():
        setattr(table, field, value)
    await session.commit()
    await session.refresh(table)
    logger.info(f"Table type {table.slug} updated")
    return table


@router.delete("/tables/{table_id}", response_model=MessageOut)
async def delete_table(table_id: str, session: AsyncSession = Depends(get_session)):
    active = await session.scalar(
        select(func.count(Reservation.id)).where(
            Reservation.table_type_id == table_id,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
    )
    if active:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete table type with active reservations. Cancel reservations first.",
        )

    result = await session.execute(
        select(TableType)
        .options(selectinload(TableType.inventory), selectinload(TableType.pricing_rules))
        .where(TableType.id == table_id)
    )
    table = result.scalar_one_or_none()
    if table is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")

    try:
        await session.delete(table)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(
            status.HTTP_409_CONFLICT,
            detail="Table type has past reservations; mark it inactive instead.",
        ) from exc
    logger.info(f"Table type {table_id} deleted")
    return MessageOut(message="Table deleted successfully")


# Bottles


async def _get_bottle_or_404(session: AsyncSession, bottle_id: str) -> Bottle:
    bottle = await session.get(Bottle, bottle_id)
    if bottle is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Bottle not found")
    return bottle


@router.get("/bottles", response_model=list[BottleOut])
async def list_bottles(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(Bottle).order_by(Bottle.category, Bottle.sort_order, Bottle.name))
    return list(result.scalars())


@router.post("/bottles", response_model=BottleOut, status_code=status.HTTP_201_CREATED)
async def create_bottle(payload: BottleCreate, session: AsyncSession = Depends(get_session)):
    bottle = Bottle(**payload.model_dump())
    session.add(bottle)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="A bottle with this SKU already exists") from exc
    await session.refresh(bottle)
    logger.info(f"Bottle {bottle.brand} {bottle.name} created")
    return bottle


@router.get("/bottles/{bottle_id}", response_model=BottleOut)
async def get_bottle(bottle_id: str, session: AsyncSession = Depends(get_session)):
    return await _get_bottle_or_404(session, bottle_id)


@router.patch("/bottles/{bottle_id}", response_model=BottleOut)
async def update_bottle(bottle_id: str, payload: BottleUpdate, session: AsyncSession = Depends(get_session)):
    bottle = await _get_bottle_or_404(session, bottle_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(bottle, field, value)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="A bottle with this SKU already exists") from exc
    await session.refresh(bottle)
    return bottle


@router.delete("/bottles/{bottle_id}", response_model=MessageOut)
async def delete_bottle(bottle_id: str, session: AsyncSession = Depends(get_session)):
    in_use = await session.scalar(
        select(func.count(ReservationBottle.id))
        .join(Reservation)
        .where(ReservationBottle.bottle_id == bottle_id, Reservation.status.in_(ACTIVE_STATUSES))
    )
    if in_use:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete bottle that is in active reservations. Mark as inactive instead.",
        )

    bottle = await _get_bottle_or_404(session, bottle_id)
    try:
        await session.delete(bottle)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(
            status.HTTP_409_CONFLICT,
            detail="Bottle appears on past reservations; mark it inactive instead.",
        ) from exc
    logger.info(f"Bottle {bottle_id} deleted")
    return MessageOut(message="Bottle deleted successfully")


# Inventory


@router.get("/inventory", response_model=list[InventoryWithTableOut])
async def list_inventory(
    tableTypeId: str | None = None,
    on_date: date | None = Query(default=None, alias="date"),
    session: AsyncSession = Depends(get_session),
):
    return await inventory_service.list_inventory(session, table_type_id=tableTypeId, on_date=on_date)


@router.post("/inventory", response_model=InventoryUpsertOut)
async def upsert_inventory(payload: InventoryUpsertIn, session: AsyncSession = Depends(get_session)):
    await _get_table_or_404(session, payload.table_type_id)
    # upsert_range opens its own transaction
    await session.rollback()
    try:
        records = await inventory_service.upsert_range(
            session,
            table_type_id=payload.table_type_id,
            start=payload.start_date,
            end=payload.end_date,
            total_count=payload.total_count,
            blocked=payload.blocked,
        )
    except BookingValidationError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return InventoryUpsertOut(
        message=f"Created/updated {len(records)} inventory records",
        records=records,
    )


# Pricing rules


def _check_event_window(day_type: DayType, start: date | None, end: date | None, event_name: str | None) -> None:
    if day_type is DayType.SPECIAL_EVENT:
        if start is None or end is None:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Special events require startDate and endDate")
        if not event_name:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Special events require an eventName")
    if start is not None and end is not None and start > end:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="startDate must be on or before endDate")


async def _load_rule(session: AsyncSession, rule_id: str) -> PricingRule | None:
    result = await session.execute(
        select(PricingRule)
        .options(selectinload(PricingRule.table_type))
        .where(PricingRule.id == rule_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("/pricing", response_model=list[PricingRuleOut])
async def list_pricing_rules(session: AsyncSession = Depends(get_session)):
    result = await session.execute(
        select(PricingRule)
        .options(selectinload(PricingRule.table_type))
        .order_by(PricingRule.table_type_id, PricingRule.priority.desc(), PricingRule.day_type)
    )
    return list(result.scalars())


@router.post("/pricing", response_model=PricingRuleOut, status_code=status.HTTP_201_CREATED)
async def create_pricing_rule(payload: PricingRuleCreate, session: AsyncSession = Depends(get_session)):
    try:
        day_type = parse_enum(DayType, payload.day_type)
    except InvalidEnumValue as exc:
        raise _invalid_enum(exc) from exc
    _check_event_window(day_type, payload.start_date, payload.end_date, payload.event_name)
    await _get_table_or_404(session, payload.table_type_id)

    rule = PricingRule(**payload.model_dump(exclude={"day_type"}), day_type=day_type)
    session.add(rule)
    await session.commit()
    logger.info(f"Pricing rule {rule.id} ({day_type.value}, priority {rule.priority}) created")
    return await _load_rule(session, rule.id)


@router.get("/pricing/{rule_id}", response_model=PricingRuleOut)
async def get_pricing_rule(rule_id: str, session: AsyncSession = Depends(get_session)):
    rule = await _load_rule(session, rule_id)
    if rule is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Pricing rule not found")
    return rule


@router.patch("/pricing/{rule_id}", response_model=PricingRuleOut)
async def update_pricing_rule(rule_id: str, payload: PricingRuleUpdate, session: AsyncSession = Depends(get_session)):
    rule = await session.get(PricingRule, rule_id)
    if rule is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Pricing rule not found")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("day_type") is not None:
        try:
            changes["day_type"] = parse_enum(DayType, changes["day_type"])
        except InvalidEnumValue as exc:
            raise _invalid_enum(exc) from exc
    if changes.get("table_type_id"):
        await _get_table_or_404(session, changes["table_type_id"])

    for field, value in changes.items():
        setattr(rule, field, value)
    _check_event_window(rule.day_type, rule.start_date, rule.end_date, rule.event_name)

    await session.commit()
    return await _load_rule(session, rule_id)


@router.delete("/pricing/{rule_id}", response_model=MessageOut)
async def delete_pricing_rule(rule_id: str, session: AsyncSession = Depends(get_session)):
    rule = await session.get(PricingRule, rule_id)
    if rule is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Pricing rule not found")
    await session.delete(rule)
    await session.commit()
    logger.info(f"Pricing rule {rule_id} deleted")
    return MessageOut(message="Pricing rule deleted successfully")
