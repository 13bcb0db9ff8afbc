"""Data operations behind the manager assistant's tool endpoints."""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cantina.app.core.enums import DayType
from cantina.app.db.models import Bottle, PricingRule, Reservation, ReservationBottle, Setting, TableType
from cantina.app.services.bookings import to_money
from cantina.app.services.errors import AmbiguousBottleError, BookingValidationError, NotFoundError
from cantina.app.services.tonight import night_bounds


logger = logging.getLogger(__name__)

FUZZY_MATCH_LIMIT = 5
SPECIAL_EVENT_PRIORITY = 10
PURCHASE_ORDER_KEY = "lastPurchaseOrder"
FIND_RESERVATION_LIMIT = 100


async def resolve_bottle(session: AsyncSession, sku_or_name: str) -> Bottle:
    """Exact SKU match first, then a fuzzy name/brand match that must be unique."""
    term = sku_or_name.strip()
    by_sku = await session.execute(select(Bottle).where(func.lower(Bottle.sku) == term.lower()).limit(1))
    bottle = by_sku.scalar_one_or_none()
    if bottle is not None:
        return bottle

    pattern = f"%{term}%"
    fuzzy = await session.execute(
        select(Bottle)
        .where(or_(Bottle.name.ilike(pattern), Bottle.brand.ilike(pattern)), Bottle.active.is_(True))
        .order_by(Bottle.brand, Bottle.name)
        .limit(FUZZY_MATCH_LIMIT)
    )
    matches = list(fuzzy.scalars())
    if not matches:
        raise NotFoundError(f"No bottle matches '{term}'")
    if len(matches) > 1:
        raise AmbiguousBottleError(term, matches)
    return matches[0]


async def search_bottles(session: AsyncSession, sku_or_name: str | None, limit: int) -> list[Bottle]:
    query = select(Bottle).where(Bottle.active.is_(True)).order_by(Bottle.brand, Bottle.name).limit(limit)
    if sku_or_name:
        pattern = f"%{sku_or_name.strip()}%"
        query = query.where(
            or_(
                func.lower(Bottle.sku) == sku_or_name.strip().lower(),
                Bottle.name.ilike(pattern),
                Bottle.brand.ilike(pattern),
            )
        )
    result = await session.execute(query)
    return list(result.scalars())


async def adjust_stock(
    session: AsyncSession,
    sku_or_name: str,
    *,
    set_on_hand: int | None = None,
    delta_on_hand: int | None = None,
    set_par: int | None = None,
) -> Bottle:
    if set_on_hand is None and delta_on_hand is None and set_par is None:
        raise BookingValidationError("Provide setOnHand, deltaOnHand, or setPar.")

    bottle = await resolve_bottle(session, sku_or_name)
    if set_on_hand is not None:
        bottle.on_hand = set_on_hand
    elif delta_on_hand is not None:
        bottle.on_hand = bottle.on_hand + delta_on_hand
    if set_par is not None:
        bottle.par = set_par
    bottle.in_stock = bottle.on_hand > 0

    await session.commit()
    logger.info(f"Stock for {bottle.brand} {bottle.name} set to on_hand={bottle.on_hand} par={bottle.par}")
    return bottle


async def set_event_minimum_spend(
    session: AsyncSession,
    *,
    table_type: str,
    amount: Decimal,
    start: date,
    end: date,
    deposit_rate: Decimal = Decimal("0.15"),
    event_name: str | None = None,
) -> tuple[PricingRule, TableType]:
    """Create a SPECIAL_EVENT rule for a table type given by slug or name."""
    if start > end:
        raise BookingValidationError("Start date must be before or equal to end date")

    result = await session.execute(
        select(TableType).where(or_(TableType.slug == table_type, TableType.name == table_type)).limit(1)
    )
    tt = result.scalar_one_or_none()
    if tt is None:
        raise NotFoundError(f"TableType not found for '{table_type}'")

    rule = PricingRule(
        table_type_id=tt.id,
        day_type=DayType.SPECIAL_EVENT,
        minimum_spend=to_money(amount),
        deposit_rate=to_money(deposit_rate),
        event_name=event_name,
        start_date=start,
        end_date=end,
        priority=SPECIAL_EVENT_PRIORITY,
        active=True,
    )
    session.add(rule)
    await session.commit()
    logger.info(f"Special event minimum spend {rule.minimum_spend} set for {tt.slug} {start}..{end}")
    return rule, tt


@dataclass(frozen=True)
class PurchaseOrderLine:
    bottle_id: str
    label: str
    quantity: int
    sku: str | None


def render_purchase_order_email(supplier_email: str, lines: list[PurchaseOrderLine], notes: str | None) -> str:
    body = [f"To: {supplier_email}", "Subject: Purchase Order", "", "Hello,", "Please confirm the following order:", ""]
    for line in lines:
        sku = f" (SKU {line.sku})" if line.sku else ""
        body.append(f"- {line.label}{sku}: {line.quantity}")
    body.append("")
    if notes:
        body.append(f"Notes: {notes}")
    body.append("Thank you.")
    return "\n".join(body)


async def create_purchase_order(
    session: AsyncSession,
    items: list[tuple[str, int]],
    supplier_email: str,
    notes: str | None = None,
) -> tuple[list[PurchaseOrderLine], str]:
    lines = []
    for sku_or_name, quantity in items:
        bottle = await resolve_bottle(session, sku_or_name)
        lines.append(
            PurchaseOrderLine(
                bottle_id=bottle.id,
                label=f"{bottle.brand} {bottle.name} {bottle.size}",
                quantity=quantity,
                sku=bottle.sku,
            )
        )

    payload = {
        "createdAt": datetime.now(timezone.utc).isoformat(),
        "supplierEmail": supplier_email,
        "notes": notes,
        "items": [
            {"bottleId": line.bottle_id, "label": line.label, "quantity": line.quantity, "sku": line.sku}
            for line in lines
        ],
    }
    result = await session.execute(select(Setting).where(Setting.key == PURCHASE_ORDER_KEY))
    setting = result.scalar_one_or_none()
    if setting is None:
        setting = Setting(key=PURCHASE_ORDER_KEY)
        session.add(setting)
    setting.value = payload
    setting.description = "Latest generated purchase order"
    await session.commit()

    logger.info(f"Purchase order with {len(lines)} lines saved for {supplier_email}")
    return lines, render_purchase_order_email(supplier_email, lines, notes)


async def find_reservations(
    session: AsyncSession,
    *,
    name: str | None = None,
    email: str | None = None,
    confirmation_code: str | None = None,
    day: date | None = None,
    limit: int = FIND_RESERVATION_LIMIT,
) -> list[Reservation]:
    query = (
        select(Reservation)
        .options(
            selectinload(Reservation.table_type),
            selectinload(Reservation.bottles).selectinload(ReservationBottle.bottle),
        )
        .order_by(Reservation.date.desc())
        .limit(limit)
    )
    if name:
        query = query.where(Reservation.customer_name.ilike(f"%{name.strip()}%"))
    if email:
        query = query.where(func.lower(Reservation.customer_email) == email.strip().lower())
    if confirmation_code:
        query = query.where(func.upper(Reservation.confirmation_code) == confirmation_code.strip().upper())
    if day is not None:
        start, end = night_bounds(day)
        query = query.where(Reservation.date >= start, Reservation.date < end)
    result = await session.execute(query)
    return list(result.scalars())
