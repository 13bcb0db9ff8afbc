"""Booking intake and the transactional create path.

Creating a booking consumes exactly one slot of the per-night
``TableInventory`` row. The slot is taken with a conditional decrement
(``available > 0`` in the WHERE clause) inside the same transaction that
inserts the reservation, its bottle line items and the confirmation
notification, so two requests racing for the last table cannot both commit.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cantina.app.core.enums import ReservationStatus, is_expected_transition, parse_enum
from cantina.app.db.models import Bottle, Reservation, ReservationBottle, TableInventory, TableType
from cantina.app.services.errors import (
    BookingError,
    BookingPersistenceError,
    BookingValidationError,
    TableUnavailableError,
)
from cantina.app.services.notifications import confirmation_notification
from cantina.app.services.pricing import resolve_pricing


logger = logging.getLogger(__name__)

# Deposit charged at checkout, as a share of the bottle subtotal.
DEPOSIT_RATE = Decimal("0.15")
CENT = Decimal("0.01")

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value))


def to_money(value) -> Decimal:
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise BookingValidationError(f"Invalid amount: {value!r}") from exc


@dataclass(frozen=True)
class BottleSelection:
    bottle_id: str
    quantity: int
    price_per_unit: Decimal

    @property
    def total_price(self) -> Decimal:
        return (self.price_per_unit * self.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class BookingIntake:
    table_type_id: str
    booked_at: datetime
    customer_name: str
    customer_email: str
    customer_phone: str
    party_size: int = 1
    occasion: str | None = None
    special_requests: str | None = None
    bottles: list[BottleSelection] = field(default_factory=list)
    minimum_spend: Decimal | None = None
    bottle_subtotal: Decimal = Decimal("0.00")
    deposit_amount: Decimal = Decimal("0.00")

    @property
    def date_key(self) -> date:
        """Inventory is tracked per calendar night, not per time slot."""
        return self.booked_at.date()


def parse_booking_date(value) -> datetime:
    """Normalize a date or datetime (or ISO string) to an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise BookingValidationError("Invalid date format") from exc
    else:
        raise BookingValidationError("Invalid date format")

    if parsed.tzinfo is None or parsed.tzinfo.utcoffset(parsed) is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def compute_totals(bottles: Iterable[BottleSelection]) -> tuple[Decimal, Decimal]:
    """Return (bottle_subtotal, deposit_amount) for the selected line items."""
    subtotal = sum((item.total_price for item in bottles), Decimal("0.00"))
    deposit = (subtotal * DEPOSIT_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, deposit


def build_intake(
    *,
    table_type_id: str | None,
    booking_date,
    customer_name: str | None,
    customer_email: str | None,
    customer_phone: str | None,
    party_size: int | None = None,
    occasion: str | None = None,
    special_requests: str | None = None,
    bottles: Iterable[BottleSelection] = (),
    minimum_spend=None,
    bottle_subtotal=None,
    deposit_amount=None,
) -> BookingIntake:
    """Validate checkout input and compute the money fields.

    Subtotal and deposit are always recomputed from the line items; values the
    client sent along are only compared and logged.
    """
    if not (table_type_id and booking_date and customer_name and customer_email and customer_phone):
        raise BookingValidationError("Missing required fields")

    booked_at = parse_booking_date(booking_date)
    selections = list(bottles)
    subtotal, deposit = compute_totals(selections)

    if bottle_subtotal is not None and to_money(bottle_subtotal) != subtotal:
        logger.warning(
            f"Client subtotal {bottle_subtotal} for {customer_email} differs from computed {subtotal}; using computed"
        )
    if deposit_amount is not None and to_money(deposit_amount) != deposit:
        logger.warning(
            f"Client deposit {deposit_amount} for {customer_email} differs from computed {deposit}; using computed"
        )

    return BookingIntake(
        table_type_id=table_type_id,
        booked_at=booked_at,
        customer_name=customer_name.strip(),
        customer_email=customer_email.strip(),
        customer_phone=customer_phone.strip(),
        party_size=party_size or 1,
        occasion=occasion or None,
        special_requests=special_requests or None,
        bottles=selections,
        minimum_spend=to_money(minimum_spend) if minimum_spend is not None else None,
        bottle_subtotal=subtotal,
        deposit_amount=deposit,
    )


def _reservation_query():
    return select(Reservation).options(
        selectinload(Reservation.table_type),
        selectinload(Reservation.bottles).selectinload(ReservationBottle.bottle),
    )


async def find_inventory(session: AsyncSession, table_type_id: str, on_date: date) -> TableInventory | None:
    result = await session.execute(
        select(TableInventory).where(
            TableInventory.table_type_id == table_type_id,
            TableInventory.date == on_date,
        )
    )
    return result.scalar_one_or_none()


async def _bottle_labels(session: AsyncSession, bottle_ids: set[str]) -> dict[str, str]:
    if not bottle_ids:
        return {}
    result = await session.execute(select(Bottle).where(Bottle.id.in_(bottle_ids)))
    return {bottle.id: f"{bottle.brand} {bottle.name}" for bottle in result.scalars()}


async def create_booking(session: AsyncSession, intake: BookingIntake) -> Reservation:
    """Persist a reservation and consume one inventory slot, all or nothing."""
    try:
        async with session.begin():
            table_type = await session.get(TableType, intake.table_type_id)
            inventory = await find_inventory(session, intake.table_type_id, intake.date_key)
            if table_type is None or inventory is None or inventory.blocked or inventory.available <= 0:
                raise TableUnavailableError()

            minimum_spend = intake.minimum_spend
            if minimum_spend is None:
                quote = await resolve_pricing(session, table_type, intake.date_key)
                minimum_spend = quote.minimum_spend

            reservation = Reservation(
                table_type_id=table_type.id,
                date=intake.booked_at,
                customer_name=intake.customer_name,
                customer_email=intake.customer_email,
                customer_phone=intake.customer_phone,
                party_size=intake.party_size,
                occasion=intake.occasion,
                special_requests=intake.special_requests,
                status=ReservationStatus.PENDING,
                minimum_spend=minimum_spend,
                bottle_subtotal=intake.bottle_subtotal,
                deposit_amount=intake.deposit_amount,
                bottles=[
                    ReservationBottle(
                        bottle_id=item.bottle_id,
                        quantity=item.quantity,
                        price_per_unit=item.price_per_unit,
                        total_price=item.total_price,
                    )
                    for item in intake.bottles
                ],
            )
            session.add(reservation)
            await session.flush()

            decremented = await session.execute(
                update(TableInventory)
                .where(
                    TableInventory.id == inventory.id,
                    TableInventory.available > 0,
                    TableInventory.blocked.is_(False),
                )
                .values(available=TableInventory.available - 1)
                .execution_options(synchronize_session=False)
            )
            if decremented.rowcount != 1:
                raise TableUnavailableError()

            labels = await _bottle_labels(session, {item.bottle_id for item in intake.bottles})
            session.add(confirmation_notification(reservation, table_type, labels))
    except BookingError as exc:
        logger.info(f"Booking rejected for table type {intake.table_type_id} on {intake.date_key}: {exc}")
        raise
    except SQLAlchemyError as exc:
        logger.exception(f"Booking creation failed for table type {intake.table_type_id} on {intake.date_key}")
        raise BookingPersistenceError() from exc

    logger.info(
        f"Reservation {reservation.confirmation_code} created for table type {table_type.slug} on {intake.date_key}"
    )
    return await get_reservation(session, reservation.id)


async def get_reservation(session: AsyncSession, reservation_id: str) -> Reservation | None:
    result = await session.execute(
        _reservation_query()
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_by_code_or_id(session: AsyncSession, code_or_id: str) -> Reservation | None:
    if is_uuid(code_or_id):
        return await get_reservation(session, code_or_id.lower())
    result = await session.execute(
        _reservation_query().where(func.upper(Reservation.confirmation_code) == code_or_id.strip().upper())
    )
    return result.scalar_one_or_none()


async def list_reservations(session: AsyncSession, *, email: str | None = None, limit: int = 10) -> list[Reservation]:
    query = _reservation_query().order_by(Reservation.date.desc()).limit(limit)
    if email:
        query = query.where(func.lower(Reservation.customer_email) == email.strip().lower())
    result = await session.execute(query)
    return list(result.scalars())


async def update_status(session: AsyncSession, reservation_id: str, raw_status) -> Reservation | None:
    """Staff status change; any of the five statuses is accepted."""
    status = parse_enum(ReservationStatus, raw_status)

    reservation = await session.get(Reservation, reservation_id)
    if reservation is None:
        return None

    if not is_expected_transition(reservation.status, status):
        logger.warning(
            f"Reservation {reservation.confirmation_code} moved {reservation.status.value} -> {status.value} "
            "outside the usual flow"
        )
    reservation.status = status
    await session.commit()
    logger.info(f"Reservation {reservation.confirmation_code} status set to {status.value}")
    return await get_reservation(session, reservation_id)


async def delete_reservation(session: AsyncSession, reservation_id: str) -> bool:
    result = await session.execute(
        select(Reservation)
        .options(selectinload(Reservation.bottles), selectinload(Reservation.notifications))
        .where(Reservation.id == reservation_id)
    )
    reservation = result.scalar_one_or_none()
    if reservation is None:
        return False
    await session.delete(reservation)
    await session.commit()
    logger.info(f"Reservation {reservation.confirmation_code} deleted")
    return True


def search_clause(term: str):
    pattern = f"%{term.strip()}%"
    return or_(
        Reservation.confirmation_code.ilike(pattern),
        Reservation.customer_name.ilike(pattern),
        Reservation.customer_email.ilike(pattern),
        Reservation.customer_phone.contains(term.strip()),
    )
