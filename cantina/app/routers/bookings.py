from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.core.enums import InvalidEnumValue
from cantina.app.core.security import require_manager
from cantina.app.db.session import get_session
from cantina.app.routers.schemas import BookingCreatedOut, BookingCreateIn, ReservationOut, StatusUpdateIn
from cantina.app.services import bookings as booking_service
from cantina.app.services.bookings import BottleSelection
from cantina.app.services.errors import (
    BookingPersistenceError,
    BookingValidationError,
    PricingConflictError,
    TableUnavailableError,
)


router = APIRouter(tags=["bookings"])


def booking_error_to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, (BookingValidationError, TableUnavailableError)):
        return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, PricingConflictError):
        return HTTPException(status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, BookingPersistenceError):
        return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create booking")


def _require_database_id(booking_id: str, action: str) -> str:
    if not booking_service.is_uuid(booking_id):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail=f"{action} requires database ID, not confirmation code",
        )
    return booking_id.lower()


@router.post("/bookings", response_model=BookingCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreateIn,
    session: AsyncSession = Depends(get_session),
) -> BookingCreatedOut:
    try:
        intake = booking_service.build_intake(
            table_type_id=payload.table_type_id,
            booking_date=payload.date,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            customer_phone=payload.customer_phone,
            party_size=payload.party_size,
            occasion=payload.occasion,
            special_requests=payload.special_requests,
            bottles=[
                BottleSelection(
                    bottle_id=item.bottle_id,
                    quantity=item.quantity,
                    price_per_unit=item.price_per_unit,
                )
                for item in payload.bottles
            ],
            minimum_spend=payload.minimum_spend,
            bottle_subtotal=payload.bottle_subtotal,
            deposit_amount=payload.deposit_amount,
        )
        reservation = await booking_service.create_booking(session, intake)
    except (BookingValidationError, TableUnavailableError, PricingConflictError, BookingPersistenceError) as exc:
        raise booking_error_to_http(exc) from exc

    return BookingCreatedOut(
        confirmation_code=reservation.confirmation_code,
        reservation=ReservationOut.model_validate(reservation),
    )


@router.get("/bookings", response_model=list[ReservationOut])
async def list_bookings(
    email: str | None = None,
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    return await booking_service.list_reservations(session, email=email, limit=limit)


@router.get("/bookings/{booking_ref}", response_model=ReservationOut)
async def get_booking(booking_ref: str, session: AsyncSession = Depends(get_session)):
    """Look a booking up by confirmation code or database id."""
    reservation = await booking_service.find_by_code_or_id(session, booking_ref)
    if reservation is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Booking not found for: {booking_ref}")
    return reservation


@router.patch(
    "/bookings/{booking_ref}",
    response_model=ReservationOut,
    dependencies=[Depends(require_manager)],
)
async def update_booking_status(
    booking_ref: str,
    payload: StatusUpdateIn,
    session: AsyncSession = Depends(get_session),
):
    booking_id = _require_database_id(booking_ref, "PATCH")
    try:
        reservation = await booking_service.update_status(session, booking_id, payload.status)
    except InvalidEnumValue as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Invalid status") from exc

    if reservation is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Booking not found for: {booking_ref}")
    return reservation


@router.delete("/bookings/{booking_ref}", dependencies=[Depends(require_manager)])
async def delete_booking(booking_ref: str, session: AsyncSession = Depends(get_session)) -> dict[str, bool]:
    booking_id = _require_database_id(booking_ref, "DELETE")
    if not await booking_service.delete_reservation(session, booking_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Booking not found for: {booking_ref}")
    return {"success": True}
