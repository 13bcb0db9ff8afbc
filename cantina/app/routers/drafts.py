from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.core import redis_client as redis_module
from cantina.app.db.session import get_session
from cantina.app.routers.bookings import booking_error_to_http
from cantina.app.routers.schemas import BookingCreatedOut, DraftBottle, DraftIn, DraftOut, ReservationOut
from cantina.app.services import bookings as booking_service
from cantina.app.services import drafts as draft_service
from cantina.app.services.bookings import BottleSelection
from cantina.app.services.errors import (
    BookingPersistenceError,
    BookingValidationError,
    DraftNotFoundError,
    PricingConflictError,
    TableUnavailableError,
)


router = APIRouter(prefix="/booking-drafts", tags=["booking-drafts"])


def _redis():
    if redis_module.redis_client is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Redis unavailable")
    return redis_module.redis_client


def _selections(draft: dict) -> list[BottleSelection]:
    return [
        BottleSelection(bottle_id=item.bottle_id, quantity=item.quantity, price_per_unit=item.price_per_unit)
        for item in (DraftBottle.model_validate(raw) for raw in draft.get("bottles") or [])
    ]


async def _draft_out(token: str, draft: dict) -> DraftOut:
    subtotal, deposit = booking_service.compute_totals(_selections(draft))
    ttl = await draft_service.draft_ttl(_redis(), token)
    return DraftOut.model_validate(
        {
            **draft,
            "bottles": draft.get("bottles") or [],
            "token": token,
            "expiresInSeconds": ttl,
            "bottleSubtotal": subtotal,
            "depositAmount": deposit,
        }
    )


@router.post("", response_model=DraftOut, status_code=status.HTTP_201_CREATED)
async def create_draft(payload: DraftIn) -> DraftOut:
    client = _redis()
    token, draft = await draft_service.create_draft(client, payload.model_dump(mode="json", by_alias=True))
    return await _draft_out(token, draft)


@router.get("/{token}", response_model=DraftOut)
async def get_draft(token: str) -> DraftOut:
    try:
        draft = await draft_service.load_draft(_redis(), token)
    except DraftNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return await _draft_out(token, draft)


@router.patch("/{token}", response_model=DraftOut)
async def update_draft(token: str, payload: DraftIn) -> DraftOut:
    changes = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    try:
        draft = await draft_service.update_draft(_redis(), token, changes)
    except DraftNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return await _draft_out(token, draft)


@router.delete("/{token}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft(token: str) -> None:
    if not await draft_service.delete_draft(_redis(), token):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Booking draft not found or expired")


@router.post("/{token}/checkout", response_model=BookingCreatedOut, status_code=status.HTTP_201_CREATED)
async def checkout_draft(token: str, session: AsyncSession = Depends(get_session)) -> BookingCreatedOut:
    """Turn a completed draft into a booking; the draft is discarded on success."""
    client = _redis()
    try:
        draft = await draft_service.load_draft(client, token)
    except DraftNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    customer = draft.get("customer") or {}
    try:
        intake = booking_service.build_intake(
            table_type_id=draft.get("tableTypeId"),
            booking_date=draft.get("date"),
            customer_name=customer.get("name"),
            customer_email=customer.get("email"),
            customer_phone=customer.get("phone"),
            party_size=customer.get("partySize"),
            occasion=customer.get("occasion"),
            special_requests=customer.get("specialRequests"),
            bottles=_selections(draft),
        )
        reservation = await booking_service.create_booking(session, intake)
    except (BookingValidationError, TableUnavailableError, PricingConflictError, BookingPersistenceError) as exc:
        raise booking_error_to_http(exc) from exc

    await draft_service.delete_draft(client, token)
    return BookingCreatedOut(
        confirmation_code=reservation.confirmation_code,
        reservation=ReservationOut.model_validate(reservation),
    )
