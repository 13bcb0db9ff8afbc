from decimal import Decimal

from cantina.app.core.enums import NotificationType
from cantina.app.db.models import Notification, Reservation, TableType


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def render_confirmation(reservation: Reservation, table_type: TableType, bottle_names: dict[str, str]) -> str:
    """Plain-text body of the booking confirmation message."""
    booking_day = reservation.date.strftime("%A, %B %d, %Y").replace(" 0", " ")
    lines = [
        f"Hi {reservation.customer_name},",
        "",
        f"Your booking for {table_type.name} on {booking_day} has been received.",
        f"Confirmation code: {reservation.confirmation_code}",
        f"Party size: {reservation.party_size}",
    ]
    if reservation.occasion:
        lines.append(f"Occasion: {reservation.occasion}")

    if reservation.bottles:
        lines += ["", "Bottles:"]
        for item in reservation.bottles:
            label = bottle_names.get(item.bottle_id, "Bottle")
            lines.append(f"  {item.quantity} x {label} @ {_money(item.price_per_unit)} = {_money(item.total_price)}")

    remaining = reservation.bottle_subtotal - reservation.deposit_amount
    lines += [
        "",
        f"Minimum spend: {_money(reservation.minimum_spend)}",
        f"Bottle subtotal: {_money(reservation.bottle_subtotal)}",
        f"Deposit due now: {_money(reservation.deposit_amount)}",
        f"Balance at the venue: {_money(remaining)}",
    ]
    if reservation.special_requests:
        lines += ["", f"Special requests: {reservation.special_requests}"]
    return "\n".join(lines)


def confirmation_notification(
    reservation: Reservation,
    table_type: TableType,
    bottle_names: dict[str, str],
) -> Notification:
    return Notification(
        reservation_id=reservation.id,
        type=NotificationType.CONFIRMATION,
        recipient=reservation.customer_email,
        subject=f"Booking Confirmation - {reservation.confirmation_code}",
        content=render_confirmation(reservation, table_type, bottle_names),
    )
