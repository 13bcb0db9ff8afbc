from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from cantina.app.core.enums import InvalidEnumValue, ReservationStatus, is_expected_transition, parse_enum
from cantina.app.db.models import Reservation, ReservationBottle, TableType
from cantina.app.services.bookings import BottleSelection, build_intake, compute_totals, parse_booking_date
from cantina.app.services.errors import BookingValidationError
from cantina.app.services.notifications import render_confirmation


def _selection(quantity, price):
    return BottleSelection(bottle_id="b-1", quantity=quantity, price_per_unit=Decimal(price))


@pytest.mark.parametrize(
    "lines, subtotal, deposit",
    [
        ([], "0.00", "0.00"),
        ([(2, "350.00"), (1, "800.00")], "1500.00", "225.00"),
        ([(3, "33.33")], "99.99", "15.00"),
        ([(1, "0.10")], "0.10", "0.02"),
    ],
)
def test_deposit_is_fifteen_percent_of_subtotal(lines, subtotal, deposit):
    computed_subtotal, computed_deposit = compute_totals(_selection(q, p) for q, p in lines)

    assert computed_subtotal == Decimal(subtotal)
    assert computed_deposit == Decimal(deposit)


def test_parse_booking_date_normalizes_to_utc():
    assert parse_booking_date("2030-06-15") == datetime(2030, 6, 15, tzinfo=timezone.utc)
    assert parse_booking_date("2030-06-15T22:00:00Z") == datetime(2030, 6, 15, 22, tzinfo=timezone.utc)
    assert parse_booking_date("2030-06-15T22:00:00-04:00") == datetime(2030, 6, 16, 2, tzinfo=timezone.utc)
    assert parse_booking_date(date(2030, 6, 15)).tzinfo is timezone.utc


@pytest.mark.parametrize("value", ["", "15/06/2030", "tomorrow", 20300615])
def test_parse_booking_date_rejects_garbage(value):
    with pytest.raises(BookingValidationError, match="Invalid date format"):
        parse_booking_date(value)


def test_inventory_night_is_the_utc_date():
    intake = build_intake(
        table_type_id="tt-1",
        booking_date="2030-06-15T22:00:00-04:00",
        customer_name=" Dana Reyes ",
        customer_email="dana@example.com",
        customer_phone="+1-352-555-0142",
    )

    assert intake.date_key == date(2030, 6, 16)
    assert intake.customer_name == "Dana Reyes"
    assert intake.party_size == 1
    assert intake.minimum_spend is None


def test_build_intake_ignores_client_totals():
    intake = build_intake(
        table_type_id="tt-1",
        booking_date="2030-06-15",
        customer_name="Dana Reyes",
        customer_email="dana@example.com",
        customer_phone="+1-352-555-0142",
        bottles=[_selection(2, "350.00")],
        minimum_spend="3000",
        bottle_subtotal="1.00",
        deposit_amount="0.15",
    )

    assert intake.bottle_subtotal == Decimal("700.00")
    assert intake.deposit_amount == Decimal("105.00")
    assert intake.minimum_spend == Decimal("3000.00")


@pytest.mark.parametrize("missing", ["table_type_id", "booking_date", "customer_name", "customer_email", "customer_phone"])
def test_build_intake_requires_fields(missing):
    fields = {
        "table_type_id": "tt-1",
        "booking_date": "2030-06-15",
        "customer_name": "Dana Reyes",
        "customer_email": "dana@example.com",
        "customer_phone": "+1-352-555-0142",
    }
    fields[missing] = None

    with pytest.raises(BookingValidationError, match="Missing required fields"):
        build_intake(**fields)


def test_parse_enum_accepts_any_case():
    assert parse_enum(ReservationStatus, " no_show ") is ReservationStatus.NO_SHOW
    assert parse_enum(ReservationStatus, ReservationStatus.CONFIRMED) is ReservationStatus.CONFIRMED


@pytest.mark.parametrize("value", ["SEATED", "", None, 3])
def test_parse_enum_rejects_unknown_values(value):
    with pytest.raises(InvalidEnumValue):
        parse_enum(ReservationStatus, value)


def test_expected_transitions():
    assert is_expected_transition(ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
    assert is_expected_transition(ReservationStatus.CONFIRMED, ReservationStatus.NO_SHOW)
    assert not is_expected_transition(ReservationStatus.PENDING, ReservationStatus.COMPLETED)
    assert not is_expected_transition(ReservationStatus.CANCELLED, ReservationStatus.CONFIRMED)


def test_confirmation_body():
    reservation = Reservation(
        confirmation_code="CT-7KQ2M9XA",
        date=datetime(2030, 6, 15, 4, tzinfo=timezone.utc),
        customer_name="Dana Reyes",
        customer_email="dana@example.com",
        party_size=6,
        occasion="Birthday",
        minimum_spend=Decimal("3000.00"),
        bottle_subtotal=Decimal("1500.00"),
        deposit_amount=Decimal("225.00"),
        bottles=[
            ReservationBottle(
                bottle_id="b-1", quantity=2, price_per_unit=Decimal("350.00"), total_price=Decimal("700.00")
            )
        ],
    )
    table_type = TableType(name="Dance Floor Table")

    body = render_confirmation(reservation, table_type, {"b-1": "Grey Goose Grey Goose"})

    assert "Dance Floor Table on Saturday, June 15, 2030" in body
    assert "Confirmation code: CT-7KQ2M9XA" in body
    assert "2 x Grey Goose Grey Goose @ $350.00 = $700.00" in body
    assert "Balance at the venue: $1,275.00" in body
