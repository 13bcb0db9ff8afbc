from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from cantina.app.core.enums import ReservationStatus
from cantina.app.services.tonight import venue_today
from conftest import (
    MANAGER_HEADERS,
    SATURDAY,
    WEDNESDAY,
    add_reservation,
    booking_payload,
)


pytestmark = pytest.mark.asyncio(loop_scope="session")


NEW_TABLE = {
    "name": "Balcony Table",
    "slug": "balcony-table",
    "description": "Elevated seating with panoramic views.",
    "shortDescription": "Elevated seating",
    "capacity": 8,
    "section": "Balcony Level",
    "baseMinimumSpend": "1000.00",
    "amenities": ["Coat Check"],
    "sortOrder": 3,
}

NEW_BOTTLE = {
    "name": "Patron Silver",
    "brand": "Patron",
    "category": "TEQUILA",
    "size": "750ml",
    "price": "375.00",
    "sku": "TEQ-PAT-750",
    "onHand": 6,
    "par": 3,
}


async def test_admin_routes_require_manager_key(client, venue):
    response = await client.get("/api/v1/admin/bookings")

    assert response.status_code == 403
    assert response.json()["detail"] == "FORBIDDEN"


async def test_bookings_dashboard_stats_and_revenue(client, venue):
    first = await client.post("/api/v1/bookings", json=booking_payload(venue, SATURDAY))
    await client.post("/api/v1/bookings", json=booking_payload(venue, WEDNESDAY, customerName="Sam Ortiz"))
    await client.patch(
        f"/api/v1/bookings/{first.json()['reservation']['id']}",
        json={"status": "CONFIRMED"},
        headers=MANAGER_HEADERS,
    )

    response = await client.get("/api/v1/admin/bookings", headers=MANAGER_HEADERS)

    assert response.status_code == 200, response.text
    body = response.json()
    assert len(body["bookings"]) == 2
    assert {row["status"]: row["count"] for row in body["stats"]} == {"CONFIRMED": 1, "PENDING": 1}
    assert Decimal(body["totalRevenue"]["total"]) == Decimal("1500.00")
    assert Decimal(body["totalRevenue"]["deposits"]) == Decimal("225.00")


async def test_bookings_dashboard_filters(client, venue):
    await client.post("/api/v1/bookings", json=booking_payload(venue, SATURDAY))
    await client.post("/api/v1/bookings", json=booking_payload(venue, WEDNESDAY, customerName="Sam Ortiz"))

    by_search = await client.get("/api/v1/admin/bookings", params={"search": "ortiz"}, headers=MANAGER_HEADERS)
    by_status = await client.get("/api/v1/admin/bookings", params={"status": "confirmed"}, headers=MANAGER_HEADERS)
    all_statuses = await client.get("/api/v1/admin/bookings", params={"status": "ALL"}, headers=MANAGER_HEADERS)
    bad_status = await client.get("/api/v1/admin/bookings", params={"status": "LOST"}, headers=MANAGER_HEADERS)

    assert [b["customerName"] for b in by_search.json()["bookings"]] == ["Sam Ortiz"]
    assert by_status.json()["bookings"] == []
    assert len(all_statuses.json()["bookings"]) == 2
    assert bad_status.status_code == 400


async def test_admin_status_update(client, venue):
    created = await client.post("/api/v1/bookings", json=booking_payload(venue, SATURDAY))
    booking_id = created.json()["reservation"]["id"]

    missing = await client.patch("/api/v1/admin/bookings", json={"bookingId": booking_id}, headers=MANAGER_HEADERS)
    invalid = await client.patch(
        "/api/v1/admin/bookings", json={"bookingId": booking_id, "status": "SEATED"}, headers=MANAGER_HEADERS
    )
    updated = await client.patch(
        "/api/v1/admin/bookings", json={"bookingId": booking_id, "status": "CANCELLED"}, headers=MANAGER_HEADERS
    )

    assert missing.status_code == 400
    assert invalid.status_code == 400
    assert updated.status_code == 200, updated.text
    assert updated.json()["success"] is True
    assert updated.json()["booking"]["status"] == "CANCELLED"


async def test_tonights_bookings(client, venue):
    today = venue_today()
    tonight = datetime.combine(today, time(23, 30), tzinfo=timezone.utc)
    await add_reservation(venue, tonight, status=ReservationStatus.CONFIRMED, minimum_spend=Decimal("2000.00"))
    await add_reservation(venue, tonight, status=ReservationStatus.COMPLETED, minimum_spend=Decimal("1500.00"))
    await add_reservation(venue, tonight + timedelta(days=1), status=ReservationStatus.PENDING)

    response = await client.get("/api/v1/admin/tonights-bookings", headers=MANAGER_HEADERS)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["date"] == today.isoformat()
    assert len(body["bookings"]) == 2
    assert body["stats"]["totalBookings"] == 2
    assert body["stats"]["confirmed"] == 1
    assert body["stats"]["completed"] == 1
    assert Decimal(body["stats"]["expectedRevenue"]) == Decimal("2000.00")
    assert Decimal(body["stats"]["actualRevenue"]) == Decimal("1500.00")


async def test_table_crud(client, venue):
    created = await client.post("/api/v1/admin/tables", json=NEW_TABLE, headers=MANAGER_HEADERS)
    assert created.status_code == 201, created.text
    table_id = created.json()["id"]
    assert created.json()["active"] is True

    duplicate = await client.post("/api/v1/admin/tables", json=NEW_TABLE, headers=MANAGER_HEADERS)
    assert duplicate.status_code == 400

    slug_clash = await client.patch(
        f"/api/v1/admin/tables/{table_id}", json={"slug": venue.slug}, headers=MANAGER_HEADERS
    )
    assert slug_clash.status_code == 400

    updated = await client.patch(
        f"/api/v1/admin/tables/{table_id}",
        json={"capacity": 10, "baseMinimumSpend": "1200.00"},
        headers=MANAGER_HEADERS,
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["capacity"] == 10
    assert Decimal(updated.json()["baseMinimumSpend"]) == Decimal("1200.00")

    public = await client.get("/api/v1/tables/balcony-table")
    assert public.status_code == 200
    assert public.json()["capacity"] == 10

    deleted = await client.delete(f"/api/v1/admin/tables/{table_id}", headers=MANAGER_HEADERS)
    assert deleted.status_code == 200
    missing = await client.get(f"/api/v1/admin/tables/{table_id}", headers=MANAGER_HEADERS)
    assert missing.status_code == 404


async def test_table_with_active_reservations_cannot_be_deleted(client, venue):
    created = await client.post("/api/v1/bookings", json=booking_payload(venue, SATURDAY))
    assert created.status_code == 201

    response = await client.delete(f"/api/v1/admin/tables/{venue.table_type_id}", headers=MANAGER_HEADERS)

    assert response.status_code == 400
    assert "active reservations" in response.json()["detail"]


async def test_bottle_crud(client, venue):
    created = await client.post("/api/v1/admin/bottles", json=NEW_BOTTLE, headers=MANAGER_HEADERS)
    assert created.status_code == 201, created.text
    bottle_id = created.json()["id"]

    duplicate_sku = await client.post("/api/v1/admin/bottles", json=NEW_BOTTLE, headers=MANAGER_HEADERS)
    assert duplicate_sku.status_code == 400

    updated = await client.patch(
        f"/api/v1/admin/bottles/{bottle_id}", json={"price": "390.00", "inStock": False}, headers=MANAGER_HEADERS
    )
    assert updated.status_code == 200
    assert Decimal(updated.json()["price"]) == Decimal("390.00")

    menu = await client.get("/api/v1/bottles")
    assert "Patron Silver" not in {bottle["name"] for bottle in menu.json()}

    deleted = await client.delete(f"/api/v1/admin/bottles/{bottle_id}", headers=MANAGER_HEADERS)
    assert deleted.status_code == 200


async def test_bottle_in_active_reservation_cannot_be_deleted(client, venue):
    created = await client.post("/api/v1/bookings", json=booking_payload(venue, SATURDAY))
    assert created.status_code == 201

    response = await client.delete(f"/api/v1/admin/bottles/{venue.grey_goose_id}", headers=MANAGER_HEADERS)

    assert response.status_code == 400


async def test_inventory_upsert_creates_missing_nights(client, venue):
    response = await client.post(
        "/api/v1/admin/inventory",
        json={
            "tableTypeId": venue.table_type_id,
            "startDate": "2030-06-15",
            "endDate": "2030-06-17",
            "totalCount": 6,
        },
        headers=MANAGER_HEADERS,
    )

    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Created/updated 3 inventory records"
    assert [r["available"] for r in response.json()["records"]] == [6, 6, 6]

    listed = await client.get(
        "/api/v1/admin/inventory", params={"tableTypeId": venue.table_type_id}, headers=MANAGER_HEADERS
    )
    assert len(listed.json()) == 5
    assert listed.json()[0]["tableType"]["slug"] == venue.slug


async def test_inventory_upsert_rejects_inverted_range(client, venue):
    response = await client.post(
        "/api/v1/admin/inventory",
        json={
            "tableTypeId": venue.table_type_id,
            "startDate": "2030-06-17",
            "endDate": "2030-06-15",
            "totalCount": 6,
        },
        headers=MANAGER_HEADERS,
    )

    assert response.status_code == 400


async def test_pricing_rule_crud(client, venue):
    missing_window = await client.post(
        "/api/v1/admin/pricing",
        json={
            "tableTypeId": venue.table_type_id,
            "dayType": "SPECIAL_EVENT",
            "minimumSpend": "4000.00",
            "eventName": "Summer Kickoff",
        },
        headers=MANAGER_HEADERS,
    )
    assert missing_window.status_code == 400

    bad_day_type = await client.post(
        "/api/v1/admin/pricing",
        json={"tableTypeId": venue.table_type_id, "dayType": "HOLIDAY", "minimumSpend": "4000.00"},
        headers=MANAGER_HEADERS,
    )
    assert bad_day_type.status_code == 400

    created = await client.post(
        "/api/v1/admin/pricing",
        json={
            "tableTypeId": venue.table_type_id,
            "dayType": "special_event",
            "minimumSpend": "4000.00",
            "depositRate": "0.25",
            "eventName": "Summer Kickoff",
            "startDate": "2030-06-15",
            "endDate": "2030-06-15",
            "priority": 10,
        },
        headers=MANAGER_HEADERS,
    )
    assert created.status_code == 201, created.text
    rule = created.json()
    assert rule["dayType"] == "SPECIAL_EVENT"
    assert rule["tableType"]["slug"] == venue.slug

    quote = await client.get("/api/v1/pricing/quote", params={"tableId": venue.table_type_id, "date": "2030-06-15"})
    assert Decimal(quote.json()["minimumSpend"]) == Decimal("4000.00")
    assert quote.json()["isSpecialEvent"] is True

    updated = await client.patch(
        f"/api/v1/admin/pricing/{rule['id']}", json={"active": False}, headers=MANAGER_HEADERS
    )
    assert updated.status_code == 200
    assert updated.json()["active"] is False

    deleted = await client.delete(f"/api/v1/admin/pricing/{rule['id']}", headers=MANAGER_HEADERS)
    assert deleted.status_code == 200

    listed = await client.get("/api/v1/admin/pricing", headers=MANAGER_HEADERS)
    assert {r["dayType"] for r in listed.json()} == {"WEEKDAY", "WEEKEND"}


async def test_null_patch_fields_are_rejected(client, venue):
    created = await client.post("/api/v1/admin/bottles", json=NEW_BOTTLE, headers=MANAGER_HEADERS)
    bottle_id = created.json()["id"]
    rules = await client.get("/api/v1/admin/pricing", headers=MANAGER_HEADERS)
    rule_id = rules.json()[0]["id"]

    table = await client.patch(
        f"/api/v1/admin/tables/{venue.table_type_id}", json={"name": None}, headers=MANAGER_HEADERS
    )
    bottle = await client.patch(f"/api/v1/admin/bottles/{bottle_id}", json={"price": None}, headers=MANAGER_HEADERS)
    rule = await client.patch(
        f"/api/v1/admin/pricing/{rule_id}", json={"dayType": None, "priority": None}, headers=MANAGER_HEADERS
    )

    assert table.status_code == 422
    assert bottle.status_code == 422
    assert rule.status_code == 422
    assert "day_type, priority" in rule.text

    kept = await client.get(f"/api/v1/admin/tables/{venue.table_type_id}", headers=MANAGER_HEADERS)
    assert kept.json()["name"] == "Dance Floor Table"


async def test_null_clears_nullable_columns(client, venue):
    created = await client.post("/api/v1/admin/bottles", json=NEW_BOTTLE, headers=MANAGER_HEADERS)
    bottle_id = created.json()["id"]

    table = await client.patch(
        f"/api/v1/admin/tables/{venue.table_type_id}", json={"section": None}, headers=MANAGER_HEADERS
    )
    bottle = await client.patch(f"/api/v1/admin/bottles/{bottle_id}", json={"sku": None}, headers=MANAGER_HEADERS)

    assert table.status_code == 200, table.text
    assert table.json()["section"] is None
    assert bottle.status_code == 200, bottle.text
    assert bottle.json()["sku"] is None
