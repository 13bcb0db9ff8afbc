import os
import tempfile
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

_DB_PATH = Path(tempfile.mkdtemp(prefix="cantina-tests-")) / "cantina.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ["MANAGER_API_KEY"] = "test-manager-key"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from redis.exceptions import RedisError  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from cantina.app.core import redis_client as redis_module  # noqa: E402
from cantina.app.core.enums import DayType, ReservationStatus  # noqa: E402
from cantina.app.core.redis_client import close_redis, init_redis  # noqa: E402
from cantina.app.db.models import (  # noqa: E402
    Base,
    Bottle,
    PricingRule,
    Reservation,
    TableInventory,
    TableType,
)
from cantina.app.db.session import SessionLocal, engine  # noqa: E402
from cantina.app.main import app  # noqa: E402


MANAGER_HEADERS = {"X-Manager-Key": "test-manager-key"}

# 2030-06-15 is a Saturday, 2030-06-14 a Friday, 2030-06-12 a Wednesday.
SATURDAY = date(2030, 6, 15)
FRIDAY = date(2030, 6, 14)
WEDNESDAY = date(2030, 6, 12)
UNSTOCKED_NIGHT = date(2030, 6, 20)


@dataclass
class Venue:
    table_type_id: str
    slug: str
    saturday_inventory_id: str
    wednesday_inventory_id: str
    friday_inventory_id: str
    grey_goose_id: str
    dom_id: str
    don_julio_id: str


@pytest_asyncio.fixture(scope="session", autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture(autouse=True)
async def clean_tables():
    yield
    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def redis_ready():
    await init_redis()
    try:
        await redis_module.redis_client.ping()
    except RedisError:
        await close_redis()
        pytest.skip("Redis is not reachable")
    try:
        yield redis_module.redis_client
    finally:
        await close_redis()


@pytest_asyncio.fixture
async def venue() -> Venue:
    """Dance floor table: three tables Saturday, one Wednesday, Friday blocked."""
    async with SessionLocal() as session:
        table = TableType(
            name="Dance Floor Table",
            slug="dance-floor-table",
            description="High-energy tables right next to the dance floor.",
            short_description="By the dance floor",
            capacity=12,
            section="Dance Floor",
            base_minimum_spend=Decimal("2000.00"),
            amenities=["Sparklers"],
            images=[],
            sort_order=4,
            active=True,
        )
        session.add(table)
        session.add_all(
            [
                PricingRule(
                    table_type=table,
                    day_type=DayType.WEEKDAY,
                    minimum_spend=Decimal("2000.00"),
                    deposit_rate=Decimal("0.15"),
                    priority=0,
                    active=True,
                ),
                PricingRule(
                    table_type=table,
                    day_type=DayType.WEEKEND,
                    minimum_spend=Decimal("3000.00"),
                    deposit_rate=Decimal("0.15"),
                    priority=0,
                    active=True,
                ),
            ]
        )
        saturday = TableInventory(table_type=table, date=SATURDAY, total_count=3, available=3, blocked=False)
        wednesday = TableInventory(table_type=table, date=WEDNESDAY, total_count=1, available=1, blocked=False)
        friday = TableInventory(table_type=table, date=FRIDAY, total_count=5, available=5, blocked=True)
        session.add_all([saturday, wednesday, friday])

        grey_goose = _bottle("VOD-GG-750", "Grey Goose", "Grey Goose", "VODKA", "350.00", 1)
        dom = _bottle("CHA-DOM-750", "Dom Perignon", "Dom Perignon", "CHAMPAGNE", "800.00", 2)
        don_julio = _bottle("TEQ-DJ42-750", "Don Julio 1942", "Don Julio", "TEQUILA", "450.00", 3)
        session.add_all([grey_goose, dom, don_julio])
        await session.commit()

        return Venue(
            table_type_id=table.id,
            slug=table.slug,
            saturday_inventory_id=saturday.id,
            wednesday_inventory_id=wednesday.id,
            friday_inventory_id=friday.id,
            grey_goose_id=grey_goose.id,
            dom_id=dom.id,
            don_julio_id=don_julio.id,
        )


def _bottle(sku, name, brand, category, price, sort_order) -> Bottle:
    return Bottle(
        sku=sku,
        name=name,
        brand=brand,
        category=category,
        size="750ml",
        price=Decimal(price),
        description="",
        image="",
        in_stock=True,
        active=True,
        sort_order=sort_order,
        on_hand=10,
        par=4,
    )


def booking_payload(venue: Venue, night: date, **overrides) -> dict:
    payload = {
        "tableTypeId": venue.table_type_id,
        "date": night.isoformat(),
        "customerName": "Dana Reyes",
        "customerEmail": "dana@example.com",
        "customerPhone": "+1-352-555-0142",
        "partySize": 6,
        "occasion": "Birthday",
        "bottles": [
            {"bottleId": venue.grey_goose_id, "quantity": 2, "pricePerUnit": "350.00"},
            {"bottleId": venue.dom_id, "quantity": 1, "pricePerUnit": "800.00"},
        ],
    }
    payload.update(overrides)
    return payload


async def inventory_available(inventory_id: str) -> int:
    async with SessionLocal() as session:
        row = await session.get(TableInventory, inventory_id)
        return row.available


async def row_count(model) -> int:
    async with SessionLocal() as session:
        return await session.scalar(select(func.count()).select_from(model))


async def reservation_count() -> int:
    return await row_count(Reservation)


async def add_reservation(
    venue: Venue,
    when: datetime,
    *,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    name: str = "Walk In",
    email: str = "walkin@example.com",
    minimum_spend: Decimal = Decimal("2000.00"),
) -> str:
    """Insert a reservation directly, without touching inventory."""
    async with SessionLocal() as session:
        reservation = Reservation(
            table_type_id=venue.table_type_id,
            date=when.astimezone(timezone.utc),
            customer_name=name,
            customer_email=email,
            customer_phone="+1-352-555-0100",
            party_size=4,
            status=status,
            minimum_spend=minimum_spend,
            bottle_subtotal=Decimal("0.00"),
            deposit_amount=Decimal("0.00"),
        )
        session.add(reservation)
        await session.commit()
        return reservation.id
