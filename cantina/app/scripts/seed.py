"""Load demo data: table types, pricing rules, 60 nights of inventory and the bottle menu.

Run with ``python -m cantina.app.scripts.seed``. Existing rows are wiped first.
"""
import asyncio
import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import delete

from cantina.app.core.enums import DayType
from cantina.app.core.logging_config import configure_logging
from cantina.app.db.models import (
    Base,
    Bottle,
    Notification,
    PricingRule,
    Reservation,
    ReservationBottle,
    Setting,
    TableInventory,
    TableType,
)
from cantina.app.db.session import SessionLocal, engine


logger = logging.getLogger(__name__)

INVENTORY_DAYS = 60

TABLE_TYPES = [
    {
        "name": "Regular Table",
        "slug": "regular-table",
        "description": "Perfect for small groups looking for an intimate night out with premium bottle service.",
        "short_description": "Intimate seating for small groups",
        "capacity": 6,
        "section": "Main Floor",
        "amenities": ["Dedicated Server", "Premium Mixers", "Complimentary Appetizer"],
        "base_minimum_spend": Decimal("500.00"),
        "sort_order": 1,
    },
    {
        "name": "VIP Booth",
        "slug": "vip-booth",
        "description": "Private booth with a dedicated cocktail server overlooking the main floor.",
        "short_description": "Exclusive VIP experience with premium service",
        "capacity": 10,
        "section": "VIP Section",
        "amenities": ["Private Server", "Premium Mixers", "Champagne Presentation", "VIP Entry"],
        "base_minimum_spend": Decimal("1500.00"),
        "sort_order": 2,
    },
    {
        "name": "Balcony Table",
        "slug": "balcony-table",
        "description": "Elevated seating with panoramic views of the venue, made for celebrations.",
        "short_description": "Elevated seating with panoramic views",
        "capacity": 8,
        "section": "Balcony Level",
        "amenities": ["Dedicated Server", "Premium Mixers", "Priority Reservations", "Coat Check"],
        "base_minimum_spend": Decimal("1000.00"),
        "sort_order": 3,
    },
    {
        "name": "Dance Floor Table",
        "slug": "dance-floor-table",
        "description": "High-energy tables right next to the dance floor.",
        "short_description": "High-energy seating by the dance floor",
        "capacity": 12,
        "section": "Dance Floor",
        "amenities": ["Bottle Parade", "Sparklers", "DJ Shout-out", "Premium Mixers"],
        "base_minimum_spend": Decimal("2000.00"),
        "sort_order": 4,
    },
]

# (sku, name, brand, category, price)
BOTTLES = [
    ("VOD-GG-750", "Grey Goose", "Grey Goose", "VODKA", "350"),
    ("VOD-BEL-750", "Belvedere", "Belvedere", "VODKA", "325"),
    ("VOD-TIT-750", "Tito's", "Tito's", "VODKA", "250"),
    ("WHI-HEN-750", "Hennessy VS", "Hennessy", "WHISKEY", "400"),
    ("WHI-JAM-750", "Jameson", "Jameson", "WHISKEY", "280"),
    ("WHI-MAC12-750", "Macallan 12", "Macallan", "WHISKEY", "550"),
    ("TEQ-DJ42-750", "Don Julio 1942", "Don Julio", "TEQUILA", "450"),
    ("TEQ-PAT-750", "Patron Silver", "Patron", "TEQUILA", "375"),
    ("TEQ-CAS-750", "Casamigos Reposado", "Casamigos", "TEQUILA", "350"),
    ("CHA-DOM-750", "Dom Perignon", "Dom Perignon", "CHAMPAGNE", "800"),
    ("CHA-VEU-750", "Veuve Clicquot", "Veuve Clicquot", "CHAMPAGNE", "400"),
    ("CHA-MOE-750", "Moet & Chandon", "Moet", "CHAMPAGNE", "350"),
]

SETTINGS = {
    "business_hours": (
        {
            "thursday": {"open": "20:00", "close": "02:00"},
            "friday": {"open": "20:00", "close": "03:00"},
            "saturday": {"open": "20:00", "close": "03:00"},
            "sunday": {"open": "18:00", "close": "00:00"},
        },
        "Business operating hours",
    ),
    "contact_info": (
        {"phone": "+1 (352) 781-2050", "email": "bookings@cantinaanejo.com"},
        "Contact information",
    ),
}


def new_years_window(today: date) -> tuple[date, date]:
    """The next New Year's Eve night and the night after it."""
    eve = date(today.year, 12, 31)
    if eve < today:
        eve = date(today.year + 1, 12, 31)
    return eve, eve + timedelta(days=1)


def pricing_rules_for(table_type: TableType, today: date) -> list[PricingRule]:
    base = table_type.base_minimum_spend
    eve_start, eve_end = new_years_window(today)
    return [
        PricingRule(table_type=table_type, day_type=DayType.WEEKDAY, minimum_spend=base, priority=0),
        PricingRule(
            table_type=table_type,
            day_type=DayType.WEEKEND,
            minimum_spend=(base * Decimal("1.5")).quantize(Decimal("0.01")),
            priority=0,
        ),
        PricingRule(
            table_type=table_type,
            day_type=DayType.SPECIAL_EVENT,
            minimum_spend=base * 2,
            deposit_rate=Decimal("0.25"),
            event_name="New Year's Eve Celebration",
            start_date=eve_start,
            end_date=eve_end,
            priority=10,
        ),
    ]


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    today = date.today()
    async with SessionLocal() as session:
        async with session.begin():
            for model in (
                Notification,
                ReservationBottle,
                Reservation,
                TableInventory,
                PricingRule,
                Bottle,
                TableType,
                Setting,
            ):
                await session.execute(delete(model))

            table_types = [TableType(**data) for data in TABLE_TYPES]
            session.add_all(table_types)

            for table_type in table_types:
                session.add_all(pricing_rules_for(table_type, today))
                count = 4 if table_type.slug == "vip-booth" else 8
                session.add_all(
                    TableInventory(
                        table_type=table_type,
                        date=today + timedelta(days=offset),
                        total_count=count,
                        available=count,
                    )
                    for offset in range(INVENTORY_DAYS)
                )

            session.add_all(
                Bottle(
                    sku=sku,
                    name=name,
                    brand=brand,
                    category=category,
                    size="750ml",
                    price=Decimal(price),
                    sort_order=position,
                    on_hand=12,
                    par=6,
                )
                for position, (sku, name, brand, category, price) in enumerate(BOTTLES, start=1)
            )

            session.add_all(
                Setting(key=key, value=value, description=description)
                for key, (value, description) in SETTINGS.items()
            )

    logger.info(
        f"Seeded {len(TABLE_TYPES)} table types, {INVENTORY_DAYS} nights of inventory and {len(BOTTLES)} bottles"
    )
    await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed())
