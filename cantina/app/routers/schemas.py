import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cantina.app.core.enums import DayType, ReservationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TableTypeOut(CamelModel):
    id: str
    name: str
    slug: str
    description: str
    short_description: str
    capacity: int
    section: str | None = None
    base_minimum_spend: Decimal
    amenities: list[str] = []
    images: list[str] = []
    sort_order: int
    active: bool


class BottleOut(CamelModel):
    id: str
    sku: str | None = None
    name: str
    brand: str
    category: str
    size: str
    price: Decimal
    description: str
    image: str
    in_stock: bool
    active: bool
    sort_order: int
    on_hand: int
    par: int


class BottleSelectionIn(CamelModel):
    bottle_id: str
    quantity: int = Field(ge=1, le=100)
    price_per_unit: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class BookingCreateIn(CamelModel):
    # Required fields are checked by booking intake so a missing one is a
    # plain 400 "Missing required fields".
    table_type_id: str | None = None
    # ISO 8601 date or datetime, e.g. "2025-11-08" or "2025-11-08T22:00:00-05:00"
    date: str | None = None
    customer_name: str | None = Field(default=None, max_length=200)
    customer_email: str | None = Field(default=None, max_length=254)
    customer_phone: str | None = Field(default=None, max_length=32)
    party_size: int | None = Field(default=None, ge=1, le=50)
    occasion: str | None = Field(default=None, max_length=120)
    special_requests: str | None = Field(default=None, max_length=1024)
    bottles: list[BottleSelectionIn] = []
    minimum_spend: Decimal | None = Field(default=None, ge=0)
    bottle_subtotal: Decimal | None = Field(default=None, ge=0)
    deposit_amount: Decimal | None = Field(default=None, ge=0)


class ReservationBottleOut(CamelModel):
    id: str
    bottle_id: str
    quantity: int
    price_per_unit: Decimal
    total_price: Decimal
    bottle: BottleOut


class ReservationOut(CamelModel):
    id: str
    confirmation_code: str
    table_type_id: str
    date: dt.datetime
    customer_name: str
    customer_email: str
    customer_phone: str
    party_size: int
    occasion: str | None = None
    special_requests: str | None = None
    status: ReservationStatus
    minimum_spend: Decimal
    bottle_subtotal: Decimal
    deposit_amount: Decimal
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    table_type: TableTypeOut
    bottles: list[ReservationBottleOut] = []


class BookingCreatedOut(CamelModel):
    success: bool = True
    confirmation_code: str
    reservation: ReservationOut


class StatusUpdateIn(CamelModel):
    status: str


class AvailabilityDayOut(CamelModel):
    date: dt.date
    available: int
    total: int
    price_multiplier: float
    is_special_event: bool


class PricingQuoteOut(CamelModel):
    table_type_id: str
    date: dt.date
    day_type: DayType
    minimum_spend: Decimal
    deposit_rate: Decimal
    base_minimum_spend: Decimal
    price_multiplier: float
    is_special_event: bool
    rule_id: str | None = None
    event_name: str | None = None


class DraftBottle(CamelModel):
    bottle_id: str
    name: str | None = None
    quantity: int = Field(ge=1, le=100)
    price_per_unit: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class DraftCustomer(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=254)
    phone: str | None = Field(default=None, max_length=32)
    party_size: int | None = Field(default=None, ge=1, le=50)
    occasion: str | None = Field(default=None, max_length=120)
    special_requests: str | None = Field(default=None, max_length=1024)


class DraftIn(CamelModel):
    table_type_id: str | None = None
    date: str | None = None
    bottles: list[DraftBottle] | None = None
    customer: DraftCustomer | None = None


class DraftOut(CamelModel):
    token: str
    expires_in_seconds: int
    table_type_id: str | None = None
    date: str | None = None
    bottles: list[DraftBottle] = []
    customer: DraftCustomer | None = None
    bottle_subtotal: Decimal
    deposit_amount: Decimal
    updated_at: dt.datetime | None = None
