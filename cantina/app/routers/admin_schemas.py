import datetime as dt
from decimal import Decimal
from typing import ClassVar

from pydantic import EmailStr, Field, model_validator

from cantina.app.core.enums import DayType
from cantina.app.routers.schemas import CamelModel, ReservationOut

_DAY = r"^\d{4}-\d{2}-\d{2}$"


class PartialUpdate(CamelModel):
    """PATCH body. Omitted fields are left alone; null only clears `NULLABLE` columns."""

    NULLABLE: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _no_null_for_required_columns(self):
        nulled = sorted(
            name for name in self.model_fields_set if getattr(self, name) is None and name not in self.NULLABLE
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class TableTypeSummary(CamelModel):
    id: str
    name: str
    slug: str


class TableTypeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    slug: str = Field(min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str = Field(min_length=1)
    short_description: str = Field(min_length=1, max_length=255)
    capacity: int = Field(ge=1, le=100)
    base_minimum_spend: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    section: str | None = None
    amenities: list[str] = []
    images: list[str] = []
    sort_order: int = 0
    active: bool = True


class TableTypeUpdate(PartialUpdate):
    NULLABLE = frozenset({"section"})

    name: str | None = Field(default=None, min_length=1, max_length=120)
    slug: str | None = Field(default=None, min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=255)
    capacity: int | None = Field(default=None, ge=1, le=100)
    base_minimum_spend: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    section: str | None = None
    amenities: list[str] | None = None
    images: list[str] | None = None
    sort_order: int | None = None
    active: bool | None = None


class BottleCreate(CamelModel):
    name: str = Field(min_length=1, max_length=160)
    brand: str = Field(min_length=1, max_length=120)
    category: str = Field(min_length=1, max_length=60)
    size: str = Field(min_length=1, max_length=40)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    sku: str | None = Field(default=None, max_length=64)
    description: str = ""
    image: str = ""
    in_stock: bool = True
    active: bool = True
    sort_order: int = 0
    on_hand: int = Field(default=0, ge=0)
    par: int = Field(default=0, ge=0)


class BottleUpdate(PartialUpdate):
    NULLABLE = frozenset({"sku"})

    name: str | None = Field(default=None, min_length=1, max_length=160)
    brand: str | None = Field(default=None, min_length=1, max_length=120)
    category: str | None = Field(default=None, min_length=1, max_length=60)
    size: str | None = Field(default=None, min_length=1, max_length=40)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    sku: str | None = Field(default=None, max_length=64)
    description: str | None = None
    image: str | None = None
    in_stock: bool | None = None
    active: bool | None = None
    sort_order: int | None = None
    on_hand: int | None = Field(default=None, ge=0)
    par: int | None = Field(default=None, ge=0)


class InventoryUpsertIn(CamelModel):
    table_type_id: str
    start_date: dt.date
    end_date: dt.date
    total_count: int = Field(ge=0, le=500)
    blocked: bool = False


class InventoryOut(CamelModel):
    id: str
    table_type_id: str
    date: dt.date
    total_count: int
    available: int
    blocked: bool


class InventoryWithTableOut(InventoryOut):
    table_type: TableTypeSummary


class InventoryUpsertOut(CamelModel):
    message: str
    records: list[InventoryOut]


class PricingRuleCreate(CamelModel):
    table_type_id: str
    day_type: str
    minimum_spend: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    deposit_rate: Decimal = Field(default=Decimal("0.15"), ge=0, le=1, decimal_places=2)
    event_name: str | None = Field(default=None, max_length=160)
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    priority: int = 0
    active: bool = True


class PricingRuleUpdate(PartialUpdate):
    NULLABLE = frozenset({"event_name", "start_date", "end_date"})

    table_type_id: str | None = None
    day_type: str | None = None
    minimum_spend: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    deposit_rate: Decimal | None = Field(default=None, ge=0, le=1, decimal_places=2)
    event_name: str | None = Field(default=None, max_length=160)
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    priority: int | None = None
    active: bool | None = None


class PricingRuleOut(CamelModel):
    id: str
    table_type_id: str
    day_type: DayType
    minimum_spend: Decimal
    deposit_rate: Decimal
    event_name: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    priority: int
    active: bool
    table_type: TableTypeSummary


class StatusCount(CamelModel):
    status: str
    count: int


class RevenueTotals(CamelModel):
    total: Decimal
    deposits: Decimal


class AdminBookingsOut(CamelModel):
    bookings: list[ReservationOut]
    stats: list[StatusCount]
    total_revenue: RevenueTotals


class AdminStatusIn(CamelModel):
    booking_id: str | None = None
    status: str | None = None


class AdminBookingUpdatedOut(CamelModel):
    success: bool = True
    booking: ReservationOut


class NightStatsOut(CamelModel):
    total_bookings: int
    pending: int
    confirmed: int
    completed: int
    no_shows: int
    cancelled: int
    expected_revenue: Decimal
    actual_revenue: Decimal


class TonightOut(CamelModel):
    date: dt.date
    bookings: list[ReservationOut]
    stats: NightStatsOut


class MessageOut(CamelModel):
    message: str


# Manager tool payloads


class GetInventoryIn(CamelModel):
    sku_or_name: str | None = Field(default=None, min_length=1)
    limit: int = Field(default=100, ge=1, le=500)


class StockItemOut(CamelModel):
    id: str
    sku: str | None = None
    name: str
    brand: str
    category: str
    size: str
    price: Decimal
    on_hand: int
    par: int
    active: bool
    in_stock: bool


class GetInventoryOut(CamelModel):
    count: int
    items: list[StockItemOut]


class AdjustInventoryIn(CamelModel):
    sku_or_name: str = Field(min_length=1)
    set_on_hand: int | None = Field(default=None, ge=0)
    delta_on_hand: int | None = None
    set_par: int | None = Field(default=None, ge=0)


class AdjustedBottleOut(CamelModel):
    id: str
    sku: str | None = None
    brand: str
    name: str
    on_hand: int
    par: int


class AdjustInventoryOut(CamelModel):
    updated: AdjustedBottleOut
    message: str


class FindReservationIn(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    confirmation_code: str | None = Field(default=None, min_length=1)
    date: str | None = Field(default=None, pattern=_DAY)


class FoundReservationOut(CamelModel):
    count: int
    results: list[ReservationOut]


class BookingsTonightIn(CamelModel):
    date: str | None = Field(default=None, pattern=_DAY)
    shift: str = Field(default="all", pattern=r"^(evening|all)$")


class TonightBookingLine(CamelModel):
    booking_id: str
    guest: str
    size: int
    time_utc: dt.datetime
    time_local: dt.datetime
    status: str
    table_type_id: str | None = None
    table_type_name: str = ""
    section: str | None = None
    slug: str | None = None


class BookingsTonightOut(CamelModel):
    date: dt.date
    shift: str
    count: int
    bookings: list[TonightBookingLine]


class SetMinimumSpendIn(CamelModel):
    table_type: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    date: str | None = Field(default=None, pattern=_DAY)
    start_date: str | None = Field(default=None, pattern=_DAY)
    end_date: str | None = Field(default=None, pattern=_DAY)
    deposit_rate: Decimal = Field(default=Decimal("0.15"), ge=0, le=1)
    event_name: str | None = None

    @model_validator(mode="after")
    def _date_or_range(self):
        if not self.date and not (self.start_date and self.end_date):
            raise ValueError("Provide either `date` or both `startDate` and `endDate`.")
        return self


class CreatedRuleOut(CamelModel):
    id: str
    table_type: TableTypeSummary
    minimum_spend: Decimal
    deposit_rate: Decimal
    start_date: dt.date | None = None
    end_date: dt.date | None = None


class SetMinimumSpendOut(CamelModel):
    created: CreatedRuleOut


class PurchaseOrderItemIn(CamelModel):
    sku_or_name: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class PurchaseOrderIn(CamelModel):
    items: list[PurchaseOrderItemIn] = Field(min_length=1)
    supplier_email: EmailStr
    notes: str | None = None


class PurchaseOrderOut(CamelModel):
    saved_key: str
    item_count: int
    email_draft: str
