import datetime as dt
import secrets
import uuid
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from cantina.app.core.enums import DayType, NotificationType, ReservationStatus


MONEY = Numeric(10, 2)
RATE = Numeric(4, 2)

_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def _uuid() -> str:
    return str(uuid.uuid4())


def generate_confirmation_code() -> str:
    """Opaque public booking reference, e.g. ``CT-7KQ2M9XA``."""
    return "CT-" + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(8))


def _enum(enum_cls, name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


class Base(DeclarativeBase):
    # Server-generated timestamps are fetched in the same flush
    __mapper_args__ = {"eager_defaults": True}


class TimestampMixin:
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TableType(TimestampMixin, Base):
    __tablename__ = "table_type"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(120))
    slug: Mapped[str] = mapped_column(String(120), unique=True)
    description: Mapped[str] = mapped_column(Text, default="")
    short_description: Mapped[str] = mapped_column(String(255), default="")
    capacity: Mapped[int] = mapped_column(Integer)
    section: Mapped[str | None] = mapped_column(String(120))
    base_minimum_spend: Mapped[Decimal] = mapped_column(MONEY)
    amenities: Mapped[list] = mapped_column(JSON, default=list)
    images: Mapped[list] = mapped_column(JSON, default=list)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    inventory: Mapped[list["TableInventory"]] = relationship(
        back_populates="table_type", cascade="all, delete-orphan"
    )
    pricing_rules: Mapped[list["PricingRule"]] = relationship(
        back_populates="table_type", cascade="all, delete-orphan"
    )
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="table_type")

    def __repr__(self) -> str:
        return f"<TableType(slug={self.slug}, capacity={self.capacity})>"


class TableInventory(TimestampMixin, Base):
    __tablename__ = "table_inventory"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    table_type_id: Mapped[str] = mapped_column(ForeignKey("table_type.id", ondelete="CASCADE"))
    date: Mapped[dt.date] = mapped_column(Date)
    total_count: Mapped[int] = mapped_column(Integer)
    available: Mapped[int] = mapped_column(Integer)
    blocked: Mapped[bool] = mapped_column(Boolean, default=False)

    table_type: Mapped[TableType] = relationship(back_populates="inventory")

    __table_args__ = (
        # At most one row per table type per night
        UniqueConstraint("table_type_id", "date", name="uq_inventory_table_date"),
        CheckConstraint("available >= 0", name="ck_inventory_available_non_negative"),
        CheckConstraint("available <= total_count", name="ck_inventory_available_le_total"),
    )

    def __repr__(self) -> str:
        return f"<TableInventory({self.table_type_id} {self.date} {self.available}/{self.total_count})>"


class Bottle(TimestampMixin, Base):
    __tablename__ = "bottle"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    sku: Mapped[str | None] = mapped_column(String(64), unique=True)
    name: Mapped[str] = mapped_column(String(160))
    brand: Mapped[str] = mapped_column(String(120))
    category: Mapped[str] = mapped_column(String(60))
    size: Mapped[str] = mapped_column(String(40))
    price: Mapped[Decimal] = mapped_column(MONEY)
    description: Mapped[str] = mapped_column(Text, default="")
    image: Mapped[str] = mapped_column(String(500), default="")
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    on_hand: Mapped[int] = mapped_column(Integer, default=0)
    par: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<Bottle({self.brand} {self.name} {self.size})>"


class PricingRule(TimestampMixin, Base):
    __tablename__ = "pricing_rule"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    table_type_id: Mapped[str] = mapped_column(ForeignKey("table_type.id", ondelete="CASCADE"))
    day_type: Mapped[DayType] = mapped_column(_enum(DayType, "day_type"))
    minimum_spend: Mapped[Decimal] = mapped_column(MONEY)
    deposit_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0.15"))
    event_name: Mapped[str | None] = mapped_column(String(160))
    start_date: Mapped[dt.date | None] = mapped_column(Date)
    end_date: Mapped[dt.date | None] = mapped_column(Date)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    table_type: Mapped[TableType] = relationship(back_populates="pricing_rules")

    __table_args__ = (Index("ix_pricing_rule_lookup", "table_type_id", "active", "priority"),)

    def __repr__(self) -> str:
        return f"<PricingRule({self.table_type_id} {self.day_type} p={self.priority})>"


class Reservation(TimestampMixin, Base):
    __tablename__ = "reservation"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    confirmation_code: Mapped[str] = mapped_column(
        String(16), unique=True, default=generate_confirmation_code
    )
    table_type_id: Mapped[str] = mapped_column(ForeignKey("table_type.id"))
    date: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), index=True)
    customer_name: Mapped[str] = mapped_column(String(200))
    customer_email: Mapped[str] = mapped_column(String(254), index=True)
    customer_phone: Mapped[str] = mapped_column(String(32))
    party_size: Mapped[int] = mapped_column(Integer, default=1)
    occasion: Mapped[str | None] = mapped_column(String(120))
    special_requests: Mapped[str | None] = mapped_column(Text)
    status: Mapped[ReservationStatus] = mapped_column(
        _enum(ReservationStatus, "reservation_status"), default=ReservationStatus.PENDING
    )
    minimum_spend: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    bottle_subtotal: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    deposit_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))

    table_type: Mapped[TableType] = relationship(back_populates="reservations")
    bottles: Mapped[list["ReservationBottle"]] = relationship(
        back_populates="reservation", cascade="all, delete-orphan"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        back_populates="reservation", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Reservation(code={self.confirmation_code}, status={self.status})>"


class ReservationBottle(Base):
    __tablename__ = "reservation_bottle"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    reservation_id: Mapped[str] = mapped_column(ForeignKey("reservation.id", ondelete="CASCADE"))
    bottle_id: Mapped[str] = mapped_column(ForeignKey("bottle.id"))
    quantity: Mapped[int] = mapped_column(Integer)
    # Captured at booking time, independent of the bottle's live price
    price_per_unit: Mapped[Decimal] = mapped_column(MONEY)
    total_price: Mapped[Decimal] = mapped_column(MONEY)

    reservation: Mapped[Reservation] = relationship(back_populates="bottles")
    bottle: Mapped[Bottle] = relationship()

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_reservation_bottle_quantity_positive"),)


class Notification(Base):
    __tablename__ = "notification"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    reservation_id: Mapped[str] = mapped_column(ForeignKey("reservation.id", ondelete="CASCADE"))
    type: Mapped[NotificationType] = mapped_column(_enum(NotificationType, "notification_type"))
    recipient: Mapped[str] = mapped_column(String(254))
    subject: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    sent_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    reservation: Mapped[Reservation] = relationship(back_populates="notifications")


class Setting(TimestampMixin, Base):
    __tablename__ = "setting"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    key: Mapped[str] = mapped_column(String(120), unique=True)
    value: Mapped[dict] = mapped_column(JSON)
    description: Mapped[str | None] = mapped_column(String(255))
