import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.core.enums import DayType
from cantina.app.db.models import PricingRule, TableType
from cantina.app.services.errors import PricingConflictError


logger = logging.getLogger(__name__)

DEFAULT_DEPOSIT_RATE = Decimal("0.15")

# Friday and Saturday nights are priced as the weekend.
WEEKEND_DAYS = (4, 5)


@dataclass(frozen=True)
class PricingQuote:
    table_type_id: str
    date: date
    day_type: DayType
    minimum_spend: Decimal
    deposit_rate: Decimal
    base_minimum_spend: Decimal
    rule_id: str | None = None
    event_name: str | None = None

    @property
    def is_special_event(self) -> bool:
        return self.day_type is DayType.SPECIAL_EVENT

    @property
    def price_multiplier(self) -> Decimal:
        if not self.base_minimum_spend:
            return Decimal("1.00")
        return (self.minimum_spend / self.base_minimum_spend).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def classify_day(on_date: date) -> DayType:
    return DayType.WEEKEND if on_date.weekday() in WEEKEND_DAYS else DayType.WEEKDAY


def _window_contains(rule: PricingRule, on_date: date) -> bool:
    if rule.start_date is not None and on_date < rule.start_date:
        return False
    if rule.end_date is not None and on_date > rule.end_date:
        return False
    return True


def rule_matches(rule: PricingRule, on_date: date) -> bool:
    if not rule.active:
        return False
    if rule.day_type is DayType.SPECIAL_EVENT:
        if rule.start_date is None or rule.end_date is None:
            return False
        return _window_contains(rule, on_date)
    return rule.day_type is classify_day(on_date) and _window_contains(rule, on_date)


def select_rule(rules: Iterable[PricingRule], table_type_id: str, on_date: date) -> PricingRule | None:
    """Pick the single highest-priority matching rule.

    Ties at the top priority are a configuration problem; they raise
    PricingConflictError rather than being broken arbitrarily.
    """
    candidates = [rule for rule in rules if rule_matches(rule, on_date)]
    if not candidates:
        return None

    top = max(rule.priority for rule in candidates)
    winners = [rule for rule in candidates if rule.priority == top]
    if len(winners) > 1:
        raise PricingConflictError(table_type_id, on_date, sorted(rule.id for rule in winners))
    return winners[0]


def build_quote(table_type: TableType, rules: Iterable[PricingRule], on_date: date) -> PricingQuote:
    try:
        rule = select_rule(rules, table_type.id, on_date)
    except PricingConflictError:
        logger.error(f"Pricing conflict for table type {table_type.slug} on {on_date}")
        raise

    if rule is None:
        return PricingQuote(
            table_type_id=table_type.id,
            date=on_date,
            day_type=classify_day(on_date),
            minimum_spend=table_type.base_minimum_spend,
            deposit_rate=DEFAULT_DEPOSIT_RATE,
            base_minimum_spend=table_type.base_minimum_spend,
        )

    return PricingQuote(
        table_type_id=table_type.id,
        date=on_date,
        day_type=rule.day_type,
        minimum_spend=rule.minimum_spend,
        deposit_rate=rule.deposit_rate,
        base_minimum_spend=table_type.base_minimum_spend,
        rule_id=rule.id,
        event_name=rule.event_name,
    )


async def load_active_rules(session: AsyncSession, table_type_id: str) -> list[PricingRule]:
    result = await session.execute(
        select(PricingRule).where(
            PricingRule.table_type_id == table_type_id,
            PricingRule.active.is_(True),
        )
    )
    return list(result.scalars())


async def resolve_pricing(session: AsyncSession, table_type: TableType, on_date: date) -> PricingQuote:
    """Minimum spend and deposit rate shown to the customer for one night."""
    rules = await load_active_rules(session, table_type.id)
    return build_quote(table_type, rules, on_date)
