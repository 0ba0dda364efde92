# booking_engine/pricing.py
"""
Dynamic pricing.

Every active rule whose conditions hold for (barber, service, date, time) is
a candidate. Exactly one candidate is applied: the highest priority wins,
then a targeted rule (service and/or barber set) beats a generic one, then
the lowest id. Rules never stack.
"""

import logging
from datetime import date, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from .core import day_of_week
from .models import PricingRule, Service
from .schemas import PriceQuote

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def rule_matches(
    rule: PricingRule,
    barber_id: Optional[int],
    service_id: Optional[int],
    on_date: date,
    at: time,
) -> bool:
    if not rule.active:
        return False

    # Validity window is checked against the booking date
    if rule.valid_from is not None and on_date < rule.valid_from:
        return False
    if rule.valid_until is not None and on_date > rule.valid_until:
        return False

    if rule.service_id is not None and rule.service_id != service_id:
        return False
    if rule.barber_id is not None and rule.barber_id != barber_id:
        return False

    if rule.day_of_week is not None and rule.day_of_week != day_of_week(on_date):
        return False

    if rule.start_time is not None and rule.end_time is not None:
        if not (rule.start_time <= at < rule.end_time):
            return False

    return True


def _rank(rule: PricingRule):
    targeted = rule.service_id is not None or rule.barber_id is not None
    return (-rule.priority, not targeted, rule.id)


def select_rule(
    rules: Iterable[PricingRule],
    barber_id: Optional[int],
    service_id: Optional[int],
    on_date: date,
    at: time,
) -> Optional[PricingRule]:
    candidates = [r for r in rules if rule_matches(r, barber_id, service_id, on_date, at)]
    if not candidates:
        return None
    return min(candidates, key=_rank)


def apply_modifier(price: Decimal, rule: PricingRule) -> Decimal:
    value = Decimal(rule.price_modifier_value)
    if rule.price_modifier_type == "percentage":
        result = price * (1 + value / 100)
    else:
        result = price + value
    return max(Decimal("0"), result).quantize(CENTS, rounding=ROUND_HALF_UP)


def quote_price(
    rules: Iterable[PricingRule],
    base_price,
    barber_id: Optional[int],
    service_id: Optional[int],
    on_date: date,
    at: time,
) -> PriceQuote:
    base = Decimal(str(base_price)).quantize(CENTS, rounding=ROUND_HALF_UP)
    rule = select_rule(rules, barber_id, service_id, on_date, at)
    if rule is None:
        return PriceQuote(base_price=base, final_price=base)
    return PriceQuote(
        base_price=base,
        final_price=apply_modifier(base, rule),
        applied_rule_id=rule.id,
        applied_rule_name=rule.name,
    )


def load_active_rules(session: Session) -> List[PricingRule]:
    return session.exec(
        select(PricingRule).where(PricingRule.active == True)  # noqa: E712
        .order_by(PricingRule.priority.desc(), PricingRule.id)
    ).all()


def compute_price(
    session: Session,
    base_price,
    barber_id: Optional[int],
    service_id: Optional[int],
    on_date: date,
    at: time,
) -> PriceQuote:
    quote = quote_price(load_active_rules(session), base_price, barber_id, service_id, on_date, at)
    if quote.applied_rule_id is not None:
        logger.debug(
            f"Pricing rule {quote.applied_rule_id} applied: {quote.base_price} -> {quote.final_price}"
        )
    return quote


def calculate_total_duration(service_ids: Sequence[int], services: Iterable[Service]) -> int:
    return sum(s.duration_minutes for s in services if s.id in service_ids)


def calculate_total_price(service_ids: Sequence[int], services: Iterable[Service]) -> Decimal:
    return sum((Decimal(s.price) for s in services if s.id in service_ids), Decimal("0"))
