# booking_engine/routers/pricing_routes.py

import logging
from datetime import date, time
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError as SchemaValidationError
from sqlmodel import Session, select

from booking_engine.db import get_session
from booking_engine.deps import require_service
from booking_engine.errors import ValidationError
from booking_engine.models import PricingRule
from booking_engine.pricing import compute_price
from booking_engine.schemas import PriceQuote, PricingRuleCreate, PricingRulePublic, PricingRuleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/pricing",
    tags=["pricing"],
)


@router.post("/rules", response_model=PricingRulePublic, status_code=201)
def create_rule(rule: PricingRuleCreate, session: Session = Depends(get_session)):
    data = rule.model_dump()
    data["rule_type"] = rule.rule_type.value
    data["price_modifier_type"] = rule.price_modifier_type.value
    db_rule = PricingRule(**data, active=True)
    session.add(db_rule)
    session.commit()
    session.refresh(db_rule)
    return db_rule


@router.get("/rules", response_model=List[PricingRulePublic])
def list_rules(session: Session = Depends(get_session)):
    return session.exec(
        select(PricingRule).order_by(PricingRule.priority.desc(), PricingRule.id)
    ).all()


@router.patch("/rules/{rule_id}", response_model=PricingRulePublic)
def update_rule(rule_id: int, update: PricingRuleUpdate, session: Session = Depends(get_session)):
    db_rule = session.get(PricingRule, rule_id)
    if db_rule is None:
        raise HTTPException(status_code=404, detail="Pricing rule not found")

    changes = update.model_dump(exclude_unset=True)
    active = changes.pop("active", None)
    if changes:
        current = PricingRulePublic.model_validate(db_rule).model_dump(exclude={"id", "active"})
        try:
            merged = PricingRuleCreate(**{**current, **changes})
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid pricing rule: {e.errors()[0]['msg']}")
        for field, value in merged.model_dump().items():
            setattr(db_rule, field, value.value if isinstance(value, Enum) else value)
    if active is not None:
        db_rule.active = active

    session.add(db_rule)
    session.commit()
    session.refresh(db_rule)
    logger.info(f"Pricing rule {rule_id} updated: {sorted(update.model_fields_set)}")
    return db_rule


@router.delete("/rules/{rule_id}", status_code=204)
def delete_rule(rule_id: int, session: Session = Depends(get_session)):
    db_rule = session.get(PricingRule, rule_id)
    if db_rule is None:
        raise HTTPException(status_code=404, detail="Pricing rule not found")
    session.delete(db_rule)
    session.commit()


@router.get("/quote", response_model=PriceQuote)
def get_price(
    service_id: int,
    date: date,
    time: time,
    barber_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    service = require_service(session, service_id)
    return compute_price(session, service.price, barber_id, service_id, date, time)
