"""Claim submission: validation, currency conversion and chain materialization."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from claimflow import db
from claimflow.errors import ValidationError
from claimflow.models import (
    CLAIM_CATEGORIES,
    SUPPORTED_CURRENCIES,
    ApprovalStep,
    Claim,
    ClaimItem,
    ClaimStatus,
    StepStatus,
    User,
)
from claimflow.services.currency_service import CurrencyGateway, get_gateway, rate_or_default
from claimflow.services.policy_service import active_policy_for
from claimflow.services.rule_resolver import resolve_chain

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _positive_amount(value: Any, field: str) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError) as exc:
        raise ValidationError(f"Invalid {field}.") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field.capitalize()} must be greater than zero.")
    return amount.quantize(CENTS)


def _line_items(items: Optional[Iterable[Dict[str, Any]]]) -> List[ClaimItem]:
    line_items = []
    for index, item in enumerate(items or [], start=1):
        name = str(item.get("name") or "").strip()
        if not name:
            raise ValidationError(f"Line item {index} needs a name.")
        line_items.append(
            ClaimItem(name=name, amount=_positive_amount(item.get("amount"), f"line item {index} amount"))
        )
    return line_items


def submit_claim(
    employee: User,
    amount: Any,
    currency: str,
    category: str,
    description: str,
    merchant: Optional[str] = None,
    claim_date: Optional[date] = None,
    items: Optional[Iterable[Dict[str, Any]]] = None,
    gateway: Optional[CurrencyGateway] = None,
) -> Claim:
    """Validate and persist a claim together with its full approval chain."""
    amount = _positive_amount(amount, "amount")
    currency = (currency or "").upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise ValidationError(
            "Unsupported currency.", details={"supported": list(SUPPORTED_CURRENCIES)}
        )
    if category not in CLAIM_CATEGORIES:
        raise ValidationError("Unknown category.", details={"categories": list(CLAIM_CATEGORIES)})
    description = (description or "").strip()
    if not description:
        raise ValidationError("Description is required.")
    claim_date = claim_date or date.today()
    if claim_date > date.today():
        raise ValidationError("Claim date cannot be in the future.")
    line_items = _line_items(items)

    company = employee.company
    policy = active_policy_for(company.id)
    chain = resolve_chain(employee, policy)

    rate = rate_or_default(gateway or get_gateway(), currency, company.currency_code)

    claim = Claim(
        company_id=company.id,
        employee_id=employee.id,
        policy_id=policy.id if policy is not None else None,
        amount=amount,
        currency=currency,
        amount_in_company_currency=(amount * rate).quantize(CENTS),
        exchange_rate=rate,
        category=category,
        description=description,
        merchant=(merchant or "").strip() or None,
        claim_date=claim_date,
        status=ClaimStatus.PENDING,
        current_approver_id=chain.approver_ids[0],
    )
    claim.items = line_items
    claim.steps = [
        ApprovalStep(approver_id=approver_id, position=position, status=StepStatus.PENDING)
        for position, approver_id in enumerate(chain.approver_ids, start=1)
    ]

    try:
        db.session.add(claim)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Claim %s submitted by %s with %d approval step(s) under %s rule",
        claim.id,
        employee.id,
        len(claim.steps),
        chain.rule.kind.value,
    )
    return claim
