"""Company approval policy configuration."""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from claimflow import db
from claimflow.errors import ValidationError
from claimflow.models import ApprovalPolicy, ApprovalSequence, PolicyKind, User
from claimflow.services.rule_resolver import rule_for

logger = logging.getLogger(__name__)


def active_policy_for(company_id: int) -> Optional[ApprovalPolicy]:
    """Return the company's active policy, newest first."""
    return (
        ApprovalPolicy.query.filter_by(company_id=company_id, is_active=True)
        .order_by(ApprovalPolicy.created_at.desc(), ApprovalPolicy.id.desc())
        .first()
    )


def list_policies(company_id: int) -> List[ApprovalPolicy]:
    return (
        ApprovalPolicy.query.filter_by(company_id=company_id)
        .order_by(ApprovalPolicy.created_at.desc(), ApprovalPolicy.id.desc())
        .all()
    )


def parse_threshold(value: Any) -> Optional[Decimal]:
    """Accept a fraction in (0, 1] or a percentage in (1, 100]."""
    if value is None or value == "":
        return None
    try:
        threshold = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError("Percentage threshold must be a number.") from exc
    if threshold > 1:
        threshold = threshold / 100
    if threshold <= 0 or threshold > 1:
        raise ValidationError("Percentage threshold must be between 0 and 100 percent.")
    return threshold.quantize(Decimal("0.0001"))


def _company_user_ids(company_id: int, user_ids: Iterable[int]) -> set:
    wanted = set(user_ids)
    if not wanted:
        return set()
    rows = User.query.filter(User.company_id == company_id, User.id.in_(wanted)).all()
    return {user.id for user in rows}


def create_policy(
    company_id: int,
    name: str,
    kind: PolicyKind,
    approver_ids: Iterable[int] = (),
    percentage_threshold: Any = None,
    specific_approver_id: Optional[int] = None,
    manager_is_approver: bool = False,
) -> ApprovalPolicy:
    """Create a policy with its ordered sequence and make it the active one."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Policy name is required.")

    approver_ids = [int(approver_id) for approver_id in approver_ids]
    if len(set(approver_ids)) != len(approver_ids):
        raise ValidationError("An approver may only appear once in a sequence.")

    referenced = set(approver_ids)
    if specific_approver_id is not None:
        referenced.add(specific_approver_id)
    unknown = referenced - _company_user_ids(company_id, referenced)
    if unknown:
        raise ValidationError(
            "Approvers must belong to the same company.",
            details={"unknown_approver_ids": sorted(unknown)},
        )

    policy = ApprovalPolicy(
        company_id=company_id,
        name=name,
        kind=kind,
        percentage_threshold=parse_threshold(percentage_threshold),
        specific_approver_id=specific_approver_id,
        manager_is_approver=bool(manager_is_approver),
        is_active=True,
    )
    policy.sequence = [
        ApprovalSequence(approver_id=approver_id, position=index)
        for index, approver_id in enumerate(approver_ids, start=1)
    ]
    # Raises ValidationError for kinds missing their parameters.
    rule_for(policy)

    try:
        ApprovalPolicy.query.filter_by(company_id=company_id, is_active=True).update(
            {"is_active": False}, synchronize_session=False
        )
        db.session.add(policy)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Created %s policy %s for company %s", kind.value, policy.id, company_id)
    return policy
