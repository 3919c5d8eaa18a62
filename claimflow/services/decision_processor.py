"""Approval decision processing.

Each call claims exactly one pending step with a conditional update and then
re-derives the claim's state from the persisted steps. Nothing is read from
cached pointers such as ``Claim.current_approver_id``, so a retried call
converges to the same outcome as the original.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import update

from claimflow import db
from claimflow.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from claimflow.models import ApprovalStep, Claim, ClaimStatus, StepStatus
from claimflow.services.rule_resolver import next_pending, rule_for

logger = logging.getLogger(__name__)

DECISIONS = {
    "approved": StepStatus.APPROVED,
    "rejected": StepStatus.REJECTED,
}


@dataclass(frozen=True)
class DecisionResult:
    claim: Claim
    step: ApprovalStep
    outcome: ClaimStatus

    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal


def parse_decision(decision: Union[str, StepStatus, None]) -> StepStatus:
    if isinstance(decision, StepStatus):
        decision = decision.value
    status = DECISIONS.get(str(decision or "").strip().lower())
    if status is None:
        raise ValidationError(
            "Decision must be 'approved' or 'rejected'.", details={"decision": decision}
        )
    return status


def _load_steps(claim_id: int) -> List[ApprovalStep]:
    return (
        ApprovalStep.query.filter_by(claim_id=claim_id)
        .order_by(ApprovalStep.position.asc(), ApprovalStep.approver_id.asc())
        .execution_options(populate_existing=True)
        .all()
    )


def _claim_step(claim_id: int, approver_id: int, status: StepStatus, comment: Optional[str], now: datetime) -> None:
    """Compare-and-set the approver's step from pending to the decision."""
    result = db.session.execute(
        update(ApprovalStep)
        .where(
            ApprovalStep.claim_id == claim_id,
            ApprovalStep.approver_id == approver_id,
            ApprovalStep.status == StepStatus.PENDING,
        )
        .values(status=status, comment=comment, decided_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    existing = (
        ApprovalStep.query.filter_by(claim_id=claim_id, approver_id=approver_id)
        .execution_options(populate_existing=True)
        .first()
    )
    if existing is None:
        raise ForbiddenError("You are not an approver for this claim.")
    raise ConflictError(
        f"Your approval step for this claim is already {existing.status.value}.",
        details={"step_id": existing.id, "status": existing.status.value},
    )


def _finalize(claim_id: int, outcome: ClaimStatus, now: datetime) -> None:
    """Move a pending claim to a terminal status and supersede open steps."""
    result = db.session.execute(
        update(Claim)
        .where(Claim.id == claim_id, Claim.status == ClaimStatus.PENDING)
        .values(status=outcome, current_approver_id=None, decided_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("Claim %s became terminal concurrently; dropping %s", claim_id, outcome.value)
        raise ConflictError("Claim has already been decided.", details={"claim_id": claim_id})

    db.session.execute(
        update(ApprovalStep)
        .where(ApprovalStep.claim_id == claim_id, ApprovalStep.status == StepStatus.PENDING)
        .values(status=StepStatus.SUPERSEDED)
        .execution_options(synchronize_session=False)
    )
    logger.info("Claim %s %s", claim_id, outcome.value)


def _advance(claim_id: int, approver_id: int) -> None:
    result = db.session.execute(
        update(Claim)
        .where(Claim.id == claim_id, Claim.status == ClaimStatus.PENDING)
        .values(current_approver_id=approver_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Claim has already been decided.", details={"claim_id": claim_id})


def decide(
    claim_id: int,
    approver_id: int,
    decision: Union[str, StepStatus],
    comment: Optional[str] = None,
) -> DecisionResult:
    """Record one approver's decision and advance or terminate the claim.

    Raises ``ValidationError`` for an unknown decision value,
    ``NotFoundError`` for an unknown claim, ``ForbiddenError`` when the
    approver has no step on the claim and ``ConflictError`` when the claim
    or the approver's step has already been decided. Either every write of
    the call commits or none does.
    """
    status = parse_decision(decision)
    comment = (comment or "").strip() or None
    now = datetime.utcnow()

    try:
        # Row lock on the claim serializes decisions per claim.
        claim = db.session.get(Claim, claim_id, populate_existing=True, with_for_update=True)
        if claim is None:
            raise NotFoundError("Claim not found.", details={"claim_id": claim_id})
        if claim.status.is_terminal:
            raise ConflictError(
                f"Claim has already been {claim.status.value}.",
                details={"claim_id": claim_id, "status": claim.status.value},
            )

        _claim_step(claim_id, approver_id, status, comment, now)
        steps = _load_steps(claim_id)

        if status == StepStatus.REJECTED:
            outcome = ClaimStatus.REJECTED
            _finalize(claim_id, outcome, now)
        elif rule_for(claim.policy).is_complete(steps):
            outcome = ClaimStatus.APPROVED
            _finalize(claim_id, outcome, now)
        else:
            outcome = ClaimStatus.PENDING
            pending = next_pending(steps)
            _advance(claim_id, pending.approver_id if pending is not None else None)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    step = ApprovalStep.query.filter_by(claim_id=claim_id, approver_id=approver_id).one()
    logger.info(
        "Approver %s %s claim %s (claim now %s)", approver_id, status.value, claim_id, outcome.value
    )
    return DecisionResult(claim=claim, step=step, outcome=outcome)
