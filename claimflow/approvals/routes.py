"""Approver routes: pending work and decisions."""
from __future__ import annotations

from typing import Any

from flask import current_app
from flask_login import current_user, login_required

from claimflow.models import ApprovalStep, Capability, Claim, ClaimStatus, StepStatus
from claimflow.services import decision_processor
from claimflow.utils.helpers import bind_form, capability_required, json_payload, json_response

from . import approvals_bp
from .forms import DecisionForm


@approvals_bp.route("/pending", methods=["GET"])
@login_required
@capability_required(Capability.DECIDE_CLAIMS)
def pending_approvals() -> Any:
    """Return pending claims on which the caller still holds an open step."""
    claims = (
        Claim.query.join(ApprovalStep, ApprovalStep.claim_id == Claim.id)
        .filter(
            ApprovalStep.approver_id == current_user.id,
            ApprovalStep.status == StepStatus.PENDING,
            Claim.status == ClaimStatus.PENDING,
        )
        .order_by(Claim.created_at.desc(), Claim.id.desc())
        .all()
    )
    return json_response({"claims": [claim.to_dict() for claim in claims]})


@approvals_bp.route("/<int:claim_id>/decision", methods=["POST"])
@login_required
@capability_required(Capability.DECIDE_CLAIMS)
def decide_claim(claim_id: int) -> Any:
    """Approve or reject a claim on behalf of the caller."""
    form = bind_form(DecisionForm, json_payload())
    result = decision_processor.decide(
        claim_id, current_user.id, form.decision.data, comment=form.comment.data
    )
    current_app.logger.info(
        "User %s decided %s on claim %s", current_user.id, result.step.status.value, claim_id
    )
    return json_response(
        {
            "message": f"Decision recorded: {result.step.status.value}.",
            "outcome": result.outcome.value,
            "step": result.step.to_dict(),
            "claim": result.claim.to_dict(),
        }
    )
