"""Claim submission and tracking routes."""
from __future__ import annotations

from typing import Any

from flask import current_app
from flask_login import current_user, login_required
from sqlalchemy import select

from claimflow import db
from claimflow.errors import ForbiddenError, NotFoundError, ValidationError
from claimflow.models import Capability, Claim, User
from claimflow.services import intake
from claimflow.utils.helpers import bind_form, capability_required, json_payload, json_response

from . import claims_bp
from .forms import ClaimForm


@claims_bp.route("", methods=["POST"])
@login_required
@capability_required(Capability.SUBMIT_CLAIMS)
def submit_claim() -> Any:
    """Submit a new claim and build its approval chain."""
    payload = json_payload()
    form = bind_form(ClaimForm, payload)

    items = payload.get("items") or []
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValidationError("'items' must be a list of objects with 'name' and 'amount'.")

    claim = intake.submit_claim(
        current_user._get_current_object(),
        amount=form.amount.data,
        currency=form.currency.data,
        category=form.category.data,
        description=form.description.data,
        merchant=form.merchant.data,
        claim_date=form.claim_date.data,
        items=items,
    )
    current_app.logger.info("User %s submitted claim %s", current_user.id, claim.id)
    return json_response({"message": "Claim submitted.", "claim": claim.to_dict()}, status=201)


@claims_bp.route("/mine", methods=["GET"])
@login_required
@capability_required(Capability.SUBMIT_CLAIMS)
def my_claims() -> Any:
    """List claims submitted by the current user."""
    claims = (
        Claim.query.filter_by(employee_id=current_user.id)
        .order_by(Claim.created_at.desc(), Claim.id.desc())
        .all()
    )
    return json_response({"claims": [claim.to_dict() for claim in claims]})


@claims_bp.route("/all", methods=["GET"])
@login_required
@capability_required(Capability.VIEW_TEAM_CLAIMS)
def all_claims() -> Any:
    """Company claims for admins, direct reports' claims for managers."""
    query = Claim.query.filter(Claim.company_id == current_user.company_id)
    if not current_user.can(Capability.VIEW_COMPANY_CLAIMS):
        team = select(User.id).where(User.manager_id == current_user.id)
        query = query.filter(Claim.employee_id.in_(team))

    claims = query.order_by(Claim.created_at.desc(), Claim.id.desc()).all()
    return json_response({"claims": [claim.to_dict() for claim in claims]})


@claims_bp.route("/<int:claim_id>", methods=["GET"])
@login_required
def claim_detail(claim_id: int) -> Any:
    """Claim with its items and approval steps."""
    claim = db.session.get(Claim, claim_id)
    if claim is None or claim.company_id != current_user.company_id:
        raise NotFoundError("Claim not found.")

    is_owner = claim.employee_id == current_user.id
    is_approver = any(step.approver_id == current_user.id for step in claim.steps)
    if not (is_owner or is_approver or current_user.can(Capability.VIEW_COMPANY_CLAIMS)):
        raise ForbiddenError("You cannot view this claim.")

    return json_response({"claim": claim.to_dict()})
