"""Administrative routes."""
from __future__ import annotations

from typing import Any

from flask_login import current_user, login_required

from claimflow.errors import ValidationError
from claimflow.models import Capability, PolicyKind
from claimflow.services import policy_service
from claimflow.utils.helpers import bind_form, capability_required, json_payload, json_response

from . import admin_bp
from .forms import PolicyForm


@admin_bp.route("/policies", methods=["GET"])
@login_required
@capability_required(Capability.CONFIGURE_POLICIES)
def list_policies() -> Any:
    """List the company's approval policies, newest first."""
    policies = policy_service.list_policies(current_user.company_id)
    return json_response({"policies": [policy.to_dict() for policy in policies]})


@admin_bp.route("/policies", methods=["POST"])
@login_required
@capability_required(Capability.CONFIGURE_POLICIES)
def create_policy() -> Any:
    """Create an approval policy with its ordered approver sequence."""
    payload = json_payload()
    form = bind_form(PolicyForm, payload)

    approvers = payload.get("approvers") or []
    if not isinstance(approvers, list) or not all(
        isinstance(approver_id, int) and not isinstance(approver_id, bool) for approver_id in approvers
    ):
        raise ValidationError("'approvers' must be an ordered list of user ids.")

    policy = policy_service.create_policy(
        current_user.company_id,
        name=form.name.data,
        kind=PolicyKind(form.kind.data),
        approver_ids=approvers,
        percentage_threshold=form.percentage_threshold.data,
        specific_approver_id=form.specific_approver_id.data,
        manager_is_approver=form.manager_is_approver.data,
    )
    return json_response({"message": "Approval policy created.", "policy": policy.to_dict()}, status=201)
