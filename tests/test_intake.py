from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from claimflow import db
from claimflow.errors import ValidationError
from claimflow.models import Claim, ClaimStatus, PolicyKind, StepStatus, User
from claimflow.services.intake import submit_claim

from tests.factories import FakeGateway, make_policy


def _submit(employee_id, gateway, **overrides):
    fields = dict(
        amount="100",
        currency="USD",
        category="Travel",
        description="Taxi to client site",
    )
    fields.update(overrides)
    return submit_claim(db.session.get(User, employee_id), gateway=gateway, **fields)


def test_converts_amount_with_gateway_rate(ctx, org, gateway):
    claim = _submit(org.employee_id, gateway)

    assert claim.amount_in_company_currency == Decimal("8300")
    assert claim.exchange_rate == Decimal("83")
    assert claim.status == ClaimStatus.PENDING
    assert gateway.calls == [("USD", "INR")]


def test_failing_gateway_falls_back_to_rate_one(ctx, org):
    claim = _submit(org.employee_id, FakeGateway(fail=True))

    assert claim.amount_in_company_currency == Decimal("100")
    assert claim.exchange_rate == Decimal("1")
    assert claim.status == ClaimStatus.PENDING


def test_same_currency_never_calls_gateway(ctx, org):
    gateway = FakeGateway(fail=True)
    claim = _submit(org.employee_id, gateway, currency="INR", amount="250.50")

    assert gateway.calls == []
    assert claim.amount_in_company_currency == Decimal("250.50")


def test_default_chain_is_the_direct_manager(ctx, org, gateway):
    claim = _submit(org.employee_id, gateway)

    assert [(step.position, step.approver_id) for step in claim.steps] == [(1, org.manager_id)]
    assert all(step.status == StepStatus.PENDING for step in claim.steps)
    assert claim.current_approver_id == org.manager_id
    assert claim.policy_id is None


def test_configured_sequence_with_manager_first(ctx, org, gateway):
    policy = make_policy(
        org.company_id, approver_ids=org.approver_ids[:3], manager_is_approver=True
    )

    claim = _submit(org.employee_id, gateway)

    assert [step.approver_id for step in claim.steps] == [org.manager_id] + org.approver_ids[:3]
    assert [step.position for step in claim.steps] == [1, 2, 3, 4]
    assert claim.policy_id == policy.id


def test_steps_and_items_are_persisted_with_the_claim(ctx, org, gateway):
    claim = _submit(
        org.employee_id,
        gateway,
        merchant="  City Cabs ",
        items=[{"name": "Fare", "amount": "90"}, {"name": "Tip", "amount": 10}],
    )
    db.session.expire_all()

    stored = db.session.get(Claim, claim.id)
    assert stored.merchant == "City Cabs"
    assert [(item.name, item.amount) for item in stored.items] == [
        ("Fare", Decimal("90")),
        ("Tip", Decimal("10")),
    ]
    assert len(stored.steps) == 1
    assert stored.claim_date == date.today()


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": "0"},
        {"amount": "-5"},
        {"amount": "abc"},
        {"currency": "XYZ"},
        {"category": "Gadgets"},
        {"description": "   "},
        {"claim_date": date.today() + timedelta(days=1)},
        {"items": [{"name": "", "amount": "5"}]},
        {"items": [{"name": "Fare", "amount": "0"}]},
    ],
)
def test_invalid_submissions_are_rejected(ctx, org, gateway, overrides):
    with pytest.raises(ValidationError):
        _submit(org.employee_id, gateway, **overrides)

    assert Claim.query.count() == 0


def test_employee_without_any_approver_cannot_submit(ctx, org, gateway):
    with pytest.raises(ValidationError):
        _submit(org.loner_id, gateway)

    assert Claim.query.count() == 0


def test_specific_approver_is_added_to_the_chain(ctx, org, gateway):
    designated = org.approver_ids[4]
    make_policy(
        org.company_id,
        kind=PolicyKind.SPECIFIC_APPROVER,
        approver_ids=org.approver_ids[:2],
        specific_approver_id=designated,
    )

    claim = _submit(org.employee_id, gateway)

    assert [step.approver_id for step in claim.steps] == org.approver_ids[:2] + [designated]
