from __future__ import annotations

from decimal import Decimal

import pytest

from claimflow.errors import ValidationError
from claimflow.models import (
    ApprovalPolicy,
    ApprovalSequence,
    ApprovalStep,
    PolicyKind,
    StepStatus,
    User,
)
from claimflow.services.rule_resolver import (
    RULES,
    HybridRule,
    PercentageRule,
    SequentialRule,
    SpecificApproverRule,
    next_pending,
    resolve_chain,
    rule_for,
)

EMPLOYEE = 10
MANAGER = 20


def employee(manager_id=MANAGER):
    return User(id=EMPLOYEE, manager_id=manager_id)


def policy(kind=PolicyKind.SEQUENTIAL, approvers=(), threshold=None, specific=None, manager_first=False):
    built = ApprovalPolicy(
        kind=kind,
        percentage_threshold=Decimal(threshold) if threshold else None,
        specific_approver_id=specific,
        manager_is_approver=manager_first,
    )
    built.sequence = [
        ApprovalSequence(approver_id=approver_id, position=position)
        for position, approver_id in enumerate(approvers, start=1)
    ]
    return built


def steps(*statuses, approvers=None):
    approvers = approvers or list(range(101, 101 + len(statuses)))
    return [
        ApprovalStep(approver_id=approver_id, position=position, status=status)
        for position, (approver_id, status) in enumerate(zip(approvers, statuses), start=1)
    ]


A, P, S = StepStatus.APPROVED, StepStatus.PENDING, StepStatus.SUPERSEDED


def test_every_policy_kind_has_a_rule():
    assert set(RULES) == set(PolicyKind)
    assert all(RULES[kind].kind is kind for kind in PolicyKind)


class TestResolveChain:
    def test_no_policy_means_manager_only(self):
        chain = resolve_chain(employee())

        assert chain.approver_ids == [MANAGER]
        assert isinstance(chain.rule, SequentialRule)

    def test_sequence_is_used_in_position_order(self):
        configured = policy()
        configured.sequence = [
            ApprovalSequence(approver_id=33, position=3),
            ApprovalSequence(approver_id=31, position=1),
            ApprovalSequence(approver_id=32, position=2),
        ]

        assert resolve_chain(employee(), configured).approver_ids == [31, 32, 33]

    def test_manager_flag_prepends_manager_for_any_kind(self):
        configured = policy(PolicyKind.PERCENTAGE, approvers=[31, 32], threshold="0.5", manager_first=True)

        assert resolve_chain(employee(), configured).approver_ids == [MANAGER, 31, 32]

    def test_manager_listed_twice_keeps_first_position(self):
        configured = policy(approvers=[31, MANAGER, 32], manager_first=True)

        assert resolve_chain(employee(), configured).approver_ids == [MANAGER, 31, 32]

    def test_empty_sequence_falls_back_to_manager(self):
        configured = policy(PolicyKind.PERCENTAGE, threshold="0.6")

        assert resolve_chain(employee(), configured).approver_ids == [MANAGER]

    def test_submitter_never_approves_own_claim(self):
        configured = policy(approvers=[31, EMPLOYEE, 32])

        assert resolve_chain(employee(), configured).approver_ids == [31, 32]

    def test_designated_approver_is_appended_when_missing(self):
        configured = policy(PolicyKind.SPECIFIC_APPROVER, approvers=[31, 32], specific=40)

        assert resolve_chain(employee(), configured).approver_ids == [31, 32, 40]

    def test_designated_approver_already_in_sequence_is_not_duplicated(self):
        configured = policy(PolicyKind.HYBRID, approvers=[31, 40, 32], threshold="0.6", specific=40)

        assert resolve_chain(employee(), configured).approver_ids == [31, 40, 32]

    def test_no_approver_at_all_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            resolve_chain(employee(manager_id=None))

    def test_missing_manager_with_flag_uses_sequence(self):
        configured = policy(approvers=[31], manager_first=True)

        assert resolve_chain(employee(manager_id=None), configured).approver_ids == [31]


class TestRuleFor:
    def test_percentage_without_threshold_is_invalid(self):
        with pytest.raises(ValidationError):
            rule_for(policy(PolicyKind.PERCENTAGE))

    def test_specific_without_approver_is_invalid(self):
        with pytest.raises(ValidationError):
            rule_for(policy(PolicyKind.SPECIFIC_APPROVER))

    def test_hybrid_needs_both_parameters(self):
        with pytest.raises(ValidationError):
            rule_for(policy(PolicyKind.HYBRID, threshold="0.5"))

    def test_builds_matching_rule(self):
        rule = rule_for(policy(PolicyKind.HYBRID, threshold="0.5", specific=40))

        assert isinstance(rule, HybridRule)
        assert rule.percentage.threshold == Decimal("0.5")
        assert rule.specific.approver_id == 40


class TestCompletion:
    def test_sequential_needs_every_step_decided(self):
        rule = SequentialRule()

        assert not rule.is_complete(steps(A, A, P))
        assert rule.is_complete(steps(A, A, A))
        assert not rule.is_complete([])

    def test_percentage_threshold_is_inclusive(self):
        rule = PercentageRule(Decimal("0.6"))

        assert not rule.is_complete(steps(A, A, P, P, P))
        assert rule.is_complete(steps(A, A, A, P, P))
        assert rule.is_complete(steps(P, A, P, A, A))

    def test_specific_approver_alone_completes(self):
        rule = SpecificApproverRule(103)

        assert rule.is_complete(steps(P, P, A))
        assert not rule.is_complete(steps(A, A, P))

    def test_specific_approver_falls_back_to_sequential(self):
        rule = SpecificApproverRule(999)

        assert rule.is_complete(steps(A, A, A))

    def test_hybrid_either_condition_wins(self):
        rule = HybridRule(Decimal("0.6"), 105)

        assert rule.is_complete(steps(A, A, A, P, P))
        assert rule.is_complete(steps(P, P, P, P, A))
        assert not rule.is_complete(steps(A, A, P, P, P))


def test_next_pending_orders_by_position_then_approver():
    chain = [
        ApprovalStep(approver_id=7, position=3, status=P),
        ApprovalStep(approver_id=9, position=2, status=P),
        ApprovalStep(approver_id=5, position=1, status=A),
        ApprovalStep(approver_id=4, position=2, status=P),
    ]

    assert next_pending(chain).approver_id == 4
    assert next_pending(steps(A, S)) is None
