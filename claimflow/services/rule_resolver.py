"""Approval rule resolution: who must approve a claim, and when it is done."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Type

from claimflow.errors import ValidationError
from claimflow.models import ApprovalPolicy, ApprovalStep, PolicyKind, StepStatus, User

logger = logging.getLogger(__name__)


def ordered(steps: Iterable[ApprovalStep]) -> List[ApprovalStep]:
    """Steps in evaluation order: ascending position, then approver id."""
    return sorted(steps, key=lambda step: (step.position, step.approver_id))


def next_pending(steps: Iterable[ApprovalStep]) -> Optional[ApprovalStep]:
    return next((step for step in ordered(steps) if step.status == StepStatus.PENDING), None)


class CompletionRule:
    """Decides from a claim's steps alone whether approval is complete.

    Rejection is handled by the decision processor before any rule is
    consulted, so rules only ever see approved, pending or superseded steps.
    """

    kind: PolicyKind

    @classmethod
    def from_policy(cls, policy: Optional[ApprovalPolicy]) -> "CompletionRule":
        return cls()

    def is_complete(self, steps: Sequence[ApprovalStep]) -> bool:
        raise NotImplementedError

    def required_approver_ids(self) -> List[int]:
        """Approvers the rule needs in the chain besides the configured ones."""
        return []


class SequentialRule(CompletionRule):
    kind = PolicyKind.SEQUENTIAL

    def is_complete(self, steps: Sequence[ApprovalStep]) -> bool:
        return bool(steps) and all(step.status != StepStatus.PENDING for step in steps)


class PercentageRule(CompletionRule):
    kind = PolicyKind.PERCENTAGE

    def __init__(self, threshold: Decimal):
        self.threshold = Decimal(threshold)

    @classmethod
    def from_policy(cls, policy: Optional[ApprovalPolicy]) -> "PercentageRule":
        if policy is None or policy.percentage_threshold is None:
            raise ValidationError("Percentage policies require a percentage threshold.")
        return cls(policy.percentage_threshold)

    def is_complete(self, steps: Sequence[ApprovalStep]) -> bool:
        if not steps:
            return False
        approved = sum(1 for step in steps if step.status == StepStatus.APPROVED)
        return Decimal(approved) >= self.threshold * len(steps)


class SpecificApproverRule(SequentialRule):
    kind = PolicyKind.SPECIFIC_APPROVER

    def __init__(self, approver_id: int):
        self.approver_id = approver_id

    @classmethod
    def from_policy(cls, policy: Optional[ApprovalPolicy]) -> "SpecificApproverRule":
        if policy is None or policy.specific_approver_id is None:
            raise ValidationError("Specific-approver policies require a designated approver.")
        return cls(policy.specific_approver_id)

    def designated_approved(self, steps: Sequence[ApprovalStep]) -> bool:
        return any(
            step.approver_id == self.approver_id and step.status == StepStatus.APPROVED
            for step in steps
        )

    def is_complete(self, steps: Sequence[ApprovalStep]) -> bool:
        return self.designated_approved(steps) or super().is_complete(steps)

    def required_approver_ids(self) -> List[int]:
        return [self.approver_id]


class HybridRule(CompletionRule):
    kind = PolicyKind.HYBRID

    def __init__(self, threshold: Decimal, approver_id: int):
        self.percentage = PercentageRule(threshold)
        self.specific = SpecificApproverRule(approver_id)

    @classmethod
    def from_policy(cls, policy: Optional[ApprovalPolicy]) -> "HybridRule":
        if policy is None or policy.percentage_threshold is None or policy.specific_approver_id is None:
            raise ValidationError(
                "Hybrid policies require both a percentage threshold and a designated approver."
            )
        return cls(policy.percentage_threshold, policy.specific_approver_id)

    def is_complete(self, steps: Sequence[ApprovalStep]) -> bool:
        return self.percentage.is_complete(steps) or self.specific.designated_approved(steps)

    def required_approver_ids(self) -> List[int]:
        return self.specific.required_approver_ids()


RULES: Dict[PolicyKind, Type[CompletionRule]] = {
    PolicyKind.SEQUENTIAL: SequentialRule,
    PolicyKind.PERCENTAGE: PercentageRule,
    PolicyKind.SPECIFIC_APPROVER: SpecificApproverRule,
    PolicyKind.HYBRID: HybridRule,
}


def rule_for(policy: Optional[ApprovalPolicy]) -> CompletionRule:
    """Completion rule for a policy; no policy means the sequential default."""
    kind = policy.kind if policy is not None else PolicyKind.SEQUENTIAL
    return RULES[kind].from_policy(policy)


@dataclass(frozen=True)
class ResolvedChain:
    approver_ids: List[int]
    rule: CompletionRule


def resolve_chain(employee: User, policy: Optional[ApprovalPolicy] = None) -> ResolvedChain:
    """Resolve the ordered approver list and completion rule for a claim."""
    rule = rule_for(policy)

    manager_id = employee.manager_id
    configured: List[int] = []
    candidates: List[int] = []
    if policy is not None:
        sequence = sorted(policy.sequence, key=lambda entry: (entry.position, entry.approver_id))
        configured = [entry.approver_id for entry in sequence]
        if policy.manager_is_approver:
            if manager_id is not None:
                candidates.append(manager_id)
            else:
                logger.info("Employee %s has no manager; skipping manager step", employee.id)

    if configured:
        candidates.extend(configured)
    elif manager_id is not None:
        candidates.append(manager_id)
    candidates.extend(rule.required_approver_ids())

    approver_ids: List[int] = []
    for approver_id in candidates:
        # Nobody approves their own claim.
        if approver_id == employee.id or approver_id in approver_ids:
            continue
        approver_ids.append(approver_id)

    if not approver_ids:
        raise ValidationError(
            "No approver could be resolved for this employee.",
            details={"employee_id": employee.id},
        )

    return ResolvedChain(approver_ids=approver_ids, rule=rule)
