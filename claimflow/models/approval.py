"""Approval-related models."""
from __future__ import annotations

import enum

from claimflow import db


class StepStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUPERSEDED = "superseded"


class PolicyKind(enum.Enum):
    SEQUENTIAL = "sequential"
    PERCENTAGE = "percentage"
    SPECIFIC_APPROVER = "specific_approver"
    HYBRID = "hybrid"


class ApprovalStep(db.Model):
    __tablename__ = "approval_steps"
    __table_args__ = (
        db.UniqueConstraint("claim_id", "position", name="uq_approval_steps_claim_position"),
        db.UniqueConstraint("claim_id", "approver_id", name="uq_approval_steps_claim_approver"),
    )

    id = db.Column(db.Integer, primary_key=True)
    claim_id = db.Column(db.Integer, db.ForeignKey("claims.id"), nullable=False, index=True)
    approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    status = db.Column(
        db.Enum(StepStatus, name="approval_step_status"),
        nullable=False,
        default=StepStatus.PENDING,
    )
    comment = db.Column(db.Text, nullable=True)
    decided_at = db.Column(db.DateTime, nullable=True)

    claim = db.relationship("Claim", back_populates="steps")
    approver = db.relationship("User", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "claim_id": self.claim_id,
            "approver_id": self.approver_id,
            "position": self.position,
            "status": self.status.value if self.status else None,
            "comment": self.comment,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"<ApprovalStep claim_id={self.claim_id} position={self.position} "
            f"status={self.status.value if self.status else None}>"
        )


class ApprovalPolicy(db.Model):
    __tablename__ = "approval_policies"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    kind = db.Column(
        db.Enum(PolicyKind, name="approval_policy_kind"),
        nullable=False,
        default=PolicyKind.SEQUENTIAL,
    )
    # Stored as a fraction in (0, 1].
    percentage_threshold = db.Column(db.Numeric(5, 4), nullable=True)
    specific_approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    manager_is_approver = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    company = db.relationship("Company", back_populates="approval_policies", lazy="joined")
    specific_approver = db.relationship("User", lazy="joined")
    sequence = db.relationship(
        "ApprovalSequence",
        back_populates="policy",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ApprovalSequence.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "kind": self.kind.value if self.kind else None,
            "percentage_threshold": float(self.percentage_threshold)
            if self.percentage_threshold is not None
            else None,
            "specific_approver_id": self.specific_approver_id,
            "manager_is_approver": self.manager_is_approver,
            "is_active": self.is_active,
            "sequence": [entry.to_dict() for entry in self.sequence],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<ApprovalPolicy id={self.id} kind={self.kind.value if self.kind else None}>"


class ApprovalSequence(db.Model):
    __tablename__ = "approval_sequences"
    __table_args__ = (
        db.UniqueConstraint("policy_id", "position", name="uq_approval_sequences_policy_position"),
    )

    id = db.Column(db.Integer, primary_key=True)
    policy_id = db.Column(db.Integer, db.ForeignKey("approval_policies.id"), nullable=False, index=True)
    approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False)

    policy = db.relationship("ApprovalPolicy", back_populates="sequence")
    approver = db.relationship("User", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "policy_id": self.policy_id,
            "approver_id": self.approver_id,
            "position": self.position,
        }

    def __repr__(self) -> str:
        return f"<ApprovalSequence policy_id={self.policy_id} position={self.position}>"
