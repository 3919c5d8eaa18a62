"""Expense claim model definitions."""
from __future__ import annotations

import enum

from claimflow import db

SUPPORTED_CURRENCIES = ("INR", "USD", "EUR", "GBP", "CAD", "AUD", "JPY", "CNY")

CLAIM_CATEGORIES = (
    "Food",
    "Travel",
    "Office Supplies",
    "Transportation",
    "Accommodation",
    "Entertainment",
    "Other",
)


class ClaimStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ClaimStatus.PENDING


class Claim(db.Model):
    __tablename__ = "claims"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # Policy in force at submission; None means the default manager chain.
    policy_id = db.Column(db.Integer, db.ForeignKey("approval_policies.id"), nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False)
    amount_in_company_currency = db.Column(db.Numeric(14, 2), nullable=False)
    exchange_rate = db.Column(db.Numeric(18, 8), nullable=False, default=1)
    category = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=False)
    merchant = db.Column(db.String(255), nullable=True)
    claim_date = db.Column(db.Date, nullable=False)
    status = db.Column(
        db.Enum(ClaimStatus, name="claim_status"),
        nullable=False,
        default=ClaimStatus.PENDING,
        index=True,
    )
    # Mirrors the lowest-position pending step; recomputed on every decision.
    current_approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now(), nullable=False
    )
    decided_at = db.Column(db.DateTime, nullable=True)

    company = db.relationship("Company", lazy="joined")
    employee = db.relationship("User", foreign_keys=[employee_id], lazy="joined")
    current_approver = db.relationship("User", foreign_keys=[current_approver_id], lazy="joined")
    policy = db.relationship("ApprovalPolicy", lazy="joined")
    items = db.relationship(
        "ClaimItem",
        back_populates="claim",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ClaimItem.id",
    )
    steps = db.relationship(
        "ApprovalStep",
        back_populates="claim",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ApprovalStep.position",
    )

    def to_dict(self, include_steps: bool = True) -> dict:
        payload = {
            "id": self.id,
            "company_id": self.company_id,
            "employee_id": self.employee_id,
            "policy_id": self.policy_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "amount_in_company_currency": float(self.amount_in_company_currency)
            if self.amount_in_company_currency is not None
            else None,
            "exchange_rate": float(self.exchange_rate) if self.exchange_rate is not None else None,
            "category": self.category,
            "description": self.description,
            "merchant": self.merchant,
            "claim_date": self.claim_date.isoformat() if self.claim_date else None,
            "status": self.status.value if self.status else None,
            "current_approver_id": self.current_approver_id,
            "items": [item.to_dict() for item in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }
        if include_steps:
            payload["steps"] = [step.to_dict() for step in self.steps]
        return payload

    def __repr__(self) -> str:
        return f"<Claim id={self.id} status={self.status.value if self.status else None}>"


class ClaimItem(db.Model):
    __tablename__ = "claim_items"

    id = db.Column(db.Integer, primary_key=True)
    claim_id = db.Column(db.Integer, db.ForeignKey("claims.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    claim = db.relationship("Claim", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "claim_id": self.claim_id,
            "name": self.name,
            "amount": float(self.amount) if self.amount is not None else None,
        }

    def __repr__(self) -> str:
        return f"<ClaimItem claim_id={self.claim_id} name={self.name}>"
