"""User-related models."""
from __future__ import annotations

import enum

from flask_login import UserMixin

from claimflow import db


class Capability(enum.Enum):
    SUBMIT_CLAIMS = "submit_claims"
    DECIDE_CLAIMS = "decide_claims"
    CONFIGURE_POLICIES = "configure_policies"
    VIEW_TEAM_CLAIMS = "view_team_claims"
    VIEW_COMPANY_CLAIMS = "view_company_claims"


class UserRole(enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    def can(self, capability: Capability) -> bool:
        return capability in ROLE_CAPABILITIES[self]


ROLE_CAPABILITIES = {
    UserRole.ADMIN: frozenset(Capability),
    UserRole.MANAGER: frozenset(
        {Capability.SUBMIT_CLAIMS, Capability.DECIDE_CLAIMS, Capability.VIEW_TEAM_CLAIMS}
    ),
    UserRole.EMPLOYEE: frozenset({Capability.SUBMIT_CLAIMS}),
}


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    role = db.Column(db.Enum(UserRole, name="user_role"), nullable=False, default=UserRole.EMPLOYEE)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    company = db.relationship("Company", back_populates="users", lazy="joined")
    manager = db.relationship("User", remote_side=[id], back_populates="reports", lazy="joined")
    reports = db.relationship("User", back_populates="manager", lazy="selectin")

    def can(self, capability: Capability) -> bool:
        return self.role.can(capability)

    def get_id(self) -> str:
        return str(self.id)

    @property
    def full_name(self) -> str:
        """Get user's full name."""
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "company_id": self.company_id,
            "manager_id": self.manager_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.email}>"
