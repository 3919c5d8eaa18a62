"""Application data models exposed for easy imports."""
from claimflow import db  # noqa: F401
from .company import Company  # noqa: F401
from .user import Capability, User, UserRole  # noqa: F401
from .claim import (
    CLAIM_CATEGORIES,
    SUPPORTED_CURRENCIES,
    Claim,
    ClaimItem,
    ClaimStatus,
)  # noqa: F401
from .approval import (
    ApprovalPolicy,
    ApprovalSequence,
    ApprovalStep,
    PolicyKind,
    StepStatus,
)  # noqa: F401

__all__ = [
    "db",
    "Company",
    "Capability",
    "User",
    "UserRole",
    "CLAIM_CATEGORIES",
    "SUPPORTED_CURRENCIES",
    "Claim",
    "ClaimItem",
    "ClaimStatus",
    "ApprovalPolicy",
    "ApprovalSequence",
    "ApprovalStep",
    "PolicyKind",
    "StepStatus",
]
