"""Shared fixtures: application, database and a small organisation."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from claimflow import create_app, db
from claimflow.models import UserRole
from claimflow.services import intake

from tests.factories import FakeGateway, make_company, make_user


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for tests that call services directly."""
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def org(app):
    """A company with an admin, a manager, five approvers and an employee.

    Only ids are exposed so the fixture works for both service and HTTP tests.
    """
    with app.app_context():
        company = make_company()
        admin = make_user(company, "admin", UserRole.ADMIN)
        manager = make_user(company, "manager", UserRole.MANAGER)
        approvers = [make_user(company, f"approver{i}", UserRole.MANAGER) for i in range(1, 6)]
        employee = make_user(company, "employee", UserRole.EMPLOYEE, manager=manager)
        loner = make_user(company, "loner", UserRole.EMPLOYEE)
        db.session.commit()
        return SimpleNamespace(
            company_id=company.id,
            admin_id=admin.id,
            manager_id=manager.id,
            approver_ids=[approver.id for approver in approvers],
            employee_id=employee.id,
            loner_id=loner.id,
        )


@pytest.fixture
def gateway():
    return FakeGateway(rates={("USD", "INR"): 83})


@pytest.fixture
def stub_gateway(monkeypatch, gateway):
    """Route every default gateway lookup to the fake feed."""
    monkeypatch.setattr(intake, "get_gateway", lambda: gateway)
    return gateway
