from __future__ import annotations

import logging
from decimal import Decimal

import pytest
import requests

from claimflow import db
from claimflow.errors import DependencyError
from claimflow.models import User
from claimflow.services.currency_service import CurrencyGateway, get_gateway, rate_or_default
from claimflow.services.intake import submit_claim

from tests.factories import FakeGateway


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.payload is None:
            raise ValueError("no JSON")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_same_currency_short_circuits():
    session = FakeSession(error=AssertionError("should not be called"))

    assert CurrencyGateway(session=session).rate("usd", "USD") == Decimal(1)
    assert session.requests == []


def test_rate_from_public_feed():
    session = FakeSession(FakeResponse({"rates": {"INR": 83.12}}))
    gateway = CurrencyGateway(timeout=2.5, session=session)

    assert gateway.rate("USD", "INR") == Decimal("83.12")
    assert session.requests == [("https://api.exchangerate-api.com/v4/latest/USD", 2.5)]


def test_rate_from_keyed_feed():
    session = FakeSession(FakeResponse({"conversion_rates": {"EUR": 0.91}}))
    gateway = CurrencyGateway(api_key="secret", session=session)

    assert gateway.rate("USD", "EUR") == Decimal("0.91")
    assert session.requests[0][0] == "https://v6.exchangerate-api.com/v6/secret/latest/USD"


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(FakeResponse({"error": "unsupported"}, status=404)),
        FakeSession(FakeResponse(None)),
        FakeSession(FakeResponse({"result": "error"})),
        FakeSession(FakeResponse({"rates": {"EUR": 0.9}})),
        FakeSession(FakeResponse(["unexpected"])),
        FakeSession(FakeResponse("unexpected")),
        FakeSession(FakeResponse({"rates": {"INR": -83}})),
        FakeSession(FakeResponse({"rates": {"INR": 0}})),
        FakeSession(FakeResponse({"rates": {"INR": "NaN"}})),
        FakeSession(FakeResponse({"rates": {"INR": "Infinity"}})),
        FakeSession(FakeResponse({"rates": {"INR": "lots"}})),
    ],
)
def test_failures_raise_dependency_error(session):
    with pytest.raises(DependencyError):
        CurrencyGateway(session=session).rate("USD", "INR")


def test_rate_or_default_fails_open(caplog):
    with caplog.at_level(logging.WARNING, logger="claimflow.services.currency_service"):
        rate = rate_or_default(FakeGateway(fail=True), "USD", "INR")

    assert rate == Decimal(1)
    assert "Falling back to rate 1" in caplog.text


def test_gateway_uses_app_configuration(app):
    app.config.update(EXCHANGE_RATE_API_KEY="k", EXCHANGE_RATE_TIMEOUT=3)
    with app.app_context():
        gateway = get_gateway()

    assert gateway.api_key == "k"
    assert gateway.timeout == 3


def test_gateways_from_config_share_one_session(app):
    with app.app_context():
        first, second = get_gateway(), get_gateway()

    assert first.session is second.session


def test_rates_for_filters_and_drops_unusable_quotes():
    session = FakeSession(FakeResponse({"rates": {"USD": 0.012, "EUR": 0.011, "GBP": -1, "JPY": None}}))
    gateway = CurrencyGateway(session=session)

    assert gateway.rates_for("inr", ["usd", "GBP", "CAD"]) == {"USD": Decimal("0.012")}
    assert gateway.rates_for("INR") == {"USD": Decimal("0.012"), "EUR": Decimal("0.011")}


@pytest.mark.parametrize(
    "payload",
    [["unexpected"], {"rates": {"INR": -83}}, {"rates": {"INR": "NaN"}}],
)
def test_submission_survives_unusable_feed(ctx, org, payload):
    gateway = CurrencyGateway(session=FakeSession(FakeResponse(payload)))

    claim = submit_claim(
        db.session.get(User, org.employee_id),
        amount="100",
        currency="USD",
        category="Travel",
        description="Taxi to client site",
        gateway=gateway,
    )

    assert claim.exchange_rate == Decimal("1")
    assert claim.amount_in_company_currency == Decimal("100")
