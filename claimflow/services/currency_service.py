"""Currency conversion gateway backed by exchangerate-api."""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

import requests
from flask import current_app

from claimflow.errors import DependencyError

logger = logging.getLogger(__name__)

EXCHANGE_API_URL = "https://api.exchangerate-api.com/v4/latest/{base}"
EXCHANGE_API_URL_KEYED = "https://v6.exchangerate-api.com/v6/{key}/latest/{base}"

# Shared by every gateway built from app config so connections are pooled.
_session = requests.Session()


def _to_rate(raw: Any) -> Optional[Decimal]:
    """Parse a feed value into a usable rate, or ``None`` if it is not one."""
    if isinstance(raw, bool):
        return None
    try:
        rate = Decimal(str(raw))
    except InvalidOperation:
        return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


class CurrencyGateway:
    """Looks up exchange rates between two ISO currency codes.

    Every failure mode (transport error, timeout, bad payload, unknown
    target code) is raised as ``DependencyError`` so callers can decide
    whether to fail open.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or _session

    def _url(self, base: str) -> str:
        if self.api_key:
            return EXCHANGE_API_URL_KEYED.format(key=self.api_key, base=base)
        return EXCHANGE_API_URL.format(base=base)

    def fetch_rates(self, base_currency: str) -> Dict[str, Any]:
        """Fetch all rates for the given base currency."""
        base = base_currency.upper()
        try:
            response = self.session.get(self._url(base), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise DependencyError(f"Exchange rate lookup for {base} failed: {exc}") from exc
        except ValueError as exc:
            raise DependencyError(f"Exchange rate feed returned invalid JSON for {base}.") from exc

        if not isinstance(payload, dict):
            raise DependencyError(f"Exchange rate feed returned an unexpected payload for {base}.")
        rates = payload.get("conversion_rates") if self.api_key else payload.get("rates")
        if not isinstance(rates, dict):
            raise DependencyError(f"Exchange rate feed returned no rates for {base}.")
        return rates

    def rate(self, source_currency: str, target_currency: str) -> Decimal:
        source = source_currency.upper()
        target = target_currency.upper()
        if source == target:
            return Decimal(1)

        raw = self.fetch_rates(source).get(target)
        if raw is None:
            raise DependencyError(f"No exchange rate from {source} to {target}.")
        rate = _to_rate(raw)
        if rate is None:
            raise DependencyError(f"Malformed exchange rate from {source} to {target}: {raw!r}")
        return rate

    def rates_for(
        self, base_currency: str, currencies: Optional[Iterable[str]] = None
    ) -> Dict[str, Decimal]:
        """Rates from ``base_currency``, optionally limited to ``currencies``.

        Codes the feed does not quote, or quotes with an unusable value, are
        left out.
        """
        quoted = self.fetch_rates(base_currency)
        wanted = [code.upper() for code in currencies] if currencies is not None else list(quoted)
        rates = {}
        for code in wanted:
            rate = _to_rate(quoted.get(code))
            if rate is not None:
                rates[code] = rate
        return rates


def get_gateway() -> CurrencyGateway:
    """Build a gateway from the active application configuration."""
    return CurrencyGateway(
        api_key=current_app.config.get("EXCHANGE_RATE_API_KEY"),
        timeout=current_app.config.get("EXCHANGE_RATE_TIMEOUT", 5.0),
    )


def rate_or_default(gateway: CurrencyGateway, source_currency: str, target_currency: str) -> Decimal:
    """Return the exchange rate, or 1 when the gateway cannot provide one."""
    try:
        return gateway.rate(source_currency, target_currency)
    except DependencyError as exc:
        logger.warning(
            "Falling back to rate 1 for %s->%s: %s", source_currency, target_currency, exc
        )
        return Decimal(1)
