"""Currency rate lookup routes."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from flask import request
from flask_login import login_required

from claimflow.errors import ValidationError
from claimflow.models import SUPPORTED_CURRENCIES
from claimflow.services import currency_service
from claimflow.utils.helpers import json_response

from . import currency_bp


@currency_bp.route("/rate/<source>/<target>", methods=["GET"])
@login_required
def exchange_rate(source: str, target: str) -> Any:
    """Return the rate for converting ``source`` into ``target``."""
    source, target = source.upper(), target.upper()
    if source not in SUPPORTED_CURRENCIES or target not in SUPPORTED_CURRENCIES:
        raise ValidationError("Currency not supported.", details={"supported": list(SUPPORTED_CURRENCIES)})

    rate = currency_service.get_gateway().rate(source, target)
    return json_response(
        {
            "from": source,
            "to": target,
            "rate": float(rate),
            "timestamp": datetime.utcnow().isoformat(),
        }
    )


@currency_bp.route("/rates/<base>", methods=["GET"])
@login_required
def exchange_rates(base: str) -> Any:
    """Return rates from ``base``, optionally filtered by ``?currencies=USD,EUR``."""
    base = base.upper()
    if base not in SUPPORTED_CURRENCIES:
        raise ValidationError("Currency not supported.", details={"supported": list(SUPPORTED_CURRENCIES)})

    requested = request.args.get("currencies", "")
    currencies = [code.strip() for code in requested.split(",") if code.strip()] or None

    rates = currency_service.get_gateway().rates_for(base, currencies)
    return json_response(
        {
            "base": base,
            "rates": {code: float(rate) for code, rate in rates.items()},
            "timestamp": datetime.utcnow().isoformat(),
        }
    )
