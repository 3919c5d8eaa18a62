"""Currency rate lookup blueprint."""
from flask import Blueprint

currency_bp = Blueprint("currency", __name__, url_prefix="/currency")

from . import routes  # noqa: E402,F401
