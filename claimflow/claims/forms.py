from __future__ import annotations

from decimal import Decimal

from flask_wtf import FlaskForm
from wtforms import DecimalField, SelectField, StringField, TextAreaField
from wtforms.fields import DateField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional

from claimflow.models import CLAIM_CATEGORIES, SUPPORTED_CURRENCIES


class ClaimForm(FlaskForm):
    class Meta:
        csrf = False

    amount = DecimalField(
        "Amount",
        places=2,
        rounding=None,
        validators=[InputRequired(), NumberRange(min=Decimal("0.01"))],
    )
    currency = SelectField(
        "Currency",
        validators=[DataRequired()],
        choices=[(code, code) for code in SUPPORTED_CURRENCIES],
    )
    category = SelectField(
        "Category",
        validators=[DataRequired()],
        choices=[(name, name) for name in CLAIM_CATEGORIES],
    )
    description = TextAreaField("Description", validators=[DataRequired(), Length(max=2000)])
    merchant = StringField("Merchant", validators=[Optional(), Length(max=255)])
    claim_date = DateField("Date of expense", validators=[Optional()])
