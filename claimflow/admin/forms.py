from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import BooleanField, DecimalField, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from claimflow.models import PolicyKind


class PolicyForm(FlaskForm):
    class Meta:
        csrf = False

    name = StringField("Policy name", validators=[DataRequired(), Length(max=255)])
    kind = SelectField(
        "Rule type",
        choices=[(kind.value, kind.value) for kind in PolicyKind],
        default=PolicyKind.SEQUENTIAL.value,
    )
    percentage_threshold = DecimalField(
        "Approval threshold", validators=[Optional(), NumberRange(min=0, max=100)]
    )
    specific_approver_id = IntegerField("Specific approver", validators=[Optional()])
    manager_is_approver = BooleanField("Manager approves first")
