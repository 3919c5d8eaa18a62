from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional


class DecisionForm(FlaskForm):
    class Meta:
        csrf = False

    decision = StringField("Decision", validators=[DataRequired(), Length(max=20)])
    comment = TextAreaField("Comment", validators=[Optional(), Length(max=2000)])
