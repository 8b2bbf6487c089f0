"""Forms for the events blueprint."""

from flask_wtf import FlaskForm
from wtforms import DateTimeLocalField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from proximitylink.constants import FILL_ALL_FIELDS, LOCAL_INPUT_FORMAT


class EventForm(FlaskForm):
    """Form for adding or editing a calendar event."""

    title = StringField(
        "Title", validators=[DataRequired(message=FILL_ALL_FIELDS), Length(max=200)]
    )
    description = TextAreaField("Description", validators=[Optional()])
    start_time = DateTimeLocalField(
        "Starts",
        format=LOCAL_INPUT_FORMAT,
        validators=[DataRequired(message=FILL_ALL_FIELDS)],
    )
    end_time = DateTimeLocalField(
        "Ends",
        format=LOCAL_INPUT_FORMAT,
        validators=[DataRequired(message=FILL_ALL_FIELDS)],
    )
