"""Forms for the group blueprint."""

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField
from wtforms import BooleanField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from proximitylink.constants import IMAGE_EXTENSIONS


class GroupForm(FlaskForm):
    """Form for creating or editing a group."""

    name = StringField("Group Name", validators=[DataRequired(), Length(max=100)])
    description = TextAreaField("Description", validators=[Optional()])
    allow_members_to_post = BooleanField("Allow followers to post", default=True)
    avatar = FileField(
        "Group Avatar",
        validators=[FileAllowed(IMAGE_EXTENSIONS), Optional()],
    )
    cover = FileField(
        "Cover Image",
        validators=[FileAllowed(IMAGE_EXTENSIONS), Optional()],
    )
