"""Forms for the post blueprint."""

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, MultipleFileField
from wtforms import TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from proximitylink.constants import MEDIA_EXTENSIONS


class PostForm(FlaskForm):
    """Form for writing a post in a group."""

    content = TextAreaField("What's new?", validators=[Optional(), Length(max=5000)])
    media = MultipleFileField(
        "Photos or videos", validators=[FileAllowed(MEDIA_EXTENSIONS), Optional()]
    )


class EditPostForm(FlaskForm):
    """Form for editing the text of a post."""

    content = TextAreaField("Content", validators=[DataRequired(), Length(max=5000)])


class CommentForm(FlaskForm):
    """Form for commenting on a post."""

    content = TextAreaField("Comment", validators=[Optional(), Length(max=2000)])
