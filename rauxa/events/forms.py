"""Forms for the events blueprint."""

from flask_wtf import FlaskForm
from wtforms import DateTimeField, Field, IntegerField, StringField, TextAreaField
from wtforms.validators import DataRequired, NumberRange, Optional


class StringListField(Field):
    """A list of strings, sent as a JSON array or as repeated form keys."""

    def _value(self):
        return ",".join(self.data or [])

    def process_formdata(self, valuelist):
        self.data = [str(v).strip() for v in valuelist if v and str(v).strip()]


class EventForm(FlaskForm):
    """Form for creating a live event."""

    title = StringField("Title", validators=[DataRequired()])

    location = StringField("Location", validators=[DataRequired()])

    date = DateTimeField(
        "Date",
        format=["%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"],
        validators=[DataRequired()],
    )

    groupSize = IntegerField(
        "Group Size", validators=[Optional(), NumberRange(min=1)]
    )

    description = TextAreaField("Description", validators=[Optional()])

    tags = StringListField("Tags")

    photos = StringListField("Photos")

    def first_error(self):
        """Return a readable message for the first failing field."""
        for name, errors in self.errors.items():
            if name and errors:
                return f"{getattr(self, name).label.text}: {errors[0]}"
        return "Invalid event."
