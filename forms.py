from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import PasswordField, StringField, TextAreaField
from wtforms.validators import DataRequired, Email, EqualTo, Length, Optional

from errors import ValidationError


def json_body():
    """The JSON object sent with the request, or ``None`` for non-JSON bodies."""
    if not request.is_json:
        return None
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


class ApiForm(FlaskForm):
    """Form fed from a JSON object or a form-encoded body, without CSRF."""

    class Meta:
        csrf = False

    def __init__(self, *args, **kwargs):
        body = json_body()
        if body is not None:
            formdata = ImmutableMultiDict(body)
            submitted = body.keys()
        else:
            formdata = request.form or None
            submitted = request.form.keys()
        super().__init__(formdata, *args, **kwargs)
        self.submitted = frozenset(submitted)

        # JSON may carry numbers, lists or objects where text is expected.
        wrong_type = {
            name: ["Must be a string."]
            for name, value in (body or {}).items()
            if name in self and value is not None and not isinstance(value, str)
        }
        if wrong_type:
            raise ValidationError(details=wrong_type)

    def validate_or_raise(self):
        if not self.validate():
            raise ValidationError(details=self.errors)
        return self


class RegisterForm(ApiForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=255)])
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    password_confirmation = PasswordField(
        "Confirm Password",
        validators=[DataRequired(), EqualTo("password", message="Passwords must match.")],
    )


class LoginForm(ApiForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])


class JobForm(ApiForm):
    title = StringField("Job Title", validators=[DataRequired(), Length(max=255)])
    description = TextAreaField("Job Description", validators=[DataRequired()])
    location = StringField("Location", validators=[DataRequired()])
    company = StringField("Company", validators=[DataRequired(), Length(max=255)])

    def cleaned_data(self):
        return {field.name: field.data for field in self}


class JobUpdateForm(JobForm):
    """Partial update: fields missing from the body are dropped before validating."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name in [field.name for field in self]:
            if name not in self.submitted:
                del self[name]


class ApplyForm(ApiForm):
    cover_letter = TextAreaField("Cover Letter", validators=[Optional()])
