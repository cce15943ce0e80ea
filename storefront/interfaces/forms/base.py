"""Form state and submission shared by the login and signup forms.

A controller holds the transient state of one form: field values, per-field
errors, a single banner error, the loading flag and where to go after a
successful submit. Nothing here outlives the submission.
"""
from typing import Any, ClassVar

import structlog
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from ...infrastructure.api_client import AuthApiClient, AuthApiError

logger = structlog.get_logger()

EMAIL_MESSAGE = "Please enter a valid email address"
PASSWORD_MESSAGE = "Password must be at least 8 characters"
PASSWORD_MIN_LENGTH = 8


def check_email(value: str) -> str:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError("email", EMAIL_MESSAGE)
    return value


def check_password(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise PydanticCustomError("password_too_short", PASSWORD_MESSAGE)
    return value


def field_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "form"
        errors[field] = error["msg"]
    return errors


class FormController:
    schema: ClassVar[type[BaseModel]]
    initial_data: ClassVar[dict[str, Any]]
    failure_message: ClassVar[str]
    success_redirect: ClassVar[str] = "/"

    def __init__(self, client: AuthApiClient | None = None):
        self.client = client or AuthApiClient()
        self.form_data: dict[str, Any] = dict(self.initial_data)
        self.errors: dict[str, str] = {}
        self.error: str | None = None
        self.is_loading = False
        self.redirect_to: str | None = None
        self.session: dict[str, Any] | None = None

    def handle_change(self, name: str, value: Any) -> None:
        if name not in self.form_data:
            raise KeyError(f"Unknown form field: {name}")
        self.form_data[name] = value
        self.errors.pop(name, None)

    def validate(self) -> bool:
        try:
            self.schema.model_validate(self.form_data)
        except ValidationError as exc:
            self.errors = field_errors(exc)
            return False
        self.errors = {}
        return True

    def send(self, data: BaseModel) -> dict[str, Any]:
        raise NotImplementedError

    def submit(self) -> bool:
        # пока запрос в полёте, повторная отправка игнорируется
        if self.is_loading:
            return False
        if not self.validate():
            return False
        self.is_loading = True
        self.error = None

        try:
            self.session = self.send(self.schema.model_validate(self.form_data))
            self.redirect_to = self.success_redirect
            return True
        except AuthApiError as exc:
            logger.info("form_submit_failed", form=type(self).__name__, status_code=exc.status_code)
            self.error = self.failure_message
            return False
        finally:
            self.is_loading = False
