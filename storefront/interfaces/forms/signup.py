from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from ...domain.entities import SIGNUP_ROLES, role_id_for
from .base import FormController, check_email, check_password


class SignupForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str
    password: str
    confirm_password: str = Field(alias="confirmPassword")
    role: str = "client"

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password(v)

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        if len(v) < 2:
            raise PydanticCustomError("name_too_short", "Name must be at least 2 characters")
        return v

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        # сравниваем только с валидным паролем
        if "password" in info.data and v != info.data["password"]:
            raise PydanticCustomError("password_mismatch", "Passwords do not match")
        return v

    @field_validator("role")
    @classmethod
    def signup_role(cls, v: str) -> str:
        if v not in SIGNUP_ROLES:
            raise PydanticCustomError("role", "Please select a role")
        return v


class SignupFormController(FormController):
    schema = SignupForm
    initial_data = {
        "name": "",
        "email": "",
        "password": "",
        "confirmPassword": "",
        "role": "client",
    }
    failure_message = "Registration failed. Please try again."

    def handle_role_change(self, value: str) -> None:
        if value in SIGNUP_ROLES:
            self.form_data["role"] = value
            self.errors.pop("role", None)

    def send(self, data: SignupForm) -> dict:
        return self.client.signup({
            "name": data.name,
            "email": data.email,
            "password": data.password,
            "password_confirmation": data.confirm_password,
            "role_id": role_id_for(data.role),
        })
