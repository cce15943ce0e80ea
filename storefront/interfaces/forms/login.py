from pydantic import BaseModel, field_validator

from .base import FormController, check_email, check_password


class LoginForm(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return check_password(v)


class LoginFormController(FormController):
    schema = LoginForm
    initial_data = {"email": "", "password": ""}
    failure_message = "Invalid email or password. Please try again."

    def send(self, data: LoginForm) -> dict:
        return self.client.login(data.email, data.password)
