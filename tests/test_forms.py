import json

import httpx
import pytest

from storefront.infrastructure.api_client import AuthApiClient, AuthApiError
from storefront.interfaces.forms.login import LoginFormController
from storefront.interfaces.forms.signup import SignupFormController

SESSION = {"access_token": "token", "token_type": "bearer", "expires_in": 3600}


class Recorder:
    """Транспорт, который запоминает запросы и отвечает заданным статусом"""

    def __init__(self, status_code=200, body=None, error=None):
        self.status_code = status_code
        self.body = SESSION if body is None else body
        self.error = error
        self.requests = []
        self.on_request = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request:
            self.on_request()
        if self.error:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def api(recorder):
    client = AuthApiClient(base_url="http://testserver/api", transport=httpx.MockTransport(recorder))
    yield client
    client.close()


def filled_signup(api, **overrides):
    form = SignupFormController(client=api)
    values = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "password123",
        "confirmPassword": "password123",
        **overrides,
    }
    for name, value in values.items():
        form.handle_change(name, value)
    return form


def filled_login(api, email="jane@example.com", password="password123"):
    form = LoginFormController(client=api)
    form.handle_change("email", email)
    form.handle_change("password", password)
    return form


# --- Валидация

def test_login_email_without_at(api, recorder):
    form = filled_login(api, email="janeexample.com")
    assert form.submit() is False
    assert form.errors == {"email": "Please enter a valid email address"}
    assert recorder.requests == []

def test_login_short_password(api):
    form = filled_login(api, password="1234567")
    assert form.validate() is False
    assert form.errors["password"] == "Password must be at least 8 characters"

def test_signup_password_mismatch(api, recorder):
    form = filled_signup(api, confirmPassword="password124")
    assert form.submit() is False
    assert "do not match" in form.errors["confirmPassword"]
    assert recorder.requests == []

def test_signup_reports_every_invalid_field(api):
    form = filled_signup(api, name="J", email="nope", password="short", confirmPassword="short")
    assert form.validate() is False
    assert form.errors == {
        "name": "Name must be at least 2 characters",
        "email": "Please enter a valid email address",
        "password": "Password must be at least 8 characters",
    }

def test_signup_unknown_role(api):
    form = filled_signup(api, role="admin")
    assert form.validate() is False
    assert form.errors == {"role": "Please select a role"}

def test_change_clears_field_error(api):
    form = filled_login(api, email="broken")
    form.validate()
    form.handle_change("email", "jane@example.com")
    assert "email" not in form.errors

def test_change_unknown_field(api):
    with pytest.raises(KeyError):
        LoginFormController(client=api).handle_change("role", "client")

def test_role_change_accepts_only_signup_roles(api):
    form = SignupFormController(client=api)
    assert form.form_data["role"] == "client"
    form.handle_role_change("admin")
    assert form.form_data["role"] == "client"
    form.handle_role_change("employee")
    assert form.form_data["role"] == "employee"


# --- Отправка

@pytest.mark.parametrize("role, role_id", [("client", 3), ("employee", 2)])
def test_signup_sends_role_id(api, recorder, role, role_id):
    form = filled_signup(api)
    form.handle_role_change(role)
    assert form.submit() is True
    assert recorder.requests[-1].url.path == "/api/auth/signup"
    assert recorder.last_json == {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "password123",
        "password_confirmation": "password123",
        "role_id": role_id,
    }

def test_login_success_redirects_home(api, recorder):
    form = filled_login(api)
    assert form.submit() is True
    assert recorder.requests[-1].url.path == "/api/auth/login"
    assert recorder.last_json == {"email": "jane@example.com", "password": "password123"}
    assert form.redirect_to == "/"
    assert form.session == SESSION
    assert form.error is None
    assert form.is_loading is False

def test_login_failure_shows_banner(api, recorder):
    recorder.status_code = 401
    recorder.body = {"detail": "Invalid credentials"}
    form = filled_login(api)
    assert form.submit() is False
    assert form.error == "Invalid email or password. Please try again."
    assert form.redirect_to is None
    assert form.errors == {}
    assert form.is_loading is False

def test_signup_network_failure_shows_banner(api, recorder):
    recorder.error = httpx.ConnectError("connection refused")
    form = filled_signup(api)
    assert form.submit() is False
    assert form.error == "Registration failed. Please try again."
    assert form.is_loading is False

def test_banner_cleared_on_next_submit(api, recorder):
    recorder.status_code = 500
    form = filled_login(api)
    form.submit()
    recorder.status_code = 200
    assert form.submit() is True
    assert form.error is None

def test_loading_during_request(api, recorder):
    form = filled_login(api)
    seen = []
    recorder.on_request = lambda: seen.append(form.is_loading)
    form.submit()
    assert seen == [True]

def test_no_resubmit_while_loading(api, recorder):
    form = filled_login(api)
    form.is_loading = True
    assert form.submit() is False
    assert recorder.requests == []


# --- API client

def test_api_client_error_carries_status(api, recorder):
    recorder.status_code = 422
    recorder.body = {"detail": [{"msg": "bad"}]}
    with pytest.raises(AuthApiError) as exc:
        api.login("jane@example.com", "password123")
    assert exc.value.status_code == 422
    assert exc.value.payload == {"detail": [{"msg": "bad"}]}

def test_api_client_transport_error(api, recorder):
    recorder.error = httpx.ReadTimeout("timed out")
    with pytest.raises(AuthApiError) as exc:
        api.signup({})
    assert exc.value.status_code is None

def test_signup_mismatch_reported_with_other_errors(api):
    """Несовпадение паролей сообщается вместе с ошибками других полей"""
    form = filled_signup(api, name="J", confirmPassword="password124")
    assert form.validate() is False
    assert form.errors == {
        "name": "Name must be at least 2 characters",
        "confirmPassword": "Passwords do not match",
    }
