"""
HTTP client for the storefront auth API.

Used by the login/signup forms; one request per call, no retries.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import settings

logger = structlog.get_logger()


class AuthApiError(Exception):
    """Raised for any failed call: transport error or non-2xx answer."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class AuthApiClient:
    """Synchronous client for /auth endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url or settings.API_BASE_URL
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout or settings.HTTP_TIMEOUT),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self._client.close()

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self.post("/auth/login", {"email": email, "password": password})

    def signup(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("/auth/signup", payload)

    def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("auth_api_rejected", path=path, status_code=e.response.status_code)
            raise AuthApiError(
                f"{path} failed with {e.response.status_code}",
                status_code=e.response.status_code,
                payload=_safe_json(e.response),
            ) from e
        except httpx.HTTPError as e:
            logger.error("auth_api_unreachable", path=path, error=str(e))
            raise AuthApiError(f"{path} failed: {e}") from e

        return _safe_json(response) or {}


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
