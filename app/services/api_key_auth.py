"""Shared-secret check gating access to the inventory feed."""

from __future__ import annotations

import hmac
from typing import Optional

from pydantic import BaseModel

from app.core.exceptions import AuthenticationFailure

API_KEY_REQUIRED = "API key required"
INVALID_API_KEY = "Invalid API key"


class AuthResult(BaseModel):
    authenticated: bool
    error: Optional[str] = None

    def raise_for_failure(self) -> None:
        if not self.authenticated:
            raise AuthenticationFailure(self.error or INVALID_API_KEY)


class APIKeyAuthenticator:
    """Compares a provided key against the single configured key in constant time.

    Knows nothing about HTTP; callers decide where the key comes from.
    """

    def __init__(self, api_key: str) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("API key must be provided to APIKeyAuthenticator")
        self._expected = api_key.encode("utf-8")

    def authenticate(self, provided_key: Optional[str]) -> AuthResult:
        if not provided_key:
            return AuthResult(authenticated=False, error=API_KEY_REQUIRED)

        if not hmac.compare_digest(provided_key.encode("utf-8"), self._expected):
            return AuthResult(authenticated=False, error=INVALID_API_KEY)

        return AuthResult(authenticated=True)
