import pytest

from app.core.exceptions import AuthenticationFailure
from app.services.api_key_auth import APIKeyAuthenticator, AuthResult
from tests.helpers import TEST_API_KEY


@pytest.fixture
def authenticator():
    return APIKeyAuthenticator(TEST_API_KEY)


def test_missing_key(authenticator):
    assert authenticator.authenticate(None) == AuthResult(authenticated=False, error="API key required")
    assert authenticator.authenticate("").error == "API key required"


@pytest.mark.parametrize("provided", ["wrong", "test-api-ke", "test-api-key ", "TEST-API-KEY", "test-api-key-2"])
def test_wrong_key(authenticator, provided):
    assert authenticator.authenticate(provided) == AuthResult(authenticated=False, error="Invalid API key")


def test_matching_key(authenticator):
    result = authenticator.authenticate(TEST_API_KEY)

    assert result.authenticated
    assert result.error is None
    result.raise_for_failure()


def test_non_ascii_keys_compare_safely():
    authenticator = APIKeyAuthenticator("clé-secrète")

    assert authenticator.authenticate("clé-secrète").authenticated
    assert not authenticator.authenticate("cle-secrete").authenticated


def test_raise_for_failure_carries_reason(authenticator):
    with pytest.raises(AuthenticationFailure, match="Invalid API key"):
        authenticator.authenticate("wrong").raise_for_failure()


@pytest.mark.parametrize("configured", ["", "   "])
def test_authenticator_requires_a_configured_key(configured):
    with pytest.raises(ValueError):
        APIKeyAuthenticator(configured)
