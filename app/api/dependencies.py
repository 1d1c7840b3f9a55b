"""Shared API dependencies."""

from fastapi import Depends, HTTPException, Query, Security, status
from fastapi.security import APIKeyHeader

from app.core.config import settings
from app.core.logging import get_logger
from app.services.api_key_auth import APIKeyAuthenticator

logger = get_logger(__name__)

operator_token_header = APIKeyHeader(name=settings.operator_token_header, auto_error=False)
feed_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_operator_token(token: str | None = Security(operator_token_header)) -> str:
    """Validate the static operator token if one is configured."""

    expected = settings.operator_api_token
    if not expected:
        return ""

    if token in {expected, f"Bearer {expected}"}:
        return token or ""

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API token")


def get_auth_dependency(token: str = Depends(verify_operator_token)) -> str:
    """Expose dependency alias for routers."""

    return token


def get_feed_authenticator() -> APIKeyAuthenticator:
    if not settings.feed_api_key:
        logger.error("feed_api_key_missing")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error")
    return APIKeyAuthenticator(settings.feed_api_key)


def require_feed_key(
    key: str | None = Query(default=None, description="Feed API key."),
    header_key: str | None = Security(feed_key_header),
    authenticator: APIKeyAuthenticator = Depends(get_feed_authenticator),
) -> None:
    """Gate the feed on the consumer's shared secret (query ``key`` or ``X-API-Key``)."""

    result = authenticator.authenticate(key or header_key)
    if not result.authenticated:
        logger.warning("feed_access_denied", reason=result.error)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error)
