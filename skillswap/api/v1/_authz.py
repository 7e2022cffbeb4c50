"""Shared authorization and error-mapping helpers for API v1 route modules."""

from __future__ import annotations

from skillswap.auth.rbac import require_scopes
from skillswap.core.config import get_config
from skillswap.core.dependencies import CurrentUser, get_current_user
from skillswap.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    SkillSwapException,
    ValidationError,
)


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def authorize(authorization: str | None, scopes: list[str]) -> CurrentUser:
    token = _extract_bearer_token(authorization)
    user = get_current_user(token=token, settings=get_config())
    require_scopes(user.role, scopes)
    return user


def map_domain_error(exc: SkillSwapException) -> int:
    """HTTP status for a domain error; the error's ``code`` goes in the body."""
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (ValidationError, InvalidStateError)):
        return 400
    return 500
