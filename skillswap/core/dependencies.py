"""Dependency providers for API handlers and background workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from skillswap.auth.jwt import decode_jwt
from skillswap.core.config import Config, get_config
from skillswap.core.enums import UserRole
from skillswap.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class CurrentUser:
    """The acting user of a request: identity and role only."""

    user_id: int
    role: str
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_current_user(token: str, settings: Config | None = None) -> CurrentUser:
    """Resolve current user from bearer token."""
    cfg = settings or get_settings()
    claims = decode_jwt(token=token, secret=cfg.JWT_SECRET)
    if claims.get("token_use", "access") != "access":
        raise AuthenticationError("Refresh tokens cannot authorize requests.")

    try:
        return CurrentUser(
            user_id=int(claims["sub"]),
            role=str(claims["role"]).lower(),
            claims=claims,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid auth claims.") from exc
