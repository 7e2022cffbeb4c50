from __future__ import annotations

from datetime import timedelta

import pytest

from skillswap.auth.jwt import create_token_pair, decode_jwt, encode_jwt
from skillswap.auth.rbac import has_scopes, require_scopes
from skillswap.core.exceptions import AuthenticationError, AuthorizationError


def test_jwt_roundtrip_contains_required_claims():
    tokens = create_token_pair(user_id=10, role="freelancer", secret="test-secret")
    claims = decode_jwt(tokens.access_token, secret="test-secret")
    assert claims["sub"] == "10"
    assert claims["role"] == "freelancer"
    assert claims["token_use"] == "access"
    assert "exp" in claims
    assert "iat" in claims
    assert "jti" in claims


def test_jwt_rejects_tampering_and_expiry():
    token = create_token_pair(user_id=1, role="client", secret="test-secret").access_token
    with pytest.raises(AuthenticationError):
        decode_jwt(token, secret="other-secret")
    with pytest.raises(AuthenticationError):
        decode_jwt("not-a-token", secret="test-secret")

    expired = encode_jwt({"sub": "1"}, secret="test-secret", ttl=timedelta(minutes=-5))
    with pytest.raises(AuthenticationError):
        decode_jwt(expired, secret="test-secret")


def test_rbac_separates_client_and_freelancer_scopes():
    require_scopes("client", ["bids.decide"])
    require_scopes("freelancer", ["bids.submit", "bids.respond"])
    assert has_scopes("admin", ["anything.at.all"])
    with pytest.raises(AuthorizationError):
        require_scopes("freelancer", ["bids.decide"])
    with pytest.raises(AuthorizationError):
        require_scopes("client", ["bids.submit"])
    with pytest.raises(AuthorizationError):
        require_scopes("visitor", ["projects.read"])
