"""Tests for password hashing and access tokens."""

from datetime import timedelta

import pytest
from jose import jwt

from store_ratings.services.errors import AuthenticationError
from store_ratings.services.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from store_ratings.settings import get_settings


def test_hash_and_verify_password():
    hashed = hash_password("Secret#Pass1")
    assert hashed != "Secret#Pass1"
    assert verify_password("Secret#Pass1", hashed)
    assert not verify_password("secret#pass1", hashed)


def test_token_round_trip_claims():
    token = create_access_token(42, "store_owner")
    claims = decode_access_token(token)
    assert claims.user_id == 42
    assert claims.role == "store_owner"
    assert len(claims.jti) == 32
    assert 0 < claims.seconds_remaining() <= get_settings().access_token_expire_minutes * 60


def test_each_token_gets_unique_jti():
    first = decode_access_token(create_access_token(1, "user"))
    second = decode_access_token(create_access_token(1, "user"))
    assert first.jti != second.jti


def test_expired_token_is_rejected():
    token = create_access_token(1, "user", expires_delta=timedelta(seconds=-10))
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_tampered_token_is_rejected():
    header, payload, signature = create_access_token(1, "user").split(".")
    forged = ".".join([header, payload, "A" * len(signature)])
    with pytest.raises(AuthenticationError):
        decode_access_token(forged)


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "1", "jti": "x", "exp": 9999999999}, "other-key", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_missing_claims_is_rejected():
    settings = get_settings()
    token = jwt.encode({"sub": "1", "exp": 9999999999}, settings.jwt_secret_key, algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_authentication_error_shape():
    err = AuthenticationError("Invalid or expired token")
    assert err.status_code == 401
    assert err.code == "UNAUTHORIZED"
