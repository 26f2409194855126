from __future__ import annotations

import string

import pytest
from jose import JWTError

from jobly.core.applications import APPLICATION_STATES, DEFAULT_APPLICATION_STATE, resolve_initial_state
from jobly.core.auth import Principal, principal_from_claims
from jobly.core.config import Settings
from jobly.core.credentials import SYMBOLS, generate_password
from jobly.core.security import PasswordHasher, create_token, decode_token


def test_token_round_trips_principal_claims() -> None:
    settings = Settings(secret_key="unit-secret")

    token = create_token(Principal(username="u1", is_admin=True), settings)
    claims = decode_token(token, settings)

    assert claims["username"] == "u1"
    assert claims["isAdmin"] is True
    assert "exp" not in claims
    assert principal_from_claims(claims) == Principal(username="u1", is_admin=True)


def test_token_carries_expiry_when_configured() -> None:
    settings = Settings(secret_key="unit-secret", access_token_expire_minutes=5)

    claims = decode_token(create_token(Principal(username="u1"), settings), settings)

    assert claims["exp"] > claims["iat"]


def test_token_signed_with_other_key_is_rejected() -> None:
    token = create_token(Principal(username="u1"), Settings(secret_key="one"))

    with pytest.raises(JWTError):
        decode_token(token, Settings(secret_key="two"))


def test_principal_from_claims_requires_username() -> None:
    assert principal_from_claims({"isAdmin": True}) is None
    assert principal_from_claims({"username": "u2", "isAdmin": "yes"}) == Principal(username="u2", is_admin=False)


def test_principal_permissions() -> None:
    user = Principal(username="u1")
    admin = Principal(username="root", is_admin=True)

    user.require_admin_or_user("u1")
    admin.require_admin_or_user("u1")
    admin.require_admin()
    with pytest.raises(PermissionError):
        user.require_admin_or_user("u2")
    with pytest.raises(PermissionError):
        user.require_admin()


def test_password_hasher_verifies_only_matching_password() -> None:
    hasher = PasswordHasher(time_cost=1)

    digest = hasher.hash("password1")

    assert digest != "password1"
    assert hasher.verify("password1", digest)
    assert not hasher.verify("password2", digest)
    assert not hasher.verify("password1", "not-a-hash")


def test_generated_password_covers_every_character_group() -> None:
    password = generate_password(12)

    assert len(password) == 12
    assert any(char in string.ascii_lowercase for char in password)
    assert any(char in string.ascii_uppercase for char in password)
    assert any(char in string.digits for char in password)
    assert any(char in SYMBOLS for char in password)


def test_generated_passwords_differ() -> None:
    assert generate_password() != generate_password()


def test_generated_password_too_short_is_rejected() -> None:
    with pytest.raises(ValueError):
        generate_password(3)


def test_application_states_are_a_flat_set_with_interested_default() -> None:
    assert APPLICATION_STATES == {"interested", "applied", "accepted", "rejected"}
    assert DEFAULT_APPLICATION_STATE == "interested"
    assert resolve_initial_state(None) == "interested"
    assert resolve_initial_state("rejected") == "rejected"
    with pytest.raises(ValueError):
        resolve_initial_state("hired")
