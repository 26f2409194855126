from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from jobly.core.auth import Principal, principal_from_claims
from jobly.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class PasswordHasher:
    def __init__(self, time_cost: int = 2) -> None:
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=max(1, time_cost),
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Unrecognised or malformed stored hash.
            return False


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(time_cost=get_settings().password_hash_time_cost)


def create_token(principal: Principal, settings: Settings | None = None) -> str:
    """Sign a JWT carrying ``{username, isAdmin}`` for the principal."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    claims: dict[str, Any] = {**principal.to_claims(), "iat": int(now.timestamp())}
    if settings.access_token_expire_minutes:
        expires_at = now + timedelta(minutes=settings.access_token_expire_minutes)
        claims["exp"] = int(expires_at.timestamp())
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    settings = settings or get_settings()
    # Let callers decide how to handle JWTError
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


async def get_optional_principal(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Principal | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None

    token = authorization.split(" ", maxsplit=1)[1].strip()
    if not token:
        return None

    try:
        claims = decode_token(token, settings)
    except JWTError:
        logger.info("rejected invalid bearer token")
        return None
    return principal_from_claims(claims)


async def get_admin_principal(principal: Principal | None = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authentication required")
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return principal


async def get_admin_or_user_principal(
    username: str,
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authentication required")
    try:
        principal.require_admin_or_user(username)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return principal
