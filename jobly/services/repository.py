from __future__ import annotations

from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]

from jobly.core.config import get_settings


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an operation violates a uniqueness constraint."""


class RepositoryUnauthorizedError(RepositoryError):
    """Raised when supplied credentials do not match a stored user."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


class Database:
    """Lazily created asyncpg pool shared by every repository."""

    def __init__(self, database_url: str | None, min_pool_size: int, max_pool_size: int) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("JOBLY_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc


class PostgresRepository:
    def __init__(self, database: Database) -> None:
        self.database = database

    async def _get_pool(self) -> asyncpg.Pool:
        return await self.database.get_pool()

    @staticmethod
    def _coerce_decimal(value: Any) -> Decimal | None:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise RepositoryValidationError(f"invalid decimal value: {value!r}") from exc

    @staticmethod
    def _decimal_to_text(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)


@lru_cache
def get_database() -> Database:
    settings = get_settings()
    return Database(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
