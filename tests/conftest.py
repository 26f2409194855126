from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest

os.environ.setdefault("JOBLY_OTEL_ENABLED", "false")
os.environ.setdefault("JOBLY_SECRET_KEY", "test-secret")

from jobly.services.repository import Database  # noqa: E402


def normalize_sql(query: str) -> str:
    return " ".join(query.split())


class _Transaction:
    async def __aenter__(self) -> None:
        return None

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


class _Acquire:
    def __init__(self, conn: ScriptedConnection) -> None:
        self._conn = conn

    async def __aenter__(self) -> ScriptedConnection:
        return self._conn

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


class ScriptedConnection:
    """Stands in for both an asyncpg pool and connection.

    Every ``fetch``/``fetchrow`` pops the next scripted response; an exception
    instance in the script is raised instead of returned.
    """

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def fetchrow(self, query: str, *args: Any) -> Any:
        return self._next(query, args)

    async def fetch(self, query: str, *args: Any) -> Any:
        return self._next(query, args)

    def acquire(self) -> _Acquire:
        return _Acquire(self)

    def transaction(self) -> _Transaction:
        return _Transaction()

    def _next(self, query: str, args: tuple[Any, ...]) -> Any:
        self.calls.append((normalize_sql(query), args))
        if not self.responses:
            raise AssertionError(f"unexpected query: {normalize_sql(query)}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class ScriptedDatabase(Database):
    def __init__(self, conn: ScriptedConnection) -> None:
        super().__init__(database_url="postgresql://scripted", min_pool_size=1, max_pool_size=1)
        self.conn = conn

    async def get_pool(self) -> Any:
        return self.conn


class FakePasswordHasher:
    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed:{password}"


@pytest.fixture
def scripted_database() -> Callable[..., ScriptedDatabase]:
    def build(*responses: Any) -> ScriptedDatabase:
        return ScriptedDatabase(ScriptedConnection(list(responses)))

    return build


@pytest.fixture
def unconfigured_database() -> Database:
    # Any storage access raises RepositoryUnavailableError.
    return Database(database_url=None, min_pool_size=1, max_pool_size=1)


@pytest.fixture
def password_hasher() -> FakePasswordHasher:
    return FakePasswordHasher()
