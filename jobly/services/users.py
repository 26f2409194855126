from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.core.applications import resolve_initial_state
from jobly.core.security import PasswordHasher, get_password_hasher
from jobly.services.repository import (
    Database,
    PostgresRepository,
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnauthorizedError,
    RepositoryValidationError,
    get_database,
)
from jobly.services.sql import sql_for_partial_update
from jobly.services.tags import USER_TECHNOLOGIES

logger = logging.getLogger(__name__)

USER_COLUMN_MAP = {"firstName": "first_name", "lastName": "last_name", "isAdmin": "is_admin"}
USER_UPDATE_FIELDS = frozenset({"firstName", "lastName", "password", "email", "isAdmin"})
APPLICATION_COLUMN_MAP = {"state": "application_state"}
APPLICATION_UPDATE_FIELDS = frozenset({"state"})

USER_COLUMNS_SQL = "username, first_name, last_name, email, is_admin"


class UserRepository(PostgresRepository):
    def __init__(self, database: Database, hasher: PasswordHasher) -> None:
        super().__init__(database)
        self.hasher = hasher

    async def authenticate(self, username: str, password: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {USER_COLUMNS_SQL}, password
            from users
            where username = $1
            """,
            username,
        )
        if row:
            is_valid = await asyncio.to_thread(self.hasher.verify, password, row["password"])
            if is_valid:
                return self._user_row_to_dict(row)

        logger.info("failed login attempt username=%s", username)
        raise RepositoryUnauthorizedError("Invalid username/password")

    async def register(
        self,
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        is_admin: bool = False,
        technologies: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Create a user; ``technologies`` appears on the result only when tags were given.

        The duplicate pre-check is an early exit only; the primary key on
        ``users.username`` is what actually rejects concurrent duplicates.
        """
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("select username from users where username = $1", username)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate username: {username}")

        hashed_password = await asyncio.to_thread(self.hasher.hash, password)

        async with pool.acquire() as conn:
            async with conn.transaction():
                try:
                    row = await conn.fetchrow(
                        f"""
                        insert into users (username, password, first_name, last_name, email, is_admin)
                        values ($1, $2, $3, $4, $5, $6)
                        returning {USER_COLUMNS_SQL}
                        """,
                        username,
                        hashed_password,
                        first_name,
                        last_name,
                        email,
                        is_admin,
                    )
                except pg_exc.UniqueViolationError as exc:
                    raise RepositoryConflictError(f"Duplicate username: {username}") from exc

                user = self._user_row_to_dict(row)
                if technologies:
                    user["technologies"] = await USER_TECHNOLOGIES.associate(conn, username, technologies)

        logger.info("registered user username=%s is_admin=%s", username, is_admin)
        return user

    async def find_all(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {USER_COLUMNS_SQL}
            from users
            order by username
            """
        )
        return [self._user_row_to_dict(row) for row in rows]

    async def get(self, username: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {USER_COLUMNS_SQL}
            from users
            where username = $1
            """,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")

        user = self._user_row_to_dict(row)

        technologies = await USER_TECHNOLOGIES.fetch(pool, username)
        if technologies:
            user["technologies"] = technologies

        application_rows = await pool.fetch(
            """
            select job_id
            from applications
            where username = $1
            order by job_id
            """,
            username,
        )
        if application_rows:
            user["applications"] = [application_row["job_id"] for application_row in application_rows]
        return user

    async def update(self, username: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a partial update.

        WARNING: this can set a new password or grant admin; callers must have
        authorized the change before calling.
        """
        unknown = sorted(set(data) - USER_UPDATE_FIELDS)
        if unknown:
            raise RepositoryValidationError(f"Cannot update user fields: {', '.join(unknown)}")

        values = dict(data)
        if "password" in values:
            if values["password"] is None:
                raise RepositoryValidationError("password cannot be null")
            values["password"] = await asyncio.to_thread(self.hasher.hash, values["password"])
        update = sql_for_partial_update(values, USER_COLUMN_MAP)

        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            update users
            set {update.set_clause}
            where username = {update.placeholder()}
            returning {USER_COLUMNS_SQL}
            """,
            *update.values,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")
        return self._user_row_to_dict(row)

    async def remove(self, username: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from users where username = $1 returning username", username)
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")

    async def apply_to_job(self, username: str, job_id: int, state: str | None = None) -> dict[str, Any]:
        try:
            initial_state = resolve_initial_state(state)
        except ValueError as exc:
            raise RepositoryValidationError(str(exc)) from exc

        pool = await self._get_pool()
        await self._ensure_user_and_job(pool, username, job_id)

        try:
            row = await pool.fetchrow(
                """
                insert into applications (username, job_id, application_state)
                values ($1, $2, $3)
                returning job_id, application_state::text as state
                """,
                username,
                job_id,
                initial_state,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Already applied: {username} to job {job_id}") from exc
        return {"job_id": row["job_id"], "state": row["state"]}

    async def update_application(self, username: str, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(data) - APPLICATION_UPDATE_FIELDS)
        if unknown:
            raise RepositoryValidationError(f"Cannot update application fields: {', '.join(unknown)}")
        update = sql_for_partial_update(data, APPLICATION_COLUMN_MAP)

        pool = await self._get_pool()
        await self._ensure_user_and_job(pool, username, job_id)

        row = await pool.fetchrow(
            f"""
            update applications
            set {update.set_clause}
            where username = {update.placeholder(1)}
              and job_id = {update.placeholder(2)}
            returning job_id, application_state::text as state
            """,
            *update.values,
            username,
            job_id,
        )
        if not row:
            raise RepositoryNotFoundError(f"No application: {username} for job {job_id}")
        return {"job_id": row["job_id"], "state": row["state"]}

    async def _ensure_user_and_job(self, pool: asyncpg.Pool, username: str, job_id: int) -> None:
        user_row = await pool.fetchrow("select username from users where username = $1", username)
        if not user_row:
            raise RepositoryNotFoundError(f"No user: {username}")

        try:
            job_row = await pool.fetchrow("select id from jobs where id = $1", job_id)
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not job_row:
            raise RepositoryNotFoundError(f"No job: {job_id}")

    @staticmethod
    def _user_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "username": row["username"],
            "first_name": row["first_name"],
            "last_name": row["last_name"],
            "email": row["email"],
            "is_admin": bool(row["is_admin"]),
        }


@lru_cache
def get_user_repository() -> UserRepository:
    return UserRepository(get_database(), get_password_hasher())
