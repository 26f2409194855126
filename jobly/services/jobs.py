from __future__ import annotations

from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.services.repository import (
    PostgresRepository,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_database,
)
from jobly.services.sql import JOB_SEARCH_RULES, compile_search_filters, sql_for_partial_update
from jobly.services.tags import JOB_TECHNOLOGIES

JOB_UPDATE_FIELDS = frozenset({"title", "salary", "equity"})


class JobRepository(PostgresRepository):
    async def create(
        self,
        *,
        title: str,
        company_handle: str,
        salary: int | None = None,
        equity: Any = None,
        technologies: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Insert a job and link its technologies in one transaction.

        ``technologies`` is only present on the result when tags were supplied.
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                try:
                    row = await conn.fetchrow(
                        """
                        insert into jobs (title, salary, equity, company_handle)
                        values ($1, $2, $3, $4)
                        returning id, title, salary, equity, company_handle
                        """,
                        title,
                        salary,
                        self._coerce_decimal(equity),
                        company_handle,
                    )
                except pg_exc.ForeignKeyViolationError as exc:
                    raise RepositoryNotFoundError(f"No company: {company_handle}") from exc

                job = self._job_row_to_dict(row)
                if technologies:
                    job["technologies"] = await JOB_TECHNOLOGIES.associate(conn, job["id"], technologies)
        return job

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        compiled = compile_search_filters(filters, JOB_SEARCH_RULES)
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select
              j.id,
              j.title,
              j.salary,
              j.equity,
              j.company_handle,
              c.name as company_name
            from jobs j
            left join companies c on c.handle = j.company_handle
            {compiled.where_clause}
            order by j.title, j.id
            """,
            *compiled.values,
        )
        return [
            {**self._job_row_to_dict(row), "company_name": row["company_name"]}
            for row in rows
        ]

    async def get(self, job_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                """
                select id, title, salary, equity, company_handle
                from jobs
                where id = $1
                """,
                job_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")

        job: dict[str, Any] = {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": self._decimal_to_text(row["equity"]),
        }

        company_row = await pool.fetchrow(
            """
            select handle, name, description, num_employees, logo_url
            from companies
            where handle = $1
            """,
            row["company_handle"],
        )
        if company_row:
            job["company"] = dict(company_row)

        technologies = await JOB_TECHNOLOGIES.fetch(pool, row["id"])
        if technologies:
            job["technologies"] = technologies
        return job

    async def update(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(data) - JOB_UPDATE_FIELDS)
        if unknown:
            raise RepositoryValidationError(f"Cannot update job fields: {', '.join(unknown)}")

        values = dict(data)
        if "equity" in values:
            values["equity"] = self._coerce_decimal(values["equity"])
        update = sql_for_partial_update(values, {})

        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update jobs
                set {update.set_clause}
                where id = {update.placeholder()}
                returning id, title, salary, equity, company_handle
                """,
                *update.values,
                job_id,
            )
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return self._job_row_to_dict(row)

    async def remove(self, job_id: int) -> None:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow("delete from jobs where id = $1 returning id", job_id)
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")

    def _job_row_to_dict(self, row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": self._decimal_to_text(row["equity"]),
            "company_handle": row["company_handle"],
        }


@lru_cache
def get_job_repository() -> JobRepository:
    return JobRepository(get_database())
