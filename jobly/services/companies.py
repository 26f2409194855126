from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.services.repository import (
    PostgresRepository,
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_database,
)
from jobly.services.sql import COMPANY_SEARCH_RULES, compile_search_filters, sql_for_partial_update

COMPANY_COLUMN_MAP = {"numEmployees": "num_employees", "logoUrl": "logo_url"}
COMPANY_UPDATE_FIELDS = frozenset({"name", "description", "numEmployees", "logoUrl"})


class CompanyRepository(PostgresRepository):
    async def create(
        self,
        *,
        handle: str,
        name: str,
        description: str | None = None,
        num_employees: int | None = None,
        logo_url: str | None = None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("select handle from companies where handle = $1", handle)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate company: {handle}")

        try:
            row = await pool.fetchrow(
                """
                insert into companies (handle, name, description, num_employees, logo_url)
                values ($1, $2, $3, $4, $5)
                returning handle, name, description, num_employees, logo_url
                """,
                handle,
                name,
                description,
                num_employees,
                logo_url,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company: {handle}") from exc
        except pg_exc.CheckViolationError as exc:
            raise RepositoryValidationError(f"Invalid company: {exc}") from exc
        return dict(row)

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        filters = filters or {}
        min_employees = filters.get("minEmployees")
        max_employees = filters.get("maxEmployees")
        if min_employees is not None and max_employees is not None and min_employees > max_employees:
            raise RepositoryValidationError("minEmployees cannot be greater than maxEmployees")

        compiled = compile_search_filters(filters, COMPANY_SEARCH_RULES)
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select c.handle, c.name, c.description, c.num_employees, c.logo_url
            from companies c
            {compiled.where_clause}
            order by c.name
            """,
            *compiled.values,
        )
        return [dict(row) for row in rows]

    async def get(self, handle: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select handle, name, description, num_employees, logo_url
            from companies
            where handle = $1
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        company = dict(row)
        job_rows = await pool.fetch(
            """
            select id, title, salary, equity
            from jobs
            where company_handle = $1
            order by id
            """,
            handle,
        )
        if job_rows:
            company["jobs"] = [self._company_job_row_to_dict(job_row) for job_row in job_rows]
        return company

    async def update(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(data) - COMPANY_UPDATE_FIELDS)
        if unknown:
            raise RepositoryValidationError(f"Cannot update company fields: {', '.join(unknown)}")

        update = sql_for_partial_update(data, COMPANY_COLUMN_MAP)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update companies
                set {update.set_clause}
                where handle = {update.placeholder()}
                returning handle, name, description, num_employees, logo_url
                """,
                *update.values,
                handle,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company name: {data.get('name')}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")
        return dict(row)

    async def remove(self, handle: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from companies where handle = $1 returning handle", handle)
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

    def _company_job_row_to_dict(self, row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": self._decimal_to_text(row["equity"]),
        }


@lru_cache
def get_company_repository() -> CompanyRepository:
    return CompanyRepository(get_database())
