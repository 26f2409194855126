from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.services.repository import RepositoryConflictError

logger = logging.getLogger(__name__)


class TagAssociator:
    """Links a parent row to entries of the shared ``technologies`` registry.

    Registry lookups are case-insensitive: the first casing ever stored for a
    name is canonical, and link rows always reference that canonical name.
    """

    def __init__(self, *, link_table: str, parent_column: str) -> None:
        self.link_table = link_table
        self.parent_column = parent_column

    async def associate(
        self,
        conn: asyncpg.Connection,
        parent_key: Any,
        names: Sequence[str],
    ) -> list[str]:
        """Link every name, in order, and return the canonical names linked.

        Duplicates in ``names`` are not collapsed; a second link of the same
        technology surfaces as a conflict.
        """
        linked: list[str] = []
        for name in names:
            canonical = await self._resolve_canonical_name(conn, name)
            try:
                row = await conn.fetchrow(
                    f"""
                    insert into {self.link_table} ({self.parent_column}, technology)
                    values ($1, $2)
                    returning technology
                    """,
                    parent_key,
                    canonical,
                )
            except pg_exc.UniqueViolationError as exc:
                raise RepositoryConflictError(f"Duplicate technology for {parent_key}: {canonical}") from exc
            linked.append(row["technology"])
        return linked

    async def fetch(self, conn: asyncpg.Connection | asyncpg.Pool, parent_key: Any) -> list[str]:
        rows = await conn.fetch(
            f"""
            select technology
            from {self.link_table}
            where {self.parent_column} = $1
            order by id
            """,
            parent_key,
        )
        return [row["technology"] for row in rows]

    async def _resolve_canonical_name(self, conn: asyncpg.Connection, name: str) -> str:
        row = await self._lookup(conn, name)
        if row is not None:
            return row["name"]

        row = await conn.fetchrow(
            """
            insert into technologies (name)
            values ($1)
            on conflict do nothing
            returning name
            """,
            name,
        )
        if row is None:
            # A concurrent request registered another casing first.
            row = await self._lookup(conn, name)
        else:
            logger.info("registered technology name=%s", row["name"])
        return row["name"]

    @staticmethod
    async def _lookup(conn: asyncpg.Connection, name: str) -> asyncpg.Record | None:
        return await conn.fetchrow(
            """
            select name
            from technologies
            where lower(name) = lower($1)
            """,
            name,
        )


JOB_TECHNOLOGIES = TagAssociator(link_table="job_technologies", parent_column="job_id")
USER_TECHNOLOGIES = TagAssociator(link_table="user_technologies", parent_column="username")
