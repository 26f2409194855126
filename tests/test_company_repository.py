from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest
from asyncpg import exceptions as pg_exc

from jobly.services.companies import CompanyRepository
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)

COMPANY_ROW = {
    "handle": "c1",
    "name": "C1",
    "description": "Desc1",
    "num_employees": 1,
    "logo_url": "http://c1.img",
}


def test_find_all_rejects_inverted_employee_range(unconfigured_database) -> None:
    with pytest.raises(RepositoryValidationError, match="minEmployees"):
        asyncio.run(CompanyRepository(unconfigured_database).find_all({"minEmployees": 10, "maxEmployees": 1}))


def test_find_all_filters_by_name_and_range(scripted_database) -> None:
    database = scripted_database([COMPANY_ROW])

    companies = asyncio.run(CompanyRepository(database).find_all({"nameLike": "c", "maxEmployees": 2}))

    assert companies == [COMPANY_ROW]
    query, args = database.conn.calls[0]
    assert "where c.name ilike $1 and c.num_employees <= $2 order by c.name" in query
    assert args == ("%c%", 2)


def test_get_nests_jobs_when_present(scripted_database) -> None:
    database = scripted_database(
        COMPANY_ROW,
        [{"id": 1, "title": "Job1", "salary": 100, "equity": Decimal("0.1")}],
    )

    company = asyncio.run(CompanyRepository(database).get("c1"))

    assert company["jobs"] == [{"id": 1, "title": "Job1", "salary": 100, "equity": "0.1"}]


def test_get_without_jobs_omits_field(scripted_database) -> None:
    database = scripted_database(COMPANY_ROW, [])

    company = asyncio.run(CompanyRepository(database).get("c1"))

    assert company == COMPANY_ROW


def test_create_duplicate_handle_raises_conflict(scripted_database) -> None:
    database = scripted_database({"handle": "c1"})

    with pytest.raises(RepositoryConflictError, match="Duplicate company: c1"):
        asyncio.run(CompanyRepository(database).create(handle="c1", name="C1"))


def test_update_translates_camel_case_fields(scripted_database) -> None:
    database = scripted_database({**COMPANY_ROW, "num_employees": 5, "logo_url": None})

    asyncio.run(CompanyRepository(database).update("c1", {"numEmployees": 5, "logoUrl": None}))

    query, args = database.conn.calls[0]
    assert 'set "num_employees"=$1, "logo_url"=$2 where handle = $3' in query
    assert args == (5, None, "c1")


def test_remove_missing_company_raises_not_found(scripted_database) -> None:
    database = scripted_database(None)

    with pytest.raises(RepositoryNotFoundError, match="No company: nope"):
        asyncio.run(CompanyRepository(database).remove("nope"))


def test_create_lowercase_check_violation_raises_validation(scripted_database) -> None:
    database = scripted_database(None, pg_exc.CheckViolationError("violates check constraint"))

    with pytest.raises(RepositoryValidationError, match="Invalid company"):
        asyncio.run(CompanyRepository(database).create(handle="Acme", name="Acme"))
