from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import asyncpg  # type: ignore[import-untyped]
import pytest

from jobly.core.security import PasswordHasher
from jobly.services.companies import CompanyRepository
from jobly.services.jobs import JobRepository
from jobly.services.repository import (
    Database,
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnauthorizedError,
)
from jobly.services.users import UserRepository

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "sql" / "jobly-schema.sql"

T = TypeVar("T")


class Repositories:
    def __init__(self, database: Database) -> None:
        self.companies = CompanyRepository(database)
        self.jobs = JobRepository(database)
        self.users = UserRepository(database, PasswordHasher(time_cost=1))


@pytest.fixture(scope="session")
def database_url() -> str:
    url = os.getenv("JOBLY_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("integration tests require JOBLY_DATABASE_URL or DATABASE_URL")
    return url


@pytest.fixture(autouse=True)
def seed_tables(database_url: str) -> dict[str, int]:
    return asyncio.run(_reset_and_seed(database_url))


def _run(database_url: str, scenario: Callable[[Repositories], Awaitable[T]]) -> T:
    async def runner() -> T:
        # A pool is bound to the event loop that created it.
        database = Database(database_url=database_url, min_pool_size=1, max_pool_size=2)
        try:
            return await scenario(Repositories(database))
        finally:
            await database.close()

    return asyncio.run(runner())


async def _reset_and_seed(database_url: str) -> dict[str, int]:
    conn = await asyncpg.connect(database_url)
    try:
        await conn.execute(SCHEMA_PATH.read_text())
        await conn.execute(
            """
            truncate table applications, user_technologies, job_technologies, technologies, jobs, users, companies
            restart identity cascade
            """
        )
        await conn.execute(
            """
            insert into companies (handle, name, num_employees, description, logo_url)
            values ('c1', 'C1', 1, 'Desc1', 'http://c1.img'),
                   ('c2', 'C2', 2, 'Desc2', 'http://c2.img'),
                   ('c3', 'C3', 3, 'Desc3', 'http://c3.img')
            """
        )
        hasher = PasswordHasher(time_cost=1)
        await conn.executemany(
            """
            insert into users (username, password, first_name, last_name, email, is_admin)
            values ($1, $2, $3, $4, $5, $6)
            """,
            [
                ("u1", hasher.hash("password1"), "U1F", "U1L", "user1@user.com", False),
                ("u2", hasher.hash("password2"), "U2F", "U2L", "user2@user.com", True),
            ],
        )
        rows = await conn.fetch(
            """
            insert into jobs (title, salary, equity, company_handle)
            values ('Job1', 100, 0.1, 'c1'),
                   ('Job2', 200, 0.2, 'c1'),
                   ('Job3', 300, 0, 'c1'),
                   ('Job4', null, null, 'c1')
            returning id, title
            """
        )
        return {row["title"]: row["id"] for row in rows}
    finally:
        await conn.close()


def test_job_filters_compose(database_url: str) -> None:
    async def scenario(repos: Repositories) -> tuple[list[str], list[str], list[str]]:
        equity = await repos.jobs.find_all({"hasEquity": True})
        rich = await repos.jobs.find_all({"minSalary": 150, "title": "job"})
        everything = await repos.jobs.find_all({"hasEquity": False})
        return (
            [job["title"] for job in equity],
            [job["title"] for job in rich],
            [job["title"] for job in everything],
        )

    equity, rich, everything = _run(database_url, scenario)

    assert equity == ["Job1", "Job2"]
    assert rich == ["Job2", "Job3"]
    assert everything == ["Job1", "Job2", "Job3", "Job4"]


def test_company_filters_and_nested_jobs(database_url: str) -> None:
    async def scenario(repos: Repositories) -> tuple[list[str], dict[str, Any], dict[str, Any]]:
        larger = await repos.companies.find_all({"minEmployees": 2})
        c1 = await repos.companies.get("c1")
        c3 = await repos.companies.get("c3")
        return [company["handle"] for company in larger], c1, c3

    larger, c1, c3 = _run(database_url, scenario)

    assert larger == ["c2", "c3"]
    assert [job["title"] for job in c1["jobs"]] == ["Job1", "Job2", "Job3", "Job4"]
    assert c1["jobs"][0]["equity"] == "0.1"
    assert "jobs" not in c3


def test_technologies_are_shared_case_insensitively(database_url: str) -> None:
    async def scenario(repos: Repositories) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
        first = await repos.jobs.create(title="Dev", company_handle="c2", technologies=["Python", "SQL"])
        second = await repos.jobs.create(title="Dev II", company_handle="c2", technologies=["python"])
        fetched = await repos.jobs.get(second["id"])
        return first, second, fetched

    first, second, fetched = _run(database_url, scenario)

    assert first["technologies"] == ["Python", "SQL"]
    assert second["technologies"] == ["Python"]
    assert fetched["technologies"] == ["Python"]
    assert fetched["company"]["handle"] == "c2"


def test_job_without_technologies_omits_field(database_url: str, seed_tables: dict[str, int]) -> None:
    job = _run(database_url, lambda repos: repos.jobs.get(seed_tables["Job4"]))

    assert "technologies" not in job
    assert job["salary"] is None
    assert job["equity"] is None


def test_create_job_for_unknown_company_is_not_found(database_url: str) -> None:
    with pytest.raises(RepositoryNotFoundError, match="No company: nope"):
        _run(database_url, lambda repos: repos.jobs.create(title="X", company_handle="nope"))


def test_register_then_authenticate(database_url: str) -> None:
    async def scenario(repos: Repositories) -> dict[str, Any]:
        await repos.users.register(
            username="new",
            password="password",
            first_name="New",
            last_name="User",
            email="new@user.com",
            technologies=["Rust"],
        )
        return await repos.users.authenticate("new", "password")

    user = _run(database_url, scenario)

    assert user["username"] == "new"
    assert user["is_admin"] is False
    assert "password" not in user


def test_authenticate_wrong_password(database_url: str) -> None:
    with pytest.raises(RepositoryUnauthorizedError):
        _run(database_url, lambda repos: repos.users.authenticate("u1", "wrong"))


def test_password_update_is_rehashed(database_url: str) -> None:
    async def scenario(repos: Repositories) -> dict[str, Any]:
        await repos.users.update("u1", {"password": "new-password"})
        return await repos.users.authenticate("u1", "new-password")

    assert _run(database_url, scenario)["username"] == "u1"


def test_application_lifecycle(database_url: str, seed_tables: dict[str, int]) -> None:
    job_id = seed_tables["Job2"]

    async def scenario(repos: Repositories) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
        applied = await repos.users.apply_to_job("u1", job_id)
        updated = await repos.users.update_application("u1", job_id, {"state": "accepted"})
        user = await repos.users.get("u1")
        return applied, updated, user

    applied, updated, user = _run(database_url, scenario)

    assert applied == {"job_id": job_id, "state": "interested"}
    assert updated == {"job_id": job_id, "state": "accepted"}
    assert user["applications"] == [job_id]

    with pytest.raises(RepositoryConflictError):
        _run(database_url, lambda repos: repos.users.apply_to_job("u1", job_id))


def test_apply_to_missing_job_is_not_found(database_url: str) -> None:
    with pytest.raises(RepositoryNotFoundError, match="No job: 0"):
        _run(database_url, lambda repos: repos.users.apply_to_job("u1", 0))


def test_removing_company_cascades_to_jobs(database_url: str, seed_tables: dict[str, int]) -> None:
    async def scenario(repos: Repositories) -> None:
        await repos.companies.remove("c1")
        await repos.jobs.get(seed_tables["Job1"])

    with pytest.raises(RepositoryNotFoundError, match="No job"):
        _run(database_url, scenario)
