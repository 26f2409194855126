from typing import ClassVar

from pydantic import Field

from jobly.schemas.base import PartialUpdateRequest, RequestModel, ResponseModel
from jobly.schemas.companies import CompanyOut

EQUITY_PATTERN = r"^(0(\.\d+)?|1(\.0+)?)$"


class JobCreateRequest(RequestModel):
    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: str | None = Field(default=None, pattern=EQUITY_PATTERN)
    company_handle: str = Field(min_length=1, max_length=25)
    technologies: list[str] = Field(default_factory=list)


class JobUpdateRequest(PartialUpdateRequest):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"salary", "equity"})

    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: str | None = Field(default=None, pattern=EQUITY_PATTERN)


class JobSearchFilters(RequestModel):
    title: str | None = Field(default=None, min_length=1)
    min_salary: int | None = Field(default=None, ge=0)
    has_equity: bool | None = None


class JobOut(ResponseModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None
    company_handle: str
    technologies: list[str] | None = None


class JobListItemOut(ResponseModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None
    company_handle: str
    company_name: str | None = None


class JobDetailOut(ResponseModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None
    company: CompanyOut | None = None
    technologies: list[str] | None = None


class JobEnvelope(ResponseModel):
    job: JobOut


class JobDetailEnvelope(ResponseModel):
    job: JobDetailOut


class JobListEnvelope(ResponseModel):
    jobs: list[JobListItemOut]
