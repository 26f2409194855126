from typing import ClassVar

from pydantic import Field

from jobly.schemas.base import PartialUpdateRequest, RequestModel, ResponseModel

HANDLE_PATTERN = r"^[a-z0-9_-]+$"


class CompanyCreateRequest(RequestModel):
    handle: str = Field(min_length=1, max_length=25, pattern=HANDLE_PATTERN)
    name: str = Field(min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = None


class CompanyUpdateRequest(PartialUpdateRequest):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description", "num_employees", "logo_url"})

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = None


class CompanySearchFilters(RequestModel):
    name_like: str | None = Field(default=None, min_length=1)
    min_employees: int | None = Field(default=None, ge=0)
    max_employees: int | None = Field(default=None, ge=0)


class CompanyJobOut(ResponseModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None


class CompanyOut(ResponseModel):
    handle: str
    name: str
    description: str | None = None
    num_employees: int | None = None
    logo_url: str | None = None
    jobs: list[CompanyJobOut] | None = None


class CompanyEnvelope(ResponseModel):
    company: CompanyOut


class CompanyListEnvelope(ResponseModel):
    companies: list[CompanyOut]
