from pydantic import Field

from jobly.core.applications import ApplicationState
from jobly.schemas.base import PartialUpdateRequest, RequestModel, ResponseModel


class UserRegisterRequest(RequestModel):
    username: str = Field(min_length=1, max_length=25)
    password: str = Field(min_length=5, max_length=20)
    first_name: str = Field(min_length=1, max_length=25)
    last_name: str = Field(min_length=1, max_length=25)
    email: str = Field(min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    technologies: list[str] = Field(default_factory=list)


class UserCreateRequest(RequestModel):
    """Admin provisioning; the password is generated server side."""

    username: str = Field(min_length=1, max_length=25)
    first_name: str = Field(min_length=1, max_length=25)
    last_name: str = Field(min_length=1, max_length=25)
    email: str = Field(min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    is_admin: bool = False
    technologies: list[str] = Field(default_factory=list)


class UserUpdateRequest(PartialUpdateRequest):
    first_name: str | None = Field(default=None, min_length=1, max_length=25)
    last_name: str | None = Field(default=None, min_length=1, max_length=25)
    password: str | None = Field(default=None, min_length=5, max_length=20)
    email: str | None = Field(default=None, min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    is_admin: bool | None = None


class ApplicationCreateRequest(RequestModel):
    state: ApplicationState | None = None


class ApplicationUpdateRequest(RequestModel):
    state: ApplicationState


class UserOut(ResponseModel):
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False
    technologies: list[str] | None = None
    applications: list[int] | None = None


class UserEnvelope(ResponseModel):
    user: UserOut


class UserListEnvelope(ResponseModel):
    users: list[UserOut]


class UserTokenEnvelope(ResponseModel):
    user: UserOut
    token: str
