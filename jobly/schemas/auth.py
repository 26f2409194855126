from pydantic import Field

from jobly.schemas.base import RequestModel, ResponseModel


class TokenRequest(RequestModel):
    username: str = Field(min_length=1, max_length=25)
    password: str = Field(min_length=1, max_length=20)


class TokenOut(ResponseModel):
    token: str
