from collections.abc import Callable
from typing import TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def query_filters(model: type[ModelT]) -> Callable[[Request], ModelT]:
    """Validate the whole query string against ``model`` so unknown filters are rejected."""

    def dependency(request: Request) -> ModelT:
        try:
            return model.model_validate(dict(request.query_params))
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False)) from exc

    return dependency
