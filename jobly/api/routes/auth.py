from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import Principal
from jobly.core.config import Settings, get_settings
from jobly.core.security import create_token
from jobly.schemas.auth import TokenOut, TokenRequest
from jobly.schemas.users import UserRegisterRequest
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryUnauthorizedError,
    RepositoryUnavailableError,
)
from jobly.services.users import get_user_repository

router = APIRouter()


@router.post("/token", response_model=TokenOut)
async def issue_token(
    payload: TokenRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_user_repository),
) -> TokenOut:
    try:
        user = await repository.authenticate(payload.username, payload.password)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryUnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenOut(token=create_token(Principal(username=user["username"], is_admin=user["is_admin"]), settings))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserRegisterRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_user_repository),
) -> TokenOut:
    try:
        user = await repository.register(
            username=payload.username,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            technologies=payload.technologies,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return TokenOut(token=create_token(Principal(username=user["username"], is_admin=user["is_admin"]), settings))
