import logging

from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import Principal
from jobly.core.config import Settings, get_settings
from jobly.core.credentials import generate_password
from jobly.core.security import create_token, get_admin_or_user_principal, get_admin_principal
from jobly.schemas.users import (
    ApplicationCreateRequest,
    ApplicationUpdateRequest,
    UserCreateRequest,
    UserEnvelope,
    UserListEnvelope,
    UserOut,
    UserTokenEnvelope,
    UserUpdateRequest,
)
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)
from jobly.services.users import get_user_repository

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=UserTokenEnvelope,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    payload: UserCreateRequest,
    principal=Depends(get_admin_principal),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_user_repository),
) -> UserTokenEnvelope:
    # The new user replaces this one-time password through PATCH /users/{username}.
    password = generate_password(settings.generated_password_length)
    try:
        row = await repository.register(
            username=payload.username,
            password=password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            is_admin=payload.is_admin,
            technologies=payload.technologies,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    logger.info("admin provisioned user username=%s by=%s", payload.username, principal.username)
    token = create_token(Principal(username=row["username"], is_admin=row["is_admin"]), settings)
    return UserTokenEnvelope(user=UserOut(**row), token=token)


@router.get("", response_model=UserListEnvelope, response_model_exclude_unset=True)
async def list_users(
    principal=Depends(get_admin_principal),
    repository=Depends(get_user_repository),
) -> UserListEnvelope:
    try:
        rows = await repository.find_all()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return UserListEnvelope(users=[UserOut(**row) for row in rows])


@router.get("/{username}", response_model=UserEnvelope, response_model_exclude_unset=True)
async def get_user(
    username: str,
    principal=Depends(get_admin_or_user_principal),
    repository=Depends(get_user_repository),
) -> UserEnvelope:
    try:
        row = await repository.get(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserEnvelope(user=UserOut(**row))


@router.patch("/{username}", response_model=UserEnvelope, response_model_exclude_unset=True)
async def patch_user(
    username: str,
    payload: UserUpdateRequest,
    principal=Depends(get_admin_or_user_principal),
    repository=Depends(get_user_repository),
) -> UserEnvelope:
    data = payload.model_dump(by_alias=True, exclude_unset=True)
    if "isAdmin" in data:
        try:
            principal.require_admin()
        except PermissionError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    try:
        row = await repository.update(username, data)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserEnvelope(user=UserOut(**row))


@router.delete("/{username}")
async def delete_user(
    username: str,
    principal=Depends(get_admin_or_user_principal),
    repository=Depends(get_user_repository),
) -> dict[str, str]:
    try:
        await repository.remove(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"deleted": username}


@router.post("/{username}/jobs/{job_id}")
async def apply_to_job(
    username: str,
    job_id: int,
    payload: ApplicationCreateRequest | None = None,
    principal=Depends(get_admin_or_user_principal),
    repository=Depends(get_user_repository),
) -> dict[str, int]:
    state = payload.state if payload is not None else None
    try:
        application = await repository.apply_to_job(username, job_id, state)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return {application["state"]: application["job_id"]}


@router.patch("/{username}/jobs/{job_id}")
async def patch_application(
    username: str,
    job_id: int,
    payload: ApplicationUpdateRequest,
    principal=Depends(get_admin_or_user_principal),
    repository=Depends(get_user_repository),
) -> dict[str, int]:
    try:
        application = await repository.update_application(
            username,
            job_id,
            payload.model_dump(by_alias=True, exclude_unset=True),
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {application["state"]: application["job_id"]}
