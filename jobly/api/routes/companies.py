from fastapi import APIRouter, Depends, HTTPException, status

from jobly.api.params import query_filters
from jobly.core.security import get_admin_principal
from jobly.schemas.companies import (
    CompanyCreateRequest,
    CompanyEnvelope,
    CompanyListEnvelope,
    CompanyOut,
    CompanySearchFilters,
    CompanyUpdateRequest,
)
from jobly.services.companies import get_company_repository
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post(
    "",
    response_model=CompanyEnvelope,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_company(
    payload: CompanyCreateRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_company_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.create(
            handle=payload.handle,
            name=payload.name,
            description=payload.description,
            num_employees=payload.num_employees,
            logo_url=payload.logo_url,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.get("", response_model=CompanyListEnvelope, response_model_exclude_unset=True)
async def list_companies(
    filters: CompanySearchFilters = Depends(query_filters(CompanySearchFilters)),
    repository=Depends(get_company_repository),
) -> CompanyListEnvelope:
    try:
        rows = await repository.find_all(filters.model_dump(by_alias=True, exclude_none=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyListEnvelope(companies=[CompanyOut(**row) for row in rows])


@router.get("/{handle}", response_model=CompanyEnvelope, response_model_exclude_unset=True)
async def get_company(handle: str, repository=Depends(get_company_repository)) -> CompanyEnvelope:
    try:
        row = await repository.get(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.patch("/{handle}", response_model=CompanyEnvelope, response_model_exclude_unset=True)
async def patch_company(
    handle: str,
    payload: CompanyUpdateRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_company_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.update(handle, payload.model_dump(by_alias=True, exclude_unset=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.delete("/{handle}")
async def delete_company(
    handle: str,
    principal=Depends(get_admin_principal),
    repository=Depends(get_company_repository),
) -> dict[str, str]:
    try:
        await repository.remove(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"deleted": handle}
