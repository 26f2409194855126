from fastapi import APIRouter, Depends, HTTPException, status

from jobly.api.params import query_filters
from jobly.core.security import get_admin_principal
from jobly.schemas.jobs import (
    JobCreateRequest,
    JobDetailEnvelope,
    JobDetailOut,
    JobEnvelope,
    JobListEnvelope,
    JobListItemOut,
    JobOut,
    JobSearchFilters,
    JobUpdateRequest,
)
from jobly.services.jobs import get_job_repository
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post(
    "",
    response_model=JobEnvelope,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_job(
    payload: JobCreateRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_job_repository),
) -> JobEnvelope:
    try:
        row = await repository.create(
            title=payload.title,
            salary=payload.salary,
            equity=payload.equity,
            company_handle=payload.company_handle,
            technologies=payload.technologies,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.get("", response_model=JobListEnvelope, response_model_exclude_unset=True)
async def list_jobs(
    filters: JobSearchFilters = Depends(query_filters(JobSearchFilters)),
    repository=Depends(get_job_repository),
) -> JobListEnvelope:
    try:
        rows = await repository.find_all(filters.model_dump(by_alias=True, exclude_none=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return JobListEnvelope(jobs=[JobListItemOut(**row) for row in rows])


@router.get("/{job_id}", response_model=JobDetailEnvelope, response_model_exclude_unset=True)
async def get_job(job_id: int, repository=Depends(get_job_repository)) -> JobDetailEnvelope:
    try:
        row = await repository.get(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobDetailEnvelope(job=JobDetailOut(**row))


@router.patch("/{job_id}", response_model=JobEnvelope, response_model_exclude_unset=True)
async def patch_job(
    job_id: int,
    payload: JobUpdateRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_job_repository),
) -> JobEnvelope:
    try:
        row = await repository.update(job_id, payload.model_dump(by_alias=True, exclude_unset=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.delete("/{job_id}")
async def delete_job(
    job_id: int,
    principal=Depends(get_admin_principal),
    repository=Depends(get_job_repository),
) -> dict[str, int]:
    try:
        await repository.remove(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"deleted": job_id}
