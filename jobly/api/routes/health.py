from fastapi import APIRouter, Depends, HTTPException, status

from jobly.services.repository import Database, RepositoryUnavailableError, get_database

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(database: Database = Depends(get_database)) -> dict[str, str]:
    """Report whether the connection pool can reach Postgres."""
    try:
        pool = await database.get_pool()
        await pool.fetchval("select 1")
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ready"}
