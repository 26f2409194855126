from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI
from starlette.requests import Request

from jobly.api.router import api_router
from jobly.core.config import Settings, get_settings
from jobly.core.telemetry import configure_api_logging, setup_api_telemetry, shutdown_api_telemetry
from jobly.services.companies import get_company_repository
from jobly.services.jobs import get_job_repository
from jobly.services.repository import get_database
from jobly.services.users import get_user_repository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        runtime = getattr(app.state, "telemetry", None)
        if runtime is not None:
            shutdown_api_telemetry(app, runtime)
            app.state.telemetry = None
        # Repositories share the cached Database, so drop them together with its pool.
        await get_database().close()
        for factory in (get_database, get_company_repository, get_job_repository, get_user_repository):
            factory.cache_clear()


async def log_requests(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started_at) * 1000.0,
    )
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_api_logging(settings)

    application = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    application.state.telemetry = setup_api_telemetry(application, settings)
    application.middleware("http")(log_requests)
    application.include_router(api_router)
    logger.info("jobly api configured environment=%s", settings.environment)
    return application


app = create_app()
