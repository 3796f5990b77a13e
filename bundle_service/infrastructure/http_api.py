"""FastAPI adapter exposing upload, retrieval and health endpoints."""

import contextlib
import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..application.domain import HealthScope
from ..application.exceptions import BundleServiceError
from ..application.health import HealthProbe
from ..application.service import IngestionService

from .api_models import ErrorResponse, FileListResponse, UploadResponse
from .multipart import MultipartReader, boundary_of

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    "bad_request": 400,
    "not_found": 404,
    "payload_too_large": 413,
    "unsupported_media": 415,
    "internal": 500,
}

_DEFAULT_CHUNK_SIZE = 64 * 1024

router = APIRouter()


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.container.ingestion_service()


def get_health_probe(request: Request) -> HealthProbe:
    return request.app.state.container.health_probe()


@router.post("/upload", response_model=UploadResponse)
async def upload(
    request: Request,
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Stores the first part of a multipart request, read straight off the body.

    Later parts are never read. The body is pulled only as the upload is
    validated, so a rejected upload stops the transfer.
    """
    chunk_size = getattr(request.app.state, "chunk_size", _DEFAULT_CHUNK_SIZE)
    boundary = boundary_of(request.headers.get("content-type"))
    async with contextlib.aclosing(request.stream()) as body:
        part = None
        if boundary is not None:
            part = await MultipartReader(body, boundary, chunk_size).first_part()
        receipt = await service.upload(part)
    return UploadResponse(file_name=receipt.filename, size=receipt.size)


@router.get("/files/{name}", response_model=FileListResponse)
async def retrieve(
    name: str,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Lists the extracted contents of a bundle, extracting it if needed."""
    result = await service.retrieve(name)
    return FileListResponse(bundle=name, files=list(result.paths))


async def _health(probe: HealthProbe, scope: HealthScope) -> PlainTextResponse:
    status = await probe.check(scope)
    return PlainTextResponse(status.message, status_code=status.status_code)


@router.get("/health")
async def health(probe: HealthProbe = Depends(get_health_probe)):
    return await _health(probe, HealthScope.ALL)


@router.get("/health/s3")
async def health_s3(probe: HealthProbe = Depends(get_health_probe)):
    return await _health(probe, HealthScope.OBJECT_STORE)


@router.get("/health/postgres")
async def health_postgres(probe: HealthProbe = Depends(get_health_probe)):
    return await _health(probe, HealthScope.RELATIONAL_STORE)


@router.get("/health/redis")
async def health_redis(probe: HealthProbe = Depends(get_health_probe)):
    return await _health(probe, HealthScope.KEY_VALUE_STORE)


async def handle_service_error(request: Request, exc: BundleServiceError) -> JSONResponse:
    status_code = _STATUS_CODES.get(exc.status_category, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    body = ErrorResponse(error=exc.message)
    return JSONResponse(body.model_dump(), status_code=status_code)


def create_app(container, chunk_size: int = _DEFAULT_CHUNK_SIZE) -> FastAPI:
    """
    Builds the FastAPI application around a wired container.

    Shared clients owned by the container are closed on shutdown.
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await container.key_value_cache().close()
        await container.relational_probe().close()

    app = FastAPI(title="Bundle Service", lifespan=lifespan)
    app.state.container = container
    app.state.chunk_size = chunk_size
    app.include_router(router)
    app.add_exception_handler(BundleServiceError, handle_service_error)
    return app
