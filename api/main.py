"""
FastAPI Backend for the Contract Archive.

This module provides the REST API layer of the archive:
- Whole-collection list/replace for the allow-listed collections
- Backup export and transactional restore
- Public verification certificates and their QR redirect
- Health, storage and status-history endpoints for the status page

Architecture:
    Client -> FastAPI -> CollectionStore (SQLite)
                      -> StatusMetricsRecorder <- StatusSampler (background task)
"""

import time
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import msgspec
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from archive.config import ArchiveSettings
from archive.error_handling import (
    ArchiveError,
    PayloadError,
    PayloadTooLargeError,
    StoreError,
)
from archive.logging_config import get_table_logger, setup_logging
from archive.observability import StatusMetricsRecorder, StatusSampler
from archive.verification import (
    VerificationDefaults,
    build_qr_url,
    render_certificate,
    render_not_found,
)
from api.security import get_security_headers, validate_environment_security
from storage import BackupService, CollectionStore, ensure_table


# Marks a request body that is not valid JSON
MALFORMED = object()


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Liveness plus database connectivity."""

    ok: bool


class DbMetricsResponse(BaseModel):
    """Storage usage against the configured ceiling."""

    model_config = ConfigDict(populate_by_name=True)

    connected: bool
    size_bytes: int = Field(alias="sizeBytes")
    max_bytes: int = Field(alias="maxBytes")


class SaveResponse(BaseModel):
    """Result of a whole-collection replace."""

    ok: bool
    count: int


class RestoreResponse(BaseModel):
    """Collections replaced by a restore."""

    ok: bool
    restored: List[str]


# =============================================================================
# Dependencies
# =============================================================================


def get_settings(request: Request) -> ArchiveSettings:
    return request.app.state.settings


def get_store(request: Request) -> CollectionStore:
    return request.app.state.store


def get_backups(request: Request) -> BackupService:
    return request.app.state.backups


def get_metrics(request: Request) -> StatusMetricsRecorder:
    return request.app.state.metrics


def verification_defaults(settings: ArchiveSettings) -> VerificationDefaults:
    return VerificationDefaults(
        license_number=settings.default_license_number,
        office_title=settings.default_office_title,
        responsible_editor=settings.default_responsible_editor,
    )


async def read_json_body(request: Request, settings: ArchiveSettings) -> Any:
    """Decode a JSON request body.

    Returns:
        The decoded value, None for an empty body, or MALFORMED

    Raises:
        PayloadTooLargeError: If the body exceeds MAX_PAYLOAD_MB
    """
    body = await request.body()
    if len(body) > settings.max_payload_bytes:
        raise PayloadTooLargeError(
            f"Payload too large. Maximum size: {settings.max_payload_mb}MB"
        )
    if not body:
        return None
    try:
        return msgspec.json.decode(body)
    except msgspec.DecodeError:
        return MALFORMED


# =============================================================================
# API Endpoints
# =============================================================================

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
async def health_check(store: CollectionStore = Depends(get_store)):
    """Liveness plus a trivial database query."""
    try:
        store.ping()
    except StoreError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
    return HealthResponse(ok=True)


@router.get("/db-metrics", response_model=DbMetricsResponse)
async def db_metrics(
    store: CollectionStore = Depends(get_store),
    settings: ArchiveSettings = Depends(get_settings),
):
    """Current database size against the configured capacity."""
    try:
        size_bytes = store.size_bytes()
    except StoreError as e:
        logger.error(f"DB metrics failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "connected": False,
                "sizeBytes": 0,
                "maxBytes": settings.db_max_bytes,
                "error": str(e),
            },
        )
    return DbMetricsResponse(
        connected=True, size_bytes=size_bytes, max_bytes=settings.db_max_bytes
    )


@router.get("/status-metrics")
async def status_metrics(metrics: StatusMetricsRecorder = Depends(get_metrics)):
    """Ring-buffer history for the status page charts."""
    return metrics.snapshot()


@router.get("/backup")
async def backup(backups: BackupService = Depends(get_backups)):
    """Export every collection."""
    return backups.export()


@router.post("/restore", response_model=RestoreResponse)
async def restore(
    request: Request,
    backups: BackupService = Depends(get_backups),
    settings: ArchiveSettings = Depends(get_settings),
):
    """Replace the collections present in the payload, all or nothing."""
    payload = await read_json_body(request, settings)
    if payload is MALFORMED:
        raise PayloadError("Restore payload is not valid JSON")

    restored = backups.restore(payload)
    return RestoreResponse(ok=True, restored=restored)


@router.get("/contracts/{contract_id}")
async def get_contract(contract_id: int, store: CollectionStore = Depends(get_store)):
    """Fetch one contract document."""
    return store.get_contract(contract_id)


@router.get("/verify/{contract_id}", name="verify_contract", response_class=HTMLResponse)
async def verify_contract(
    contract_id: str,
    store: CollectionStore = Depends(get_store),
    settings: ArchiveSettings = Depends(get_settings),
):
    """Public verification certificate (no authentication)."""
    defaults = verification_defaults(settings)
    try:
        settings_doc = store.first_document("system_settings")
        try:
            contract = store.get_document("contracts", int(contract_id))
        except ValueError:
            contract = None
    except StoreError as e:
        logger.error(f"Verification failed for {contract_id}: {e}")
        return HTMLResponse("<h1>خطأ داخلي</h1>", status_code=500)

    if contract is None:
        logger.info(f"Verification requested for unknown contract {contract_id}")
        return HTMLResponse(render_not_found(contract_id, settings_doc, defaults), status_code=404)

    return HTMLResponse(render_certificate(contract, settings_doc, defaults))


@router.get("/verify-qr/{contract_id}")
async def verify_qr(
    contract_id: int,
    request: Request,
    settings: ArchiveSettings = Depends(get_settings),
):
    """Redirect to a QR image of the verification URL.

    The image itself comes from a third-party service; there is no local
    fallback when it is unreachable.
    """
    if settings.public_base_url:
        verify_url = f"{settings.public_base_url.rstrip('/')}/api/verify/{contract_id}"
    else:
        verify_url = str(request.url_for("verify_contract", contract_id=str(contract_id)))

    return RedirectResponse(
        build_qr_url(verify_url, settings.qr_service_url, settings.qr_size),
        status_code=302,
    )


@router.get("/{table}")
async def list_collection(table: str, store: CollectionStore = Depends(get_store)):
    """Every document of a collection."""
    return store.list_documents(table)


@router.post("/{table}", response_model=SaveResponse)
async def replace_collection(
    table: str,
    request: Request,
    store: CollectionStore = Depends(get_store),
    settings: ArchiveSettings = Depends(get_settings),
):
    """Replace a whole collection with the posted array.

    A body that is not a JSON array is stored as an empty collection unless
    REJECT_NON_ARRAY_PAYLOADS is enabled, in which case it is a 400.
    """
    ensure_table(table)
    payload = await read_json_body(request, settings)

    if isinstance(payload, list):
        items = payload
    elif settings.reject_non_array_payloads:
        raise PayloadError("Collection payload must be a JSON array")
    else:
        get_table_logger(table).warning(
            "Non-array payload received, collection will be emptied"
        )
        items = []

    count = store.replace_collection(table, items)
    return SaveResponse(ok=True, count=count)


# =============================================================================
# Application Factory
# =============================================================================


async def archive_error_handler(request: Request, exc: ArchiveError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def create_app(
    settings: Optional[ArchiveSettings] = None,
    configure_logging: bool = False
) -> FastAPI:
    """Build the archive API.

    Args:
        settings: Archive settings (defaults to the environment)
        configure_logging: Whether to install the loguru sinks

    Returns:
        Configured FastAPI application
    """
    settings = settings or ArchiveSettings.from_env()

    if configure_logging:
        setup_logging(
            log_dir=settings.log_dir,
            level=settings.log_level,
            to_files=settings.log_to_files,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Contract Archive API")

        security_validation = validate_environment_security(settings)
        if not security_validation["valid"]:
            for error in security_validation["errors"]:
                logger.error(f"Configuration error: {error}")
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {error}" for error in security_validation["errors"])
            )
        for warning in security_validation["warnings"]:
            logger.warning(f"Security warning: {warning}")

        # Process-local: history starts empty on every restart
        metrics = StatusMetricsRecorder(
            segments=settings.status_segments,
            segment_seconds=settings.status_segment_seconds,
        )
        app.state.metrics = metrics

        store = CollectionStore(settings.db_path)
        app.state.store = store
        app.state.backups = BackupService(store)

        sampler = StatusSampler(metrics, store)
        app.state.sampler = sampler
        if settings.status_sampler_enabled:
            sampler.start()

        logger.info("API startup complete")
        yield

        await sampler.stop()
        logger.info("Contract Archive API stopped")

    app = FastAPI(
        title="Contract Archive",
        description="Contract archiving service with public QR verification",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_api_metrics(request: Request, call_next):
        """Stamp the current segment with API availability and latency."""
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is None:
            return await call_next(request)

        index = metrics.current_index()
        start = time.perf_counter()
        try:
            return await call_next(request)
        finally:
            metrics.record_api(index, int((time.perf_counter() - start) * 1000))

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Inject security headers into all responses."""
        response = await call_next(request)
        for header, value in get_security_headers(request.url.path).items():
            response.headers[header] = value
        return response

    app.add_exception_handler(ArchiveError, archive_error_handler)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Contract Archive API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "collections": "/api/{table}",
                "backup": "/api/backup",
                "restore": "/api/restore",
                "verify": "/api/verify/{id}",
            },
        }

    app.include_router(router)
    return app


def create_app_from_env() -> FastAPI:
    """uvicorn factory: settings from the environment, full logging."""
    return create_app(configure_logging=True)
