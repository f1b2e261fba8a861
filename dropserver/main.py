"""Entry point for the drop server."""

import time
import uuid
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from dropserver.auth import AccessGate, generate_api_key
from dropserver.blob_storage import BlobStorage
from dropserver.config import DropServerConfig
from dropserver.exceptions import (
    DropServerError,
    UnauthorizedError,
    ArchiveNotFoundError,
    BadRequestError,
    StorageFailureError
)
from dropserver.routes.archive_routes import router as archive_router
from dropserver.schemas.common import ErrorResponse
from dropserver.services.transfer_service import build_transfer_service
from dropserver.sweeper import ExpirySweeper

logger = setup_logging('dropserver')


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(detail=detail, code=code).model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    """
    Translate drop server exceptions into HTTP responses.
    """

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Unauthorized request [request_id={request_id}] path={request.url.path}")
        return _error_response(status.HTTP_401_UNAUTHORIZED, "Unauthorized", "UNAUTHORIZED")

    @app.exception_handler(ArchiveNotFoundError)
    async def archive_not_found_handler(request: Request, exc: ArchiveNotFoundError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Archive not found: {exc} [request_id={request_id}] path={request.url.path}")
        return _error_response(status.HTTP_404_NOT_FOUND, "Not found", "ARCHIVE_NOT_FOUND")

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Bad request: {exc} [request_id={request_id}] path={request.url.path}")
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "BAD_REQUEST")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Request validation failed [request_id={request_id}] path={request.url.path}")
        return _error_response(status.HTTP_400_BAD_REQUEST, "Bad Request", "BAD_REQUEST")

    @app.exception_handler(StorageFailureError)
    async def storage_failure_handler(request: Request, exc: StorageFailureError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Storage failure: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=exc
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "STORAGE_FAILURE"
        )

    @app.exception_handler(DropServerError)
    async def drop_server_error_handler(request: Request, exc: DropServerError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Drop server error: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=exc
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "INTERNAL_ERROR"
        )


def create_app(
    config: Optional[DropServerConfig] = None,
    access_gate: Optional[AccessGate] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Build the FastAPI application with its storage, registry and access gate.

    Args:
        config: Server settings (default: read from the environment)
        access_gate: Gate to authorize callers (default: built from config.api_keys)
        clock: Returns the current Unix time in seconds

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = DropServerConfig.from_env()

    if access_gate is None:
        api_keys = dict(config.api_keys)
        if not api_keys:
            api_keys = {"default": generate_api_key()}
            logger.warning(f"No DROP_API_KEYS configured; generated access key for this run: {api_keys['default']}")
        access_gate = AccessGate.from_keys(api_keys)

    storage = BlobStorage(config.save_dir)
    transfer_service = build_transfer_service(
        storage,
        retention_seconds=config.retention_seconds,
        clock=clock
    )
    sweeper = ExpirySweeper(transfer_service.registry, interval_seconds=config.sweep_interval_seconds)

    app = FastAPI(
        title="FileDrop Server",
        description="Ephemeral file drop with expiring download keys",
        version="1.0.0"
    )
    app.state.config = config
    app.state.access_gate = access_gate
    app.state.storage = storage
    app.state.transfer_service = transfer_service
    app.state.sweeper = sweeper

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

        response = await call_next(request)

        duration = time.time() - start_time
        user_id = getattr(request.state, 'user_id', None)

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s "
            f"[request_id={request_id}] [user_id={user_id or 'anonymous'}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.on_event("startup")
    async def startup_event():
        """
        Prepare blob storage and start the expiry sweeper.
        """
        logger.info(f"Drop server starting up [save_dir={config.save_dir}]")

        storage.ensure_root()
        if config.reclaim_orphans:
            storage.reclaim_orphans(transfer_service.registry.keys())

        if config.sweep_interval_seconds > 0:
            await sweeper.start()
        else:
            logger.info("Expiry sweeper disabled; relying on lazy expiration")

    @app.on_event("shutdown")
    async def shutdown_event():
        """
        Stop background tasks on application shutdown.
        """
        logger.info("Drop server shutting down...")
        await sweeper.stop()

    register_exception_handlers(app)
    app.include_router(archive_router)

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint. Returns 200 if the service is alive.
        """
        return {"status": "healthy", "service": "dropserver", "archives": len(transfer_service.registry)}

    return app


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    config = DropServerConfig.from_env()
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
