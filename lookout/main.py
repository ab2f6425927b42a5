import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from lookout import __version__
from lookout.domains.audit_trail import api as audit_trail
from lookout.domains.audit_trail.registration import register_audit_trail_handlers
from lookout.domains.file_lifecycle import api as file_lifecycle
from lookout.domains.file_lifecycle.registration import register_file_lifecycle_handlers
from lookout.domains.status_records import api as status_records
from lookout.domains.status_records.registration import register_status_records_handlers
from lookout.domains.file_lifecycle.queries import CheckWriteAccessQuery

from .dependencies import (
    get_settings,
    get_database,
    get_path_resolver,
    get_command_bus,
    get_query_bus,
)
from .logging_config import setup_logging


def register_all_handlers() -> None:
    """Wire every domain's commands and queries onto the buses (once per bus pair)."""
    query_bus = get_query_bus()
    command_bus = get_command_bus()
    if query_bus.is_registered(CheckWriteAccessQuery):
        return

    register_file_lifecycle_handlers(query_bus, command_bus)
    register_status_records_handlers(query_bus, command_bus)
    register_audit_trail_handlers(query_bus, command_bus)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    settings = get_settings()
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Configuration loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")
    if len(config_info["all_available_configs"]) > 1:
        logging.info(
            f"Available config files: {', '.join(config_info['all_available_configs'])}"
        )

    logging.info("Publish Lookout starting up...")
    logging.info(f"{settings.import_label} directory: {settings.import_directory or '(not configured)'}")
    logging.info(f"{settings.failed_label} directory: {settings.failed_directory or '(not configured)'}")

    database = get_database()
    database.connect()

    register_all_handlers()

    # Probe files left behind by an interrupted write check
    try:
        cleaned_count = await get_path_resolver().cleanup_probe_files()
        if cleaned_count > 0:
            logging.info(f"Startup cleanup: removed {cleaned_count} old probe files")
    except Exception as e:
        logging.warning(f"Startup cleanup failed (non-critical): {e}")

    yield

    # Shutdown
    logging.info("Publish Lookout shutting down...")
    database.close()


app = FastAPI(
    title="Publish Lookout",
    description="Tracks files through a publishing pipeline's import and failed folders",
    version=__version__,
    lifespan=lifespan,
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logging.info(
        f"Incoming request: {request.method} {request.url.path}",
        extra={
            "operation": "http_request",
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        },
    )

    response = await call_next(request)

    logging.info(
        f"Response: {response.status_code}",
        extra={
            "operation": "http_response",
            "status_code": response.status_code,
            "path": request.url.path,
        },
    )

    return response


app.include_router(file_lifecycle.files_router)
app.include_router(status_records.statuses_router)
app.include_router(audit_trail.audit_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Publish Lookout is running"}


@app.get("/health")
async def health():
    """Detailed health check."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "publish-lookout",
        "import_configured": bool(settings.import_directory.strip()),
        "failed_configured": bool(settings.failed_directory.strip()),
    }


def run() -> None:
    uvicorn.run(
        "lookout.main:app", host="0.0.0.0", port=8000, reload=False, log_level="info"
    )


if __name__ == "__main__":
    run()
