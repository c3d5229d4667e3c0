from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from utils.prometheus import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from routers import crm_webhooks, drive_files, health, upload_jobs
from services.scheduler_service import scheduler_service
from contextlib import asynccontextmanager
import logging
from config import config, normalize_cors_origins

# Configure Logging
import logging_config # This initializes logging

logger = logging.getLogger("crm_drive.main")

# Tables are created by init_db.py

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up application...")

    if config.SCHEDULER_ENABLED:
        scheduler_service.start()
    else:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")

    yield

    logger.info("Shutting down application...")
    if config.SCHEDULER_ENABLED:
        scheduler_service.shutdown()

app = FastAPI(title="CRM Drive Bridge", lifespan=lifespan)

origins = normalize_cors_origins(config.CORS_ORIGINS)
logger.info(f"CORS allowed origins: {origins}")

cors_params = {
    "allow_origins": origins,
    "allow_credentials": True,
    "allow_methods": ["*"],
    "allow_headers": ["*"],
}

if config.CORS_ORIGIN_REGEX:
    cors_params["allow_origin_regex"] = config.CORS_ORIGIN_REGEX
    logger.info(f"CORS origin regex enabled: {config.CORS_ORIGIN_REGEX}")

app.add_middleware(
    CORSMiddleware,
    **cors_params,
)


HTTP_STATUS_CODE_MAP = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    429: "too_many_requests",
}


def _http_exception_to_api_error(exc: HTTPException) -> dict:
    detail = exc.detail
    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict) and "message" in detail:
        message = str(detail["message"])
    else:
        message = str(detail) if detail else "Request error"

    payload = {
        "error": message,
        "code": HTTP_STATUS_CODE_MAP.get(exc.status_code, "http_error"),
        "message": message,
    }

    if not isinstance(detail, str):
        payload["details"] = detail

    return payload


@app.middleware("http")
async def ensure_api_json_error_response(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        if request.url.path.startswith("/api"):
            logger.error("Unhandled exception for API request", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "An unexpected error occurred",
                    "code": "internal_server_error",
                    "message": "An unexpected error occurred",
                },
            )
        raise


@app.exception_handler(HTTPException)
async def http_exception_handler_for_api(request: Request, exc: HTTPException):
    """Normalize HTTPException responses for /api routes while preserving defaults elsewhere."""
    if request.url.path.startswith("/api"):
        return JSONResponse(status_code=exc.status_code, content=_http_exception_to_api_error(exc))

    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Normalize validation errors for API routes while preserving default behavior elsewhere."""
    if request.url.path.startswith("/api"):
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation error",
                "code": "validation_error",
                "message": "Validation error",
                "details": exc.errors(),
            },
        )

    return await request_validation_exception_handler(request, exc)

app.include_router(crm_webhooks.router)
app.include_router(drive_files.router)
app.include_router(upload_jobs.router)
app.include_router(health.router)


@app.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics collected by the application."""
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)

@app.get("/")
def read_root():
    return {"message": "CRM Drive Bridge"}
