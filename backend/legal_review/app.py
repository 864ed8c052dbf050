"""FastAPI application setup for the legal document review service."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from legal_review.api.dependencies import get_app_settings, get_database, get_scanner, get_vector_store
from legal_review.api.routes_admin import router as admin_router
from legal_review.api.routes_pipeline import router as pipeline_router
from legal_review.api.routes_queue import router as queue_router
from legal_review.api.routes_review import router as review_router
from legal_review.api.routes_train import router as train_router
from legal_review.core.errors import (
    ConfigurationError,
    InvalidTransition,
    LedgerEntryNotFound,
    LegalReviewError,
)
from legal_review.core.logging import configure_logging, get_logger
from legal_review.core.metrics import REQUEST_COUNT, metrics_response
from legal_review.ingest.watcher import InboxWatcher

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Legal Review",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(queue_router, prefix="/queue", tags=["queue"])
app.include_router(pipeline_router, prefix="/pipeline", tags=["pipeline"])
app.include_router(review_router, prefix="", tags=["review"])
app.include_router(train_router, prefix="/train", tags=["train"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])

_STATUS_BY_ERROR: tuple[tuple[type[LegalReviewError], int], ...] = (
    (LedgerEntryNotFound, 404),
    (InvalidTransition, 409),
    (ConfigurationError, 503),
)

_WATCHER: InboxWatcher | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(LegalReviewError)
async def handle_domain_error(request: Request, exc: LegalReviewError) -> JSONResponse:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return _error(status_code, str(exc))
    logger.error("Request %s failed: %s", request.url.path, exc)
    return _error(500, str(exc))


@app.exception_handler(HTTPException)
async def handle_http_error(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(422, "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in exc.errors()))


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return _error(500, str(exc))


@app.middleware("http")
async def count_requests(request: Request, call_next):
    response = await call_next(request)
    # label by route template so entry ids do not explode the series count
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    return response


@app.on_event("startup")
async def startup() -> None:
    """Open the ledger and load the semantic store on startup."""
    global _WATCHER
    settings = get_app_settings()
    get_database()
    get_vector_store()
    if settings.watch_inbox:
        _WATCHER = InboxWatcher(get_scanner(), settings.inbox_dir)
        _WATCHER.start()


@app.on_event("shutdown")
async def shutdown() -> None:
    global _WATCHER
    if _WATCHER is not None:
        _WATCHER.stop()
        _WATCHER = None


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}


@app.get("/metrics", tags=["admin"])
def metrics():
    return metrics_response()
