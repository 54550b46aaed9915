from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import RecordNotFoundError, RecordValidationError, StoreUnavailableError
from .logging_setup import get_logger
from .repositories import DocumentStore, build_document_store
from .routers import transactions as transactions_router
from .routers import users as users_router
from .settings import Settings, get_settings
from .utils import available_routes, error_envelope

API_VERSION = "1.0.0"

log = get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "API description and document store status."},
    {"name": "transactions", "description": "CRUD operations for financial transactions."},
    {"name": "users", "description": "CRUD operations for users."},
]


def _describe_validation_error(err: Dict[str, Any]) -> str:
    if err.get("type") == "json_invalid":
        return "Request body is not valid JSON"
    loc = [str(part) for part in err.get("loc", ()) if part != "body"]
    where = ".".join(loc) or "body"
    return f"{where}: {err.get('msg', 'invalid value')}"


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RecordValidationError)
    async def record_validation_handler(request: Request, exc: RecordValidationError) -> JSONResponse:
        """
        Field-level failures from the record validators.

        Response format:
            {"success": false, "message": "Validation failed", "errors": ["...", ...]}
        """
        return JSONResponse(status_code=400, content=error_envelope("Validation failed", errors=exc.messages))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed requests (e.g. unparsable JSON) share the validation envelope."""
        errors = [_describe_validation_error(err) for err in exc.errors()]
        return JSONResponse(status_code=400, content=error_envelope("Validation failed", errors=errors))

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=error_envelope(str(exc)))

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        log.error("document_store_error method=%s path=%s error=%s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=error_envelope("Database error", error=str(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and unsupported methods on known paths are both "no such route"
        if exc.status_code in (404, 405):
            body = error_envelope("Route not found")
            body["availableRoutes"] = available_routes(request.app)
            return JSONResponse(status_code=404, content=body)
        return JSONResponse(status_code=exc.status_code, content=error_envelope(str(exc.detail)))


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Loaded from the environment when omitted.
        store: Document store to serve from; built from settings when omitted.
            It is connected during startup according to settings.startup_policy:
            'fatal' aborts startup when the store is unreachable, 'degraded'
            logs the failure and keeps serving.
    """
    settings = settings or get_settings()
    document_store = store or build_document_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            document_store.connect()
        except StoreUnavailableError as exc:
            if settings.fail_fast:
                log.critical("document_store_connect_failed policy=fatal error=%s", exc)
                raise
            log.error("document_store_connect_failed policy=degraded error=%s", exc)
        try:
            yield
        finally:
            document_store.close()

    app = FastAPI(
        title="Transactions Backend",
        description="CRUD API for financial transactions and users backed by a document store.",
        version=API_VERSION,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = document_store

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Outermost: every OPTIONS request ends in 200. Allowed preflights keep the CORS headers;
    # disallowed origins and plain OPTIONS get an empty 200 without them
    @app.middleware("http")
    async def answer_options(request: Request, call_next):
        response = await call_next(request)
        if request.method == "OPTIONS" and response.status_code != 200:
            return Response(status_code=200)
        return response

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="API Description", tags=["health"])
    def describe_api(request: Request) -> Dict[str, Any]:
        """
        Describe the API and report live document store connectivity.

        Returns:
            A JSON object with the routes and a database status of
            "connected" or "disconnected".
        """
        current = request.app.state.store
        return {
            "success": True,
            "message": "Transactions API is running",
            "version": API_VERSION,
            "backend": current.backend,
            "database": "connected" if current.ping() else "disconnected",
            "endpoints": available_routes(request.app),
        }

    app.include_router(transactions_router.router)
    app.include_router(users_router.router)
    return app


app = create_app()
