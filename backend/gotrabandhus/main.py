import logging
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from gotrabandhus.api.routes import auth, user
from gotrabandhus.core.config import Settings, get_settings
from gotrabandhus.core.errors import ApiError, ErrorCode, StorageError
from gotrabandhus.core.scheduler import StorageSupervisor
from gotrabandhus.core.security import CredentialService, TokenService
from gotrabandhus.services.auth_service import AuthService
from gotrabandhus.storage.base import UserStore
from gotrabandhus.storage.factory import create_user_store

logger = logging.getLogger(__name__)


def _field_errors(exc: RequestValidationError) -> list[dict]:
    """Flatten pydantic errors into {field, message} pairs for the client"""
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_content(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation error", "code": ErrorCode.VALIDATION.value, "details": _field_errors(exc)},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        # Cause is logged only; clients get a generic message
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc} ({exc.__cause__!r})")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None, store: Optional[UserStore] = None) -> FastAPI:
    """
    Build the application from an explicit settings object.

    The token service, credential service and user store are created here
    and shared through app.state, so tests can pass their own settings and
    an isolated store.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if settings.uses_fallback_secret():
        logger.warning(
            "JWT_SECRET is not set; signing tokens with the development fallback secret. "
            "Tokens issued by this process can be forged.")

    store = store or create_user_store(settings)
    supervisor = StorageSupervisor(
        store,
        interval_seconds=settings.STORAGE_MONITOR_INTERVAL_SECONDS,
        max_interval_seconds=settings.STORAGE_MONITOR_MAX_INTERVAL_SECONDS,
    )
    # A store that is down at startup does not stop the app; the supervisor
    # creates the schema once the store comes back
    try:
        store.create_schema()
    except StorageError as e:
        logger.error(f"Storage unavailable at startup: {e.__cause__ or e}")
        supervisor.mark_unavailable()

    token_service = TokenService.from_settings(settings)
    credential_service = CredentialService(rounds=settings.PASSWORD_HASH_ROUNDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage app lifecycle events.

        Startup: start the storage health check
        Shutdown: stop it
        """
        if settings.STORAGE_MONITOR_ENABLED:
            supervisor.start()
        yield
        supervisor.stop()

    app = FastAPI(
        title="GotraBandhus API",
        description="Family networking: accounts, profiles and access gating",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.store = store
    app.state.token_service = token_service
    app.state.auth_service = AuthService(store, credential_service, token_service)
    app.state.storage_supervisor = supervisor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info(f"{request.method} {request.url.path} {response.status_code} in {duration_ms}ms")
        return response

    register_exception_handlers(app)

    # All API routes are prefixed with /api
    app.include_router(auth.router, prefix="/api")
    app.include_router(user.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint - API information"""
        return {"message": "GotraBandhus API", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        """Health check endpoint - reports the last storage check result"""
        return {
            "status": "healthy" if supervisor.available else "degraded",
            "storage": {"backend": store.name, "available": supervisor.available},
        }

    return app
