import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from .config import GrouplockSettings
from .errors import GrouplockError
from .messenger import load_login
from .services import (
    BatchMutationOrchestrator,
    FixedWindowRateLimiter,
    GroupMonitorManager,
    SessionRegistry,
)
from .api import api_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_state(app: FastAPI, settings: GrouplockSettings) -> None:
    """Attach settings and the service components to ``app.state``."""
    registry = SessionRegistry(
        idle_timeout=settings.session_idle_timeout_seconds,
        sweep_interval=settings.session_sweep_interval_seconds,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.orchestrator = BatchMutationOrchestrator(delay_seconds=settings.nickname_delay_seconds)
    app.state.monitors = GroupMonitorManager(
        registry.get,
        interval=settings.monitor_interval_seconds,
        delay_seconds=settings.nickname_delay_seconds,
    )
    app.state.rate_limiter = (
        FixedWindowRateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)
        if settings.rate_limit_enabled else None
    )

    app.state.messenger_login = None
    if settings.messenger_login:
        try:
            app.state.messenger_login = load_login(settings.messenger_login)
            logger.info("Messenger login loaded from %s", settings.messenger_login)
        except Exception as e:
            logger.error("Failed to load messenger login %s: %s", settings.messenger_login, e)
    else:
        logger.warning("MESSENGER_LOGIN not set; POST /api/login will answer 503")


@asynccontextmanager
async def lifespan(app: FastAPI):
    build_state(app, GrouplockSettings())
    app.state.registry.start()

    yield

    # Shutdown
    await app.state.monitors.close()
    await app.state.registry.close()
    logger.info("Session registry closed")


app = FastAPI(
    title="GroupLock Service",
    version="0.1.0",
    description="Session-holding API for batch group renames and nickname locks on a messaging platform",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class BearerTokenMiddleware:
    """Optional bearer token authentication.

    When GROUPLOCK_SERVICE_TOKEN is set, all requests must include
    a matching Authorization: Bearer <token> header.
    When not set, all requests are allowed (local dev mode).

    Passes ``receive`` through untouched, so routes still see
    ``http.disconnect``.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        token = scope["app"].state.settings.grouplock_service_token
        if token:
            auth = Headers(scope=scope).get("authorization", "")
            if not auth.startswith("Bearer ") or auth[7:] != token:
                response = JSONResponse(status_code=401, content={"detail": "Unauthorized"})
                await response(scope, receive, send)
                return
        await self.app(scope, receive, send)


class RateLimitMiddleware:
    """Fixed-window request limit per client address on /api/ paths."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        limiter = getattr(scope["app"].state, "rate_limiter", None)
        if limiter is not None and scope["path"].startswith("/api/"):
            client = scope.get("client")
            host = client[0] if client else "unknown"
            if not limiter.allow(host):
                response = JSONResponse(
                    status_code=429,
                    content={"error": "Too many requests, please try again later."},
                )
                await response(scope, receive, send)
                return
        await self.app(scope, receive, send)


app.add_middleware(RateLimitMiddleware)
app.add_middleware(BearerTokenMiddleware)


@app.exception_handler(GrouplockError)
async def grouplock_error_handler(request: Request, exc: GrouplockError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    settings = GrouplockSettings()
    uvicorn.run(
        "grouplock_service.main:app",
        host="0.0.0.0",
        port=settings.grouplock_service_port,
    )
