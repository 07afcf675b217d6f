import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config.settings import Settings, settings
from app.core.limiter import limiter
from app.database.supabase_client import SupabaseClients
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.practitioners import routes as practitioners_routes
from app.modules.sessions import routes as sessions_routes
from app.modules.video import routes as video_routes
from app.modules.uploads import routes as uploads_routes
from app.modules.reviews import routes as reviews_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

BUILD_TIMESTAMP = str(int(time.time() * 1000))

CORS_ALLOW_HEADERS = [
    "X-CSRF-Token", "X-Requested-With", "Accept", "Accept-Version", "Content-Length",
    "Content-MD5", "Content-Type", "Date", "X-Api-Version", "Authorization",
]

NO_CACHE_HEADERS = [
    (b"Cache-Control", b"no-cache, no-store, must-revalidate, private, max-age=0"),
    (b"Pragma", b"no-cache"),
    (b"Expires", b"0"),
    (b"X-Content-Type-Options", b"nosniff"),
    (b"Vary", b"Accept-Encoding, Origin"),
]

# Safari and iOS webviews keep serving stale API responses without these
WEBKIT_MARKERS = ("WebKit", "iPad", "iPhone")


class CacheBustingHeadersMiddleware:
    def __init__(self, app, build_timestamp: str = BUILD_TIMESTAMP):
        self.app = app
        self.build_timestamp = build_timestamp.encode()

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        user_agent = ""
        for name, value in scope.get("headers", []):
            if name == b"user-agent":
                user_agent = value.decode("latin-1")
                break
        extra = list(NO_CACHE_HEADERS)
        if any(marker in user_agent for marker in WEBKIT_MARKERS):
            extra.append((b"Clear-Site-Data", b'"cache"'))
            extra.append((b"X-iOS-Cache-Bust", self.build_timestamp))
        overridden = {name.lower() for name, _ in extra}

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                headers = [
                    (name, value) for name, value in message.get("headers", [])
                    if name.lower() not in overridden
                ]
                headers.extend((name.lower(), value) for name, value in extra)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(app_settings: Settings = settings, clients: Optional[SupabaseClients] = None) -> FastAPI:
    """Build the API. Clients are created in the lifespan unless handed in."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings.validate_required()
        if getattr(app.state, "clients", None) is None:
            app.state.clients = SupabaseClients.from_settings(app_settings)
        logger.info(f"Application startup ({app_settings.environment})")
        yield
        logger.info("Application shutdown")

    app = FastAPI(
        title=app_settings.app_name,
        debug=app_settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.clients = clients
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": "Invalid input", "errors": errors})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if app_settings.is_production:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    origins = app_settings.get_cors_origins_list()
    allow_all = origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        # a regex makes Starlette echo the caller's origin, which credentials require
        allow_origins=[] if allow_all else origins,
        allow_origin_regex=".*" if allow_all else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    # outermost, so preflight answers get the no-cache headers as well
    app.add_middleware(CacheBustingHeadersMiddleware)

    # Include module routes
    app.include_router(auth_routes.router, prefix="/api")
    app.include_router(profiles_routes.router, prefix="/api")
    app.include_router(practitioners_routes.router, prefix="/api")
    app.include_router(sessions_routes.router, prefix="/api")
    app.include_router(video_routes.router, prefix="/api")
    app.include_router(uploads_routes.router, prefix="/api")
    app.include_router(reviews_routes.router, prefix="/api")

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {app_settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness check: configuration is complete and clients are built."""
        return {"status": "ready" if app.state.clients is not None else "starting"}

    @app.get("/api/version")
    async def version():
        return {
            "timestamp": BUILD_TIMESTAMP,
            "version": app_settings.build_version,
            "requiresReload": False,
        }

    @app.get("/api/cache-bust")
    async def cache_bust(request: Request):
        """Tells a stuck client to drop its caches and reload."""
        body = {
            "buildTimestamp": BUILD_TIMESTAMP,
            "version": app_settings.build_version,
            "serverTime": int(time.time() * 1000),
            "cacheClear": True,
            "message": "Cache cleared - please reload",
            "userAgent": request.headers.get("user-agent", "unknown"),
        }
        return JSONResponse(content=body, headers={"X-Force-Reload": "true"})

    return app


app = create_app()
