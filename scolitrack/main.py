import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from scolitrack.config import settings, Settings
from scolitrack.core.encryption import FieldCipher
from scolitrack.core.exceptions import AppError
from scolitrack.core.mailer import Mailer
from scolitrack.core.security import TokenService
from scolitrack.core.responses import error_content
from scolitrack.database.supabase_client import SupabaseStore
from scolitrack.modules.auth import routes as auth_routes
from scolitrack.modules.users import routes as users_routes
from scolitrack.modules.roles import routes as roles_routes
from scolitrack.modules.privileges import routes as privileges_routes
from scolitrack.modules.establishment import routes as establishment_routes
from scolitrack.modules.classrooms import routes as classrooms_routes
from scolitrack.modules.commissions import routes as commissions_routes
from scolitrack.modules.notifications import routes as notifications_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def _validation_details(exc: RequestValidationError) -> dict:
    details = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details[path or "body"] = error.get("msg", "Invalid value")
    return details


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application startup")
        app.state.cipher = FieldCipher(app_settings.encryption_key)
        app.state.tokens = TokenService.from_settings(app_settings)
        app.state.mailer = Mailer.from_settings(app_settings)
        app.state.store.open()
        try:
            yield
        finally:
            app.state.store.close()
            logger.info("Application shutdown")

    limiter = Limiter(key_func=get_remote_address, default_limits=[app_settings.rate_limit])
    app = FastAPI(
        title=app_settings.app_name,
        debug=app_settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.state.store = SupabaseStore(
        app_settings.supabase_url,
        app_settings.supabase_key,
        app_settings.supabase_service_role_key,
    )
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=error_content(exc.feedback, exc.data))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_content("Invalid request data", {"details": _validation_details(exc)}),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if app_settings.is_production:
            return JSONResponse(status_code=500, content=error_content("Internal server error"))
        return JSONResponse(status_code=500, content=error_content(f"Internal server error: {exc}"))

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(auth_routes.router, prefix="/api/v1")
    app.include_router(users_routes.router, prefix="/api/v1")
    app.include_router(roles_routes.router, prefix="/api/v1")
    app.include_router(privileges_routes.router, prefix="/api/v1")
    app.include_router(establishment_routes.router, prefix="/api/v1")
    app.include_router(classrooms_routes.router, prefix="/api/v1")
    app.include_router(commissions_routes.router, prefix="/api/v1")
    app.include_router(notifications_routes.router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {"message": "Welcome to scolitrack-backend", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready(request: Request):
        """Readiness probe: the store handle must be open"""
        if not request.app.state.store.is_open:
            return JSONResponse(status_code=503, content={"status": "not ready"})
        return {"status": "ready"}

    return app


app = create_app()
