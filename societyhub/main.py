from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import structlog

from .config import Settings
from .errors import register_exception_handlers
from .logging import setup_logging, RequestIdMiddleware
from .auth.otp import OtpService
from .auth.router import router as auth_router
from .routes.users import router as users_router
from .routes.bills import router as bills_router
from .routes.complaints import router as complaints_router
from .routes.notices import router as notices_router
from .routes.activities import router as activities_router
from .routes.billing_fields import router as billing_fields_router
from .routes.dashboard import router as dashboard_router
from .storage.factory import create_storage
from .storage.provider import Storage


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.log_json)
    logger = structlog.get_logger(__name__)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.storage = storage if storage is not None else create_storage(settings)
    app.state.otp = OtpService(ttl_seconds=settings.otp_ttl_seconds, dev_code=settings.dev_otp_code)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(bills_router)
    app.include_router(complaints_router)
    app.include_router(notices_router)
    app.include_router(activities_router)
    app.include_router(billing_fields_router)
    app.include_router(dashboard_router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "storage": app.state.storage.name}

    # Metrics
    if settings.metrics_enabled:
        Instrumentator().instrument(app).expose(app)

    logger.info("app_created", environment=settings.environment, storage=app.state.storage.name)
    return app


app = create_app()
