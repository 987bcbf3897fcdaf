"""
Application exceptions and their HTTP mapping.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class SocietyHubError(Exception):
    """Base exception for all application-specific errors"""
    default_message = "An application error occurred"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(SocietyHubError):
    default_message = "Resource not found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource_type=None, resource_id=None, **kwargs):
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_type and "message" not in kwargs:
            kwargs["message"] = f"{resource_type} not found"
        super().__init__(**kwargs)


class ConflictError(SocietyHubError):
    default_message = "Resource already exists"
    status_code = status.HTTP_409_CONFLICT


class DuplicatePhoneError(ConflictError):
    default_message = "Phone number already registered"


class InvalidTransitionError(ConflictError):
    default_message = "Status transition not allowed"

    def __init__(self, current=None, target=None, **kwargs):
        self.current = current
        self.target = target
        if current and target and "message" not in kwargs:
            kwargs["message"] = f"Cannot move from {current} to {target}"
        super().__init__(**kwargs)


class AuthenticationError(SocietyHubError):
    default_message = "Authentication failed"
    status_code = status.HTTP_401_UNAUTHORIZED


def register_exception_handlers(app: FastAPI) -> None:
    logger = structlog.get_logger(__name__)

    @app.exception_handler(RequestValidationError)
    async def _validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request data", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SocietyHubError)
    async def _domain(request: Request, exc: SocietyHubError):
        body = {"error": exc.message}
        if exc.details:
            body["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def _http(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.error("unhandled_error", error=str(exc), exc_info=exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Internal server error"})
