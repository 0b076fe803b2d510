from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

logger = structlog.get_logger()


class NotesHubError(Exception):
    """Base class for errors surfaced to the user as a notification."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(NotesHubError):
    """Rejected before any remote call was made."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(NotesHubError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthFailed(NotesHubError):
    status_code = status.HTTP_401_UNAUTHORIZED


class RemoteServiceError(NotesHubError):
    """
    A collaborator (record store, object store, auth) failed.
    Carries the service-provided message when one is available.
    """

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service


async def noteshub_exception_handler(request: Request, exc: NotesHubError):
    """
    Domain errors carry a user-facing message.
    """
    if isinstance(exc, RemoteServiceError):
        logger.warning("remote_service_error", service=exc.service, error=exc.message, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )

async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all for unhandled exceptions.
    Prevents stack trace leakage in production.
    """
    logger.error("unhandled_exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again."},
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Standard HTTP exception handler. Unknown routes land here as 404.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Pydantic validation error handler.
    """
    logger.warning("validation_error", errors=exc.errors(), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances which are not JSON serializable
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors
