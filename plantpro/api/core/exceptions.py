"""
Domain error taxonomy and its HTTP mapping

Services raise these; the handler registered in main.py turns them into
``{"error": ..., "detail": ...}`` responses with the matching status code.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class PlantProError(Exception):
    """Base class for errors surfaced verbatim to the caller"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(PlantProError):
    """Referenced entity id does not exist"""

    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class ConflictError(PlantProError):
    """Duplicate value for a unique field"""

    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class BadRequestError(PlantProError):
    """Invalid state transition, unsupported report format, bad sort key..."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad request"


class UnauthorizedError(PlantProError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"


class ForbiddenError(PlantProError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"


async def plantpro_error_handler(request: Request, exc: PlantProError) -> JSONResponse:
    logger.warning(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error}: {exc.detail}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.detail}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PlantProError, plantpro_error_handler)
