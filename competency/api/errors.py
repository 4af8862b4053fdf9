"""
Exception handlers.

Every error body carries the request ID so a client report can be matched
to the server log line for the failed scoring call.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from competency.api.middleware.request_id import REQUEST_ID_HEADER
from competency.logging_config import get_logger

logger = get_logger(__name__)


def _error_response(request: Request, status_code: int, content: Dict[str, Any]) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    headers = {}
    if request_id:
        content["request_id"] = request_id
        headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Install JSON handlers for HTTP, validation and unexpected errors."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(request, exc.status_code, {"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception", extra={"path": request.url.path, "method": request.method})
        if debug:
            content = {"detail": str(exc), "type": type(exc).__name__}
        else:
            content = {"detail": "Internal server error"}
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)
