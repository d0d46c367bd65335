# diaglab/api/errors.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from diaglab.domain.errors import DiagLabError
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)


def _error(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    content = {"error": message}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI):
    """Every error leaves the service as {"error": ..., "code"?: ...}."""

    @app.exception_handler(DiagLabError)
    async def handle_domain_error(request: Request, exc: DiagLabError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or "request"
        return _error(400, f"Invalid value for '{field}': {first.get('msg', 'invalid')}", "INVALID_REQUEST")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} crashed")
        return _error(500, f"Internal server error: {exc}")
