from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.errors import DoubleError, ValidationError


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, "message": message})


def _describe_request_errors(exc: RequestValidationError) -> str:
    missing = [str(err["loc"][-1]) for err in exc.errors() if err.get("type") == "missing"]
    if missing:
        verb = "is" if len(missing) == 1 else "are"
        return f"{', '.join(missing)} {verb} required"
    return "; ".join(f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors())


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to 400/404/500 JSON responses carrying the raw message."""

    @app.exception_handler(DoubleError)
    async def handle_domain_error(request: Request, exc: DoubleError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _error_response(exc.status_code, exc.title, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(ValidationError.status_code, ValidationError.title, _describe_request_errors(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(500, "Internal Server Error", str(exc))
