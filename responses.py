"""
Uniform response envelope: ``{success, data?, message?, error?, errors?, pagination?}``.
"""
import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings

logger = logging.getLogger(__name__)


def envelope(success=True, data=None, message=None, **extra):
    body = {"success": success}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    body.update({key: value for key, value in extra.items() if value is not None})
    return body


def ok(data=None, message=None, pagination=None):
    return envelope(True, data=data, message=message, pagination=pagination)


def failure(status_code, message, headers=None, **extra):
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(False, message=message, **extra)),
        headers=headers,
    )


def _describe(error) -> str:
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    if location:
        return f"{'.'.join(location)}: {error['msg']}"
    return error["msg"]


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, list):
        return failure(exc.status_code, "Validation error", headers=exc.headers, errors=exc.detail)
    return failure(exc.status_code, str(exc.detail), headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [_describe(error) for error in exc.errors()]
    logger.info("Rejected %s %s: %s", request.method, request.url.path, "; ".join(errors))
    return failure(status.HTTP_400_BAD_REQUEST, "Validation error", errors=errors)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = str(exc) if settings.ENVIRONMENT == "development" else None
    return failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", error=detail)
