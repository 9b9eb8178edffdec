# =====================================
# backend/api/errors.py - Error Responses
# =====================================
"""
Every error leaves the API as {"success": false, "message": ..., "error"?: ...}.

Routers raise HTTPException with a plain string detail for expected
failures, or call server_error() from inside an except block.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


def server_error(e: Exception, context: str) -> HTTPException:
    """Logs the failure and builds a 500 with a debug string for the client"""
    logger.exception("%s: %s", context, e)
    return HTTPException(status_code=500, detail={"message": "Server error", "error": str(e)})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        return message[len("Value error, "):]

    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {message}" if field else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = {"success": False, "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "message": _validation_message(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
