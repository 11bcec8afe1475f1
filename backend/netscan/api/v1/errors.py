"""
Translation of core error kinds into HTTP responses.
Every failure uses the same envelope as the routers:
{"success": false, "error": {"code": ..., "message": ...}}
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from netscan.core import errors

logger = logging.getLogger("uvicorn.error")

# Checked in order; subclasses (TokenExpired etc.) resolve through their base
STATUS_BY_ERROR = (
    (errors.Conflict, status.HTTP_409_CONFLICT),
    (errors.ValidationError, status.HTTP_400_BAD_REQUEST),
    (errors.Unauthenticated, status.HTTP_401_UNAUTHORIZED),
    (errors.SessionSuperseded, status.HTTP_401_UNAUTHORIZED),
    (errors.Forbidden, status.HTTP_403_FORBIDDEN),
    (errors.NotFound, status.HTTP_404_NOT_FOUND),
)


def status_for(exc: errors.CoreError) -> int:
    for kind, code in STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(code: str, message: str, **extra) -> dict:
    return {"success": False, "error": {"code": code, "message": message, **extra}}


async def core_error_handler(request: Request, exc: errors.CoreError) -> JSONResponse:
    http_status = status_for(exc)
    if http_status >= 500:
        logger.error("[error] %s %s -> %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=http_status, content=error_body(exc.code, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/query validation failures: 400 with the first message plus per-field details"""
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query")),
            "message": err.get("msg", "Invalid value."),
        }
        for err in exc.errors()
    ]
    message = details[0]["message"] if details else "Invalid request."
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", message, details=details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(errors.CoreError, core_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
