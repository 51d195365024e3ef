import logging
from functools import wraps
from http import HTTPStatus

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVER_ERROR = "Server error"


def handle_runtime_errors(mapping: dict[str, tuple[HTTPStatus, str]]):
    """
    Translate RuntimeError carrying a text code into HTTPException.
    Example mapping: {"movie_not_found": (404, "Movie not found")}
    Unknown errors become 500 with a safe message; details go to the log.
    """
    def decorator(fn):
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except RuntimeError as e:
                msg = str(e)
                for key, (status, message) in mapping.items():
                    if key in msg:
                        raise HTTPException(status_code=status,
                                            detail=message)
                logger.exception("unhandled_service_error",
                                 extra={"err": msg})
                raise HTTPException(
                    status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
                    detail=SERVER_ERROR)
        return wrapper
    return decorator


def not_found_if_none(value, detail: str = "Movie not found"):
    """Raise 404 when the service returned nothing."""
    if value is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=detail)
    return value


def _field_name(loc) -> str:
    # drop the "body"/"path"/"query"/"header" prefix
    parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
    return ".".join(parts)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code,
                        content={"message": exc.detail},
                        headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request,
                                   exc: RequestValidationError):
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=HTTPStatus.BAD_REQUEST,
                        content={"errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return JSONResponse(status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
                        content={"message": SERVER_ERROR})


def register_error_handlers(app: FastAPI) -> None:
    """Error bodies are always {"message": ...} or {"errors": [...]}."""
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError,
                              validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
