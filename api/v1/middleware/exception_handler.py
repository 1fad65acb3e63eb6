from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError, DatabaseError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException
from api.v1.utils.exceptions import AppError, ValidationError
from api.v1.utils.logger import get_logger

logger = get_logger("exception_handler")


def _error_content(status_code: int, message: str, errors: list | None = None) -> dict:
    content = {"success": False, "status_code": status_code, "message": message}
    if errors:
        content["errors"] = errors
    return jsonable_encoder(content)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(
            str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")
        )
        errors.append(
            {
                "field": field if field else "body",
                "message": error["msg"],
                "type": error["type"],
            }
        )

    request_id = getattr(request.state, "request_id", None)
    logger.warning(
        "Validation error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "errors": errors,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(
            status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors
        ),
    )


async def app_error_handler(request: Request, exc: AppError):
    request_id = getattr(request.state, "request_id", None)
    log_level = "warning" if exc.status_code < 500 else "error"
    getattr(logger, log_level)(
        "Request failed",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
            "response_message": exc.message,
        },
    )

    errors = exc.errors if isinstance(exc, ValidationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.status_code, exc.message, errors),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    error_message = (
        str(exc.orig) if exc.orig else "Database integrity constraint violation"
    )

    status_code = status.HTTP_400_BAD_REQUEST
    if "UNIQUE constraint" in error_message or "duplicate key" in error_message.lower():
        status_code = status.HTTP_409_CONFLICT
        message = "Resource already exists"
    elif (
        "FOREIGN KEY constraint" in error_message
        or "foreign key" in error_message.lower()
    ):
        message = "Referenced resource does not exist"
    elif "NOT NULL constraint" in error_message:
        message = "Required field cannot be null"
    else:
        message = "Database constraint violation"

    request_id = getattr(request.state, "request_id", None)
    logger.error(
        "Database integrity error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "response_message": message,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status_code, content=_error_content(status_code, message)
    )


async def database_error_handler(request: Request, exc: DatabaseError):
    request_id = getattr(request.state, "request_id", None)
    logger.error(
        "Database error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Database operation failed"
        ),
    )


async def operational_error_handler(request: Request, exc: OperationalError):
    request_id = getattr(request.state, "request_id", None)
    logger.error(
        "Database operational error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_content(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Database service unavailable"
        ),
    )


async def starlette_http_exception_handler(
    request: Request, exc: StarletteHTTPException
):
    message = exc.detail if exc.detail else "Not Found"
    if exc.status_code == 404:
        message = "Resource not found"
    elif exc.status_code == 405:
        message = "Method not allowed"
    elif exc.status_code == 403:
        message = "Forbidden"
    elif exc.status_code == 401:
        message = "Unauthorized"

    request_id = getattr(request.state, "request_id", None)
    log_level = "warning" if exc.status_code < 500 else "error"
    getattr(logger, log_level)(
        "HTTP exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "response_message": message,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.error(
        "Unexpected error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred"
        ),
    )
