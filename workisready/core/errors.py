from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from workisready.core.exceptions import WorkIsReadyError
from workisready.core.logging import get_logger
from workisready.schemas.response import ErrorResponse
from workisready.core.config import settings

logger = get_logger(__name__)


def summarize_errors(errors) -> list:
    """Reduces pydantic error entries to JSON-safe loc/msg/type triples."""
    return [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in errors
    ]


def _validation_message(details: list) -> str:
    fields = [entry["loc"][-1] for entry in details if entry["loc"]]
    if not fields:
        return "Input validation failed"
    return f"Invalid or missing fields: {', '.join(dict.fromkeys(fields))}"


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(WorkIsReadyError)
    async def workisready_exception_handler(request: Request, exc: WorkIsReadyError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}", exc_info=True)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=exc.message,
                code=exc.code,
                details=exc.details
            ).model_dump()
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, etc.)
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=str(exc.detail),
                code="HTTP_ERROR",
                details=None
            ).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles request schema validation errors.
        """
        details = summarize_errors(exc.errors())
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                message=_validation_message(details),
                code="VALIDATION_ERROR",
                details=details
            ).model_dump()
        )

    @app.exception_handler(PydanticValidationError)
    async def document_validation_handler(request: Request, exc: PydanticValidationError):
        """
        Handles document validation failures raised before a database write.
        """
        details = summarize_errors(exc.errors())
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                message=_validation_message(details),
                code="VALIDATION_ERROR",
                details=details
            ).model_dump()
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                message=message,
                code="INTERNAL_ERROR",
                details=None
            ).model_dump()
        )
