"""Global exception handlers for the FastAPI application.

Every error leaves the API as an RFC 7807 problem document.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from signal_notify.core.exceptions import AppException
from signal_notify.core.schemas.problem_details import ProblemDetails, ValidationErrorDetail

logger = logging.getLogger(__name__)


def _problem_response(problem: ProblemDetails, extra: dict[str, Any] | None = None) -> JSONResponse:
    content = problem.model_dump(mode="json", exclude_none=True)
    if extra:
        # Problem members are never overridden
        content.update({k: v for k, v in extra.items() if k not in content})
    return JSONResponse(
        status_code=problem.status,
        content=content,
        media_type="application/problem+json",
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert an ``AppException`` into a problem response."""
    logger.warning(
        "Application exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )

    problem = ProblemDetails(
        type=exc.type,
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=exc.instance or request.url.path,
    )
    return _problem_response(problem, exc.extra)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors into a problem with field details."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
            input=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(errors),
            "fields": [e.field for e in errors],
        },
    )

    problem = ProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Request validation failed for {len(errors)} field(s)",
        instance=request.url.path,
        errors=errors,
    )
    return _problem_response(problem)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback and answer with a generic 500 problem."""
    logger.error(
        "Unexpected exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=exc,
    )

    problem = ProblemDetails(
        type="internal-error",
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred while processing your request",
        instance=request.url.path,
    )
    return _problem_response(problem)


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the problem-details handlers on ``app``."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers configured")
