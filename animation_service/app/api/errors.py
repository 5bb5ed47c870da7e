"""도메인 예외 -> HTTP 응답 변환.

응답 바디는 {"detail": {"code": ..., "message": ...}} 형태로 통일한다.
예상하지 못한 예외는 500 internal_error 로 응답하고 원문은 로그에만 남긴다.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import AnimationServiceError, AuthError


logger = logging.getLogger(__name__)


def error_body(code: str, message: str) -> dict:
    return {"detail": {"code": code, "message": message}}


async def handle_service_error(request: Request, exc: AnimationServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed: %s (%s)",
            exc.code,
            exc.message,
            extra={"path": request.url.path},
        )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message),
        headers=headers,
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request body."
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("validation_error", message),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", "An unexpected error occurred."),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AnimationServiceError, handle_service_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)
