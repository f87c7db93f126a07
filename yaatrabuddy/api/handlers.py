# yaatrabuddy/api/handlers.py
"""
Обработчики исключений FastAPI.

Все ошибки отдаются клиенту в едином формате {"error": "<сообщение>"}:
- AppError - статус и сообщение из исключения
- RequestValidationError - 400 с первым сообщением валидации
- Exception - 500 "Internal server error", детали только в логе
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from yaatrabuddy.common.constants import TypeMsg
from yaatrabuddy.common.errors import AppError
from yaatrabuddy.common.logger import log_error, log_info

_VALUE_ERROR_PREFIX = "Value error, "


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def validation_message(exc: RequestValidationError) -> str:
    """Человекочитаемое сообщение из первой ошибки валидации."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    if message.startswith(_VALUE_ERROR_PREFIX):
        return message[len(_VALUE_ERROR_PREFIX):]

    # loc: ("body", "email") -> "email"
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{field}: {message}" if field else message


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        await log_error(
            f"{request.method} {request.url.path}: {exc.message}",
            extra={"cause": repr(exc.__cause__) if exc.__cause__ else None},
        )
    else:
        await log_info(
            f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}",
            type_msg=TypeMsg.DEBUG,
        )
    return error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    await log_info(
        f"Ошибка валидации {request.method} {request.url.path}: {exc.errors()}",
        type_msg=TypeMsg.DEBUG,
    )
    return error_response(status.HTTP_400_BAD_REQUEST, validation_message(exc))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(
        f"Необработанная ошибка {request.method} {request.url.path}: {exc!r}",
        exc_info=True,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
