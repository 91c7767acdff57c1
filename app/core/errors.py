# app/core/errors.py
"""Application errors and the handler that renders them like HTTPException."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for application errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """Unknown ticket, alert or contact."""

    status_code = 404


class InvalidTransitionError(AppError):
    """Action not legal from the ticket's current status or for the caller's role."""

    status_code = 409


class PreconditionFailedError(AppError):
    """Missing required field, contact address or sender credentials."""

    status_code = 400


class TransientDispatchFailure(AppError):
    """Mail transport error. Caught at the dispatch boundary, never rendered."""

    status_code = 502


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(_request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


__all__ = [
    "AppError",
    "NotFoundError",
    "InvalidTransitionError",
    "PreconditionFailedError",
    "TransientDispatchFailure",
    "register_error_handlers",
]
