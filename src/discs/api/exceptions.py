from __future__ import annotations

from fastapi import FastAPI, Request  # type: ignore[import-not-found]
from fastapi.responses import JSONResponse  # type: ignore[import-not-found]
from starlette import status  # type: ignore[import-not-found]

from discs.commons.exceptions import (
    BaseServiceConflictException,
    BaseServiceException,
    BaseServiceNotFoundException,
    BaseServiceStorageException,
    BaseServiceUnauthorizedException,
    BaseServiceUnProcessableException,
)
from discs.commons.logging import logger

STORAGE_ERROR_MESSAGE = "Internal server error"


def status_code_for(exc: BaseServiceException) -> int:
    if isinstance(exc, BaseServiceNotFoundException):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, BaseServiceUnProcessableException):
        return status.HTTP_422_UNPROCESSABLE_CONTENT
    if isinstance(exc, BaseServiceUnauthorizedException):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, BaseServiceConflictException):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, BaseServiceStorageException):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def configure_global_exception_handlers(app: FastAPI) -> FastAPI:
    @app.exception_handler(BaseServiceException)
    async def service_exception_handler(
        request: Request, exc: BaseServiceException
    ) -> JSONResponse:
        code = status_code_for(exc)
        message, details = exc.message, exc.details
        if isinstance(exc, BaseServiceStorageException):
            # Driver errors can carry SQL and parameters.
            logger.error(
                "Storage failure %s %s: %s (%s)",
                request.method,
                request.url.path,
                exc.message,
                exc.details,
            )
            message, details = STORAGE_ERROR_MESSAGE, None

        return JSONResponse(
            status_code=code,
            content={
                "exception": {
                    "code": code,
                    "message": message,
                    "details": details,
                    "path": request.url.path,
                    "method": request.method,
                }
            },
        )

    return app
