from http import HTTPStatus

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from indexing_gateway.main.exceptions import EXCEPTION_MAP
from indexing_gateway.main.logging import get_logger
from indexing_gateway.main.models import GeneralError

logger = get_logger(__name__)


def add_exception_handlers(app: FastAPI):
    for exception, (status_code, error_message, error_code) in EXCEPTION_MAP.items():

        def handler(
            request,
            exc,
            status_code=status_code,
            error_message=error_message,
            error_code=error_code,
        ):
            if status_code == 401:
                logger.info(
                    f"Authentication failed: {request.method} {request.url.path} - {exc}",
                    extra={
                        "error_code": error_code,
                        "client_host": request.client.host if request.client else "unknown",
                    },
                )
            elif status_code >= 500:
                logger.warning(
                    f"Upstream failure on {request.method} {request.url.path}: {exc}",
                    extra={"error_code": error_code, "status_code": status_code},
                )

            return JSONResponse(
                status_code=status_code,
                content=GeneralError(
                    error=error_message or HTTPStatus(status_code).phrase,
                    message=str(exc),
                    code=status_code,
                    error_code=error_code,
                ).model_dump(),
            )

        app.add_exception_handler(exception, handler)


def internal_error_response(exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=GeneralError.from_status(500, "An unexpected error occurred").model_dump(),
    )
