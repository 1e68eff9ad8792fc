"""Exception handlers rendering domain errors as ``{code, message}`` JSON."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.errors import AdmissionBusy, AdmissionRejected, TenancyError

logger = logging.getLogger(__name__)


async def tenancy_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, TenancyError)
    body: dict[str, object] = {"code": exc.code, "message": exc.public_message()}
    headers: dict[str, str] = {}

    if isinstance(exc, AdmissionRejected):
        # Rejections tell the caller how much room is left.
        body["details"] = exc.details
    if isinstance(exc, AdmissionBusy):
        headers["Retry-After"] = str(exc.retry_after_seconds)
        logger.warning(
            "Admission lock busy",
            extra={"structured": {"path": request.url.path, **exc.details}},
        )

    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"code": "VALIDATION_ERROR", "message": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TenancyError, tenancy_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
