"""Map controller errors onto the JSON error envelope."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cirrus.errors.exceptions import AuthorizationError, CirrusError, ValidationError
from cirrus.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(request: Request, exc: CirrusError) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            trace_id=getattr(request.state, "trace_id", "unknown"),
            timestamp=datetime.now(timezone.utc),
        ),
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json", exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CirrusError)
    async def cirrus_error_handler(request: Request, exc: CirrusError):
        if isinstance(exc, AuthorizationError):
            user = getattr(request.state, "user", {}) or {}
            logger.warning(
                "Denied %s %s to %s: %s",
                request.method, request.url.path, user.get("sub", "anonymous"), exc.code,
            )
        elif exc.status_code >= 500:
            logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.code, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_body_error_handler(request: Request, exc: RequestValidationError):
        # Unparseable bodies and unknown fields share the 400 envelope with
        # rule failures instead of FastAPI's default 422.
        fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()]
        error = ValidationError("Request invalid", details={"fields": fields})
        logger.info("%s %s rejected: unparseable body (%s)", request.method, request.url.path, ", ".join(fields))
        return _error_response(request, error)
