import logging

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse

logger = logging.getLogger("receipt_reader")

UNAUTHORIZED_MESSAGE = "Token is invalid or expired."


class ReceiptReaderError(Exception):
    """Base exception for every terminal request failure."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class Unauthorized(ReceiptReaderError):
    """Missing, malformed, expired or otherwise rejected credential."""

    status_code = 401
    code = "unauthorized"

    def __init__(self, detail: str | None = None):
        super().__init__(UNAUTHORIZED_MESSAGE, detail)


class BadRequest(ReceiptReaderError):
    status_code = 400
    code = "bad_request"


class MethodNotAllowed(ReceiptReaderError):
    status_code = 405
    code = "method_not_allowed"

    def __init__(self, method: str):
        super().__init__("Method Not Allowed", f"method {method} is not accepted")


class UpstreamFailure(ReceiptReaderError):
    """The model backend could not produce a usable result."""

    status_code = 500
    code = "upstream_failure"


class BackendUnavailable(UpstreamFailure):
    code = "backend_unavailable"

    def __init__(self, detail: str | None = None):
        super().__init__("Receipt model is unavailable", detail)


class UnparseableReply(UpstreamFailure):
    code = "unparseable_reply"

    def __init__(self, detail: str | None = None):
        super().__init__("Receipt model reply could not be parsed", detail)


class SchemaViolation(UpstreamFailure):
    code = "schema_violation"

    def __init__(self, detail: str | None = None):
        super().__init__("Receipt model reply is missing required fields", detail)


def make_error_handler(expose_upstream_errors: bool = False):
    """Build the exception handler that renders ReceiptReaderError responses.

    Unauthorized gets the fixed JSON body, everything else is plain text.
    Upstream failures are logged with their internal detail; the detail is only
    sent to the caller when ``expose_upstream_errors`` is set.
    """

    async def handle(request: Request, exc: ReceiptReaderError):
        extra = {"extra_data": {"code": exc.code, "path": request.url.path}}

        if isinstance(exc, Unauthorized):
            logger.warning(f"Unauthorized: {exc.detail}", extra=extra)
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": "Unauthorized", "message": exc.message},
            )

        if isinstance(exc, UpstreamFailure):
            logger.error(f"{exc.message}: {exc.detail}", exc_info=exc, extra=extra)
            message = exc.detail if expose_upstream_errors and exc.detail else exc.message
            return PlainTextResponse(f"Error: {message}", status_code=exc.status_code)

        logger.info(f"Request rejected: {exc.detail or exc.message}", extra=extra)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    return handle
