"""
API middleware for Medo Care.

Provides:
- Rate limiting
- Request logging
- Security response headers
- Error handling and upload rejection rendering
"""

import re
import time
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from medocare.config import settings
from medocare.services.ingestion import UploadRejectedError
from medocare.utils.file_validators import RejectionReason
from medocare.utils.logger import (
    REQUEST_ID_HEADER,
    bind_request_context,
    clear_request_context,
    get_logger,
)

logger = get_logger("middleware")


# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
}

REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _safe_request_id(value: Optional[str]) -> Optional[str]:
    """Caller-supplied request id, if it is short and plain enough to log."""
    if value and REQUEST_ID_PATTERN.match(value):
        return value
    return None


def wants_json(request: Request) -> bool:
    """Whether the client asked for a JSON response."""
    return "application/json" in request.headers.get("accept", "").lower()


def error_response(request: Request, message: str, status_code: int) -> Response:
    """Render an error as JSON or plain text depending on Accept."""
    if wants_json(request):
        return JSONResponse(status_code=status_code, content={"error": message})
    return PlainTextResponse(message, status_code=status_code)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Logs:
    - Request method, path, client
    - Response status code
    - Processing time
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        start_time = time.time()

        # Every event logged below, and in the handlers, carries these fields
        request_id = bind_request_context(
            method=request.method,
            path=request.url.path,
            request_id=_safe_request_id(request.headers.get(REQUEST_ID_HEADER))
        )

        logger.info("Request received", client_ip=get_remote_address(request))

        try:
            response = await call_next(request)

            process_time = time.time() - start_time

            logger.info(
                "Request completed",
                status_code=response.status_code,
                process_time_ms=int(process_time * 1000)
            )

            response.headers["X-Process-Time"] = f"{process_time:.4f}"
            response.headers[REQUEST_ID_HEADER] = request_id

            return response

        except Exception as e:
            process_time = time.time() - start_time

            logger.error(
                "Request failed",
                error=str(e),
                process_time_ms=int(process_time * 1000)
            )
            raise

        finally:
            clear_request_context()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds conservative security headers to every response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Refuses upload requests whose declared body is larger than a full batch.

    Runs before the multipart body is parsed, so an oversized upload is
    rejected without being spooled to disk first. Per-file limits are
    still enforced by the validator once the body has been parsed.
    """

    # Room for multipart boundaries and part headers
    MULTIPART_OVERHEAD_BYTES = 64 * 1024

    def __init__(self, app, max_body_bytes: int, paths: tuple[str, ...] = ("/upload",)):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes + self.MULTIPART_OVERHEAD_BYTES
        self.paths = paths

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        if request.method == "POST" and request.url.path in self.paths:
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self.max_body_bytes:
                logger.warning(
                    "Upload refused before parsing",
                    content_length=int(declared),
                    limit=self.max_body_bytes
                )
                return error_response(
                    request,
                    RejectionReason.FILE_TOO_LARGE.message,
                    status_code=400
                )

        return await call_next(request)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches unhandled exceptions and returns safe error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)

        except HTTPException:
            raise

        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            return error_response(
                request,
                "Something went wrong.",
                status_code=500
            )


def setup_error_handlers(app: FastAPI) -> None:
    """Register handlers that turn domain errors into responses."""

    @app.exception_handler(UploadRejectedError)
    async def upload_rejected_handler(request: Request, exc: UploadRejectedError):
        status_code = 400 if exc.reason.is_client_error else 500
        return error_response(request, exc.message, status_code=status_code)


def setup_rate_limiting(app: FastAPI) -> None:
    """Setup rate limiting on the application."""
    app.state.limiter = limiter

    @app.exception_handler(429)
    async def rate_limit_handler(request: Request, exc: Exception):
        return error_response(
            request,
            "Too many requests. Please wait before trying again.",
            status_code=429
        )
