import re
import time
import logging
import json
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from config.settings import settings
from config.logging_config import get_request_id

logger = logging.getLogger(__name__)

MASK = "********"
REQUEST_ID_HEADER = "X-Request-ID"
_ARTIFACT_PATH = re.compile(r"^/api/artifacts/(\d+)")
# Request ids supplied by a caller are only reused if they look like one of ours
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9\-]{8,64}$")


def _is_sensitive(key: str) -> bool:
    return any(sensitive in key.lower() for sensitive in settings.LOG_SENSITIVE_FIELDS)


def mask_sensitive(data: Any) -> Any:
    """Recursively replace values of password/token/secret-like keys."""
    if isinstance(data, dict):
        return {
            key: MASK if _is_sensitive(str(key)) else mask_sensitive(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item) for item in data]
    return data


def artifact_id_from_path(path: str) -> Optional[int]:
    match = _ARTIFACT_PATH.match(path)
    return int(match.group(1)) if match else None


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging for the artifact API.

    - Assigns a request ID (or reuses a well-formed incoming X-Request-ID) and echoes it back
    - Tags log records with the artifact id when the path addresses one
    - Logs status and duration, warning on 4xx and on slow requests
    - Optionally logs JSON bodies with credentials masked; preview HTML is never logged
    """

    def __init__(self, app: ASGIApp, request_id_filter=None):
        super().__init__(app)
        self.request_id_filter = request_id_filter

    def _request_id_for(self, request: Request) -> str:
        incoming = request.headers.get(REQUEST_ID_HEADER)
        if incoming and _VALID_REQUEST_ID.match(incoming):
            return incoming
        return get_request_id()

    async def dispatch(self, request: Request, call_next):
        request_id = self._request_id_for(request)
        if self.request_id_filter:
            self.request_id_filter.request_id = request_id
        request.state.request_id = request_id

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        artifact_id = artifact_id_from_path(request.url.path)
        if artifact_id is not None:
            context["artifact_id"] = artifact_id

        start = time.perf_counter()
        await self._log_request(request, context)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                f"Unhandled exception processing {request.method} {request.url.path}: {exc}",
                extra={**context, "duration_ms": round((time.perf_counter() - start) * 1000, 2)},
            )
            raise
        finally:
            if self.request_id_filter:
                self.request_id_filter.request_id = None

        duration_ms = (time.perf_counter() - start) * 1000
        self._log_response(response, duration_ms, context)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    async def _log_request(self, request: Request, context: dict):
        log_data = dict(context)
        log_data["client_host"] = request.client.host if request.client else None

        if settings.LOG_LEVEL.upper() == "DEBUG":
            log_data["headers"] = mask_sensitive(dict(request.headers))

        if settings.LOG_REQUEST_BODY and request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            try:
                log_data["body"] = mask_sensitive(json.loads(body))
            except ValueError:
                log_data["body"] = f"<{len(body)} bytes, not JSON>"

        logger.info(f"Request: {request.method} {request.url.path}", extra=log_data)

    def _log_response(self, response: Response, duration_ms: float, context: dict):
        log_data = {**context, "status_code": response.status_code, "duration_ms": round(duration_ms, 2)}

        is_json = response.headers.get("content-type", "").startswith("application/json")
        if settings.LOG_RESPONSE_BODY and is_json and hasattr(response, "body"):
            try:
                log_data["body"] = mask_sensitive(json.loads(response.body))
            except ValueError:
                log_data["body"] = f"<{len(response.body)} bytes, not JSON>"

        summary = f"{context['method']} {context['path']} -> {response.status_code} ({duration_ms:.2f}ms)"
        if response.status_code >= 500:
            logger.error(f"Response: {summary}", extra=log_data)
        elif response.status_code >= 400:
            logger.warning(f"Response: {summary}", extra=log_data)
        elif duration_ms > settings.LOG_PERFORMANCE_THRESHOLD_MS:
            logger.warning(f"Slow response: {summary}", extra=log_data)
        else:
            logger.info(f"Response: {summary}", extra=log_data)
