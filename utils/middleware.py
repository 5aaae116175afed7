import logging
import time
import uuid
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger("LOGGING")


def _describe_user(request):
    user = getattr(request, "user", None)
    if user and user.is_authenticated:
        return f"{user.username} (ID: {user.id})"
    return "anonymous"


class RequestResponseLoggingMiddleware(MiddlewareMixin):
    """
    Logs every request and its response under one trace id.
    The trace id is echoed back in the ``X-Trace-ID`` response header.
    Request bodies are never logged, so credentials stay out of the logs.
    """

    def process_request(self, request):
        trace_id = request.headers.get("X-Trace-ID") or str(uuid.uuid4())
        request.trace_id = trace_id
        request._started_at = time.monotonic()

        logger.info(
            f"Trace ID: {trace_id} | Request: {request.method} {request.path} | User: {_describe_user(request)}"
        )
        return None

    def process_response(self, request, response):
        trace_id = getattr(request, "trace_id", "N/A")
        started_at = getattr(request, "_started_at", None)
        elapsed_ms = (time.monotonic() - started_at) * 1000 if started_at else 0.0

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"Trace ID: {trace_id} | Response: {response.status_code} | "
            f"{elapsed_ms:.1f} ms | User: {_describe_user(request)}",
        )
        response["X-Trace-ID"] = trace_id
        return response
