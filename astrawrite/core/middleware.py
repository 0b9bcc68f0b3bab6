"""Per-request logging with a request id and redacted query strings."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

# Query parameters compared case-insensitively; their values never reach the log.
SENSITIVE_QUERY_PARAMS = frozenset({"key", "apikey", "api_key", "applicationpassword", "application_password", "password", "token", "secret"})
QUIET_PATHS = frozenset({"/health"})
REDACTED = "***"


def redact_query(query_string: str) -> str:
  pairs = parse_qsl(query_string, keep_blank_values=True)
  return urlencode([(name, REDACTED if name.lower() in SENSITIVE_QUERY_PARAMS else value) for name, value in pairs], safe="*")


def loggable_url(scope: Scope) -> str:
  """Return the request path and query with credential values masked."""
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"").decode("latin-1")
  if not query_string:
    return path
  return f"{path}?{redact_query(query_string)}"


class RequestLoggingMiddleware:
  """Tag every HTTP request with an id, echo it as ``x-request-id`` and log status and latency.

  Bodies are never read, so streamed article text is not buffered here.
  """

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id
    level = logging.DEBUG if scope.get("path") in QUIET_PATHS else logging.INFO

    started = time.perf_counter()
    logger.log(level, "Incoming request request_id=%s %s %s", request_id, scope.get("method", "UNKNOWN"), loggable_url(scope))

    status_code: int | None = None

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        headers = MutableHeaders(scope=message)
        if "x-request-id" not in headers:
          headers["x-request-id"] = request_id
      await send(message)

    await self.app(scope, receive, send_wrapper)

    # Streaming responses reach this point after their last chunk.
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.log(level, "Response request_id=%s status=%s (took %.2fms)", request_id, status_code or 0, elapsed_ms)
