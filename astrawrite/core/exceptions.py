import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from astrawrite.ai.providers import ModelConfigurationError, StructuredOutputError
from astrawrite.jobs.article import EditorBusyError
from astrawrite.jobs.bulk import BulkRunInProgressError
from astrawrite.jobs.cluster import InvalidClusterPlanError
from astrawrite.services.api_keys import ApiKeyNotFoundError
from astrawrite.services.wordpress import WordPressConfigurationError, WordPressPublishError


def _coerce_json_safe(value: Any) -> Any:
  """Convert unsupported values into JSON-safe primitives for error responses."""
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  # Serialize exception instances explicitly to avoid leaking non-serializable objects.
  if isinstance(value, BaseException):
    error_message = str(value)
    if error_message:
      return f"{type(value).__name__}: {error_message}"
    return type(value).__name__
  return str(value)


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  """Build a safe error payload that avoids leaking internal details to clients."""
  payload: dict[str, Any] = {"detail": detail}
  # Attach a request id so support can correlate client reports to server logs.
  if request_id:
    payload["requestId"] = request_id
  return payload


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    # Remove nested input values from context payloads as well.
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed_ctx = dict(scrubbed["ctx"])
      scrubbed_ctx.pop("input", None)
      scrubbed["ctx"] = scrubbed_ctx

    sanitized.append(_coerce_json_safe(scrubbed))

  return sanitized


def _sanitize_http_detail(detail: Any) -> Any:
  """Return an HTTPException detail payload safe for logs."""
  if isinstance(detail, dict):
    return {key: _sanitize_http_detail(value) for key, value in detail.items() if key not in {"input", "body", "payload", "content", "key"}}
  if isinstance(detail, list):
    return [_sanitize_http_detail(item) for item in detail]
  return detail


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  logger = logging.getLogger("uvicorn.error")
  request_id = getattr(request.state, "request_id", None)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Log request validation errors for debugging without leaking payloads."""
  request_id = getattr(request.state, "request_id", None)
  sanitized_errors = _sanitize_validation_errors(exc.errors())
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=_error_payload(sanitized_errors, request_id=request_id))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Handle FastAPI HTTPExceptions while avoiding leaking internal diagnostics."""
  from astrawrite.config import get_settings

  settings = get_settings()
  request_id = getattr(request.state, "request_id", None)
  # Log 5xx HTTPExceptions with a traceback for diagnostics; do not expose `exc.detail` to callers.
  if exc.status_code >= 500:
    logger = logging.getLogger("uvicorn.error")
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=True)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  if settings.log_http_4xx:
    logger = logging.getLogger("uvicorn.error")
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, _sanitize_http_detail(exc.detail))

  return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.detail, request_id=request_id), headers=exc.headers)


# Order matters: subclasses must precede their bases.
_DOMAIN_STATUS: tuple[tuple[type[Exception], int], ...] = (
  (ModelConfigurationError, status.HTTP_400_BAD_REQUEST),
  (WordPressConfigurationError, status.HTTP_400_BAD_REQUEST),
  (WordPressPublishError, status.HTTP_502_BAD_GATEWAY),
  (ApiKeyNotFoundError, status.HTTP_404_NOT_FOUND),
  (EditorBusyError, status.HTTP_409_CONFLICT),
  (BulkRunInProgressError, status.HTTP_409_CONFLICT),
  (InvalidClusterPlanError, status.HTTP_502_BAD_GATEWAY),
  (StructuredOutputError, status.HTTP_502_BAD_GATEWAY),
)

DOMAIN_EXCEPTIONS: tuple[type[Exception], ...] = tuple(exc_type for exc_type, _ in _DOMAIN_STATUS)


def _domain_detail(exc: Exception) -> str:
  if isinstance(exc, ApiKeyNotFoundError):
    return "API key not found."
  return str(exc) or type(exc).__name__


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Translate domain failures raised by services into client-facing errors."""
  request_id = getattr(request.state, "request_id", None)
  status_code = next((code for exc_type, code in _DOMAIN_STATUS if isinstance(exc, exc_type)), status.HTTP_500_INTERNAL_SERVER_ERROR)
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Domain error request_id=%s path=%s error_type=%s status_code=%s detail=%s", request_id, request.url.path, type(exc).__name__, status_code, exc)
  return JSONResponse(status_code=status_code, content=_error_payload(_domain_detail(exc), request_id=request_id))
