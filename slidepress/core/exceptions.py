"""Exception handlers that keep error bodies uniform: ``{"detail": ..., "requestId": ...}``."""

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from slidepress.config import get_settings

logger = logging.getLogger("slidepress.core.exceptions")

_INTERNAL_ERROR = "Internal Server Error"


def _coerce_json_safe(value: Any) -> Any:
  """Reduce validation context values to JSON primitives."""
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, Mapping):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set | frozenset):
    return [_coerce_json_safe(item) for item in value]
  # Custom validators put the raised exception itself into ctx.
  if isinstance(value, BaseException):
    return f"{type(value).__name__}: {value}" if str(value) else type(value).__name__
  return str(value)


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  if request_id is None:
    return {"detail": detail}
  return {"detail": detail, "requestId": request_id}


def _sanitize_validation_errors(errors: Any) -> list[dict[str, Any]]:
  """Drop echoed request input so topics, prompts and keys never reach logs or clients."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    ctx = scrubbed.get("ctx")
    if isinstance(ctx, Mapping):
      scrubbed["ctx"] = {key: value for key, value in ctx.items() if key != "input"}
    sanitized.append(_coerce_json_safe(scrubbed))
  return sanitized


def _respond(request: Request, status_code: int, detail: Any, *, headers: Mapping[str, str] | None = None) -> JSONResponse:
  request_id = getattr(request.state, "request_id", None)
  return JSONResponse(status_code=status_code, content=_error_payload(detail, request_id=request_id), headers=dict(headers) if headers else None)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Last-resort handler: log the traceback, return an opaque 500."""
  logger.error("Unhandled %s on %s %s request_id=%s", type(exc).__name__, request.method, request.url.path, getattr(request.state, "request_id", None), exc_info=True)
  return _respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, _INTERNAL_ERROR)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  errors = _sanitize_validation_errors(exc.errors())
  logger.warning("Rejected %s %s request_id=%s errors=%s", request.method, request.url.path, getattr(request.state, "request_id", None), errors)
  return _respond(request, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Pass 4xx details through and replace 5xx details with a generic message."""
  if exc.status_code >= 500:
    logger.error("HTTP %s on %s detail=%s", exc.status_code, request.url.path, exc.detail)
    return _respond(request, exc.status_code, _INTERNAL_ERROR)

  if get_settings().log_http_4xx:
    logger.warning("HTTP %s on %s %s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
  return _respond(request, exc.status_code, exc.detail, headers=exc.headers)
