import logging
import time
import uuid
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("slidepress.core.middleware")

SENSITIVE_KEYS = frozenset({"password", "token", "key", "apikey", "api_key", "authorization", "cookie", "secret", "githubtoken", "github_token", "githubpat"})

# Clients poll job status every couple of seconds; successful polls log at DEBUG.
_POLL_PREFIX = "/v1/jobs/"
_QUIET_PATHS = frozenset({"/health"})


def _build_request_url(scope: Scope) -> str:
  """Build a loggable path with secrets in the query string masked."""
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if not query_string:
    return path
  pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
  masked = [(key, "***" if key.lower() in SENSITIVE_KEYS else value) for key, value in pairs]
  return f"{path}?{urlencode(masked)}"


def _log_level(method: str, path: str, status_code: int) -> int:
  if status_code >= 500:
    return logging.ERROR
  if status_code < 400 and method == "GET" and (path in _QUIET_PATHS or path.startswith(_POLL_PREFIX)):
    return logging.DEBUG
  return logging.INFO


class RequestLoggingMiddleware:
  """Log one line per request with status and timing, and echo a request id header."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = uuid.uuid4().hex
    # Exception handlers read this back through request.state.
    scope.setdefault("state", {})["request_id"] = request_id
    method = scope.get("method", "UNKNOWN")
    started = time.perf_counter()
    status_code = 0

    async def send_with_request_id(message: Message) -> None:
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
        headers = MutableHeaders(scope=message)
        headers.setdefault("x-request-id", request_id)
      await send(message)

    try:
      await self.app(scope, receive, send_with_request_id)
    finally:
      elapsed_ms = (time.perf_counter() - started) * 1000
      level = _log_level(method, scope.get("path", ""), status_code or 500)
      logger.log(level, "%s %s -> %s in %.1fms request_id=%s", method, _build_request_url(scope), status_code or "error", elapsed_ms, request_id)
