import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from types import TracebackType

from slidepress.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Server loggers that otherwise install their own handlers.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")
# SDK transports log every request at DEBUG.
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpcore", "httpx", "openai", "anthropic", "google_genai")

_log_file_path: Path | None = None


class TruncatedFormatter(logging.Formatter):
  """Console formatter that keeps only the head and tail of a traceback."""

  def __init__(self, *args: object, tail_frames: int = 5, **kwargs: object) -> None:
    super().__init__(*args, **kwargs)  # type: ignore[arg-type]
    self._tail_frames = tail_frames

  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:  # noqa: N802
    lines = traceback.format_exception(*ei)
    if len(lines) <= self._tail_frames + 1:
      return "".join(lines)
    return "".join([lines[0], "    ...\n", *lines[-self._tail_frames :]])


def _rotated_name(default_name: str) -> str:
  """Name backups slidepress_x.log-1 rather than slidepress_x.log.1."""
  base, _, suffix = default_name.rpartition(".")
  return f"{base}-{suffix}" if base and suffix.isdigit() else default_name


def _file_handler(settings: Settings) -> tuple[logging.Handler, Path]:
  try:
    settings.log_dir.mkdir(parents=True, exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log directory at {settings.log_dir}: {exc}") from exc

  log_path = settings.log_dir / f"slidepress_{settings.environment}_{time.strftime('%Y%m%d_%H%M%S')}.log"
  handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  handler.namer = _rotated_name
  # Files keep full tracebacks; only the console is truncated.
  handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return handler, log_path


def setup_logging(settings: Settings) -> Path:
  """Send the root logger and the server loggers to stdout and a rotating file."""
  console = logging.StreamHandler(sys.stdout)
  console.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  file_handler, log_path = _file_handler(settings)
  handlers: list[logging.Handler] = [console, file_handler]

  logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO, handlers=handlers, force=True)
  for name in _SERVER_LOGGERS:
    server_logger = logging.getLogger(name)
    server_logger.handlers = list(handlers)
    server_logger.propagate = False
  for name in _NOISY_LOGGERS:
    logging.getLogger(name).setLevel(logging.WARNING)
  return log_path


def initialize_logging(settings: Settings) -> Path:
  """Configure logging on first call and return the active log file."""
  global _log_file_path
  if _log_file_path is None:
    _log_file_path = setup_logging(settings)
    logging.getLogger(__name__).info("Logging initialized. Writing to %s", _log_file_path)
  return _log_file_path
