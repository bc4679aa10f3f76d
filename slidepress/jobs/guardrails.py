"""Size limits applied to job records before they are written to DynamoDB.

DynamoDB rejects items above 400 KB. A finished job can carry a full Markdown
deck plus its rendered HTML, so payloads and logs are trimmed here first.
"""

from __future__ import annotations

import json
from collections.abc import MutableMapping
from typing import Any

MAX_ITEM_BYTES = 380_000
MAX_LOG_ENTRY_BYTES = 2_000
MAX_LOG_ENTRIES = 200
MAX_PAYLOAD_BYTES = 170_000

LOGS_DROPPED_MARKER = "<logs truncated to satisfy DynamoDB item size>"


def estimate_bytes(value: Any) -> int:
  """Compact JSON length, a close upper bound on the stored attribute size."""
  encoded = json.dumps(value, ensure_ascii=True, separators=(",", ":"), default=str)
  return len(encoded)


def sanitize_logs(logs: list[str]) -> list[str]:
  """Keep the newest MAX_LOG_ENTRIES entries, each cut to MAX_LOG_ENTRY_BYTES."""
  newest = logs[-MAX_LOG_ENTRIES:]
  return [entry if len(entry) <= MAX_LOG_ENTRY_BYTES else entry[:MAX_LOG_ENTRY_BYTES] for entry in newest]


def _without_html(payload: dict[str, Any]) -> dict[str, Any]:
  # HTML is rebuilt from the markdown, so it goes first.
  return {**payload, "html": None, "html_truncated": True}


def maybe_truncate_payload(payload: dict[str, Any] | None) -> dict[str, Any] | None:
  """Return the payload unchanged when it fits, otherwise a smaller stand-in."""
  if payload is None or estimate_bytes(payload) <= MAX_PAYLOAD_BYTES:
    return payload

  if "html" in payload:
    slimmed = _without_html(payload)
    if estimate_bytes(slimmed) <= MAX_PAYLOAD_BYTES:
      return slimmed

  serialized = json.dumps(payload, ensure_ascii=True, default=str)
  return {"truncated": True, "preview": serialized[:MAX_PAYLOAD_BYTES], "message": "Result exceeded DynamoDB item size limit and was truncated."}


def enforce_item_size_guardrails(item: MutableMapping[str, Any], *, max_bytes: int = MAX_ITEM_BYTES) -> MutableMapping[str, Any]:
  """Shrink ``item["logs"]`` in place until the item fits within ``max_bytes``.

  The log window is halved until it fits. When even a single entry is too big
  the logs are replaced by one marker line.
  """
  logs = item.get("logs")
  if not isinstance(logs, list):
    return item

  keep = sanitize_logs(logs)
  item["logs"] = keep
  if estimate_bytes(item) <= max_bytes:
    return item

  while len(keep) > 1:
    keep = keep[len(keep) // 2 :]
    item["logs"] = keep
    if estimate_bytes(item) <= max_bytes:
      return item

  item["logs"] = [LOGS_DROPPED_MARKER]
  return item
