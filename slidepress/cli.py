from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from slidepress.render.options import THEMES, TRANSITIONS

logger = logging.getLogger("slidepress.cli")

DEFAULT_SERVER = "http://127.0.0.1:8000"


class CliError(RuntimeError):
  """Raised when the CLI cannot finish a job."""


def _build_payload(args: argparse.Namespace) -> dict[str, Any]:
  """Translate CLI flags into the camelCase submission body."""
  payload: dict[str, Any] = {"topic": args.topic, "slideCount": args.slides, "testMode": args.test_mode, "theme": args.theme, "transition": args.transition}
  optional = {"provider": args.provider, "model": args.model, "apiKey": args.api_key, "audience": args.audience, "tone": args.tone}
  payload.update({key: value for key, value in optional.items() if value})
  return payload


def submit_job(client: httpx.Client, payload: dict[str, Any]) -> dict[str, Any]:
  response = client.post("/v1/jobs", json=payload)
  if response.status_code != 202:
    raise CliError(f"Submission rejected ({response.status_code}): {response.text}")
  return response.json()


def poll_job(client: httpx.Client, poll_url: str, *, interval: float = 2.0, max_attempts: int = 150, max_not_found: int = 5, sleep: Callable[[float], None] = time.sleep) -> dict[str, Any]:
  """Poll until the job reaches a terminal state.

  A freshly submitted job can briefly read as not found on eventually
  consistent stores, so a few 404s are tolerated before giving up.
  """
  not_found = 0
  for attempt in range(1, max_attempts + 1):
    sleep(interval)
    response = client.get(poll_url)
    if response.status_code == 404:
      not_found += 1
      if not_found >= max_not_found:
        raise CliError(f"Job not found after {not_found} attempts.")
      continue
    if response.status_code != 200:
      raise CliError(f"Polling failed ({response.status_code}): {response.text}")

    not_found = 0
    job = response.json()
    logger.info("Attempt %d: %s %s%% %s", attempt, job.get("status"), job.get("progress"), job.get("message", ""))
    if job.get("status") in {"completed", "failed"}:
      return job

  raise CliError(f"Job did not finish after {max_attempts} attempts.")


def run_generate(args: argparse.Namespace, *, transport: httpx.BaseTransport | None = None, sleep: Callable[[float], None] = time.sleep) -> int:
  with httpx.Client(base_url=args.server, timeout=30.0, transport=transport) as client:
    created = submit_job(client, _build_payload(args))
    logger.info("Submitted job %s", created["jobId"])
    job = poll_job(client, created["pollUrl"], interval=args.poll_interval, max_attempts=args.max_attempts, max_not_found=args.max_not_found, sleep=sleep)

  if job["status"] == "failed":
    print(f"Job failed: {job.get('error')}", file=sys.stderr)
    return 1

  data = job.get("data") or {}
  output = Path(args.output)
  output.write_text(data.get("html") or "", encoding="utf-8")
  slides = data.get("slides") or {}
  print(f"Wrote {slides.get('slideCount', '?')} slides to {output}")
  deployment = data.get("deployment")
  if deployment:
    print(f"Published at {deployment['url']}")
  return 0


def run_serve(args: argparse.Namespace) -> int:
  import uvicorn

  uvicorn.run("slidepress.main:app", host=args.host, port=args.port, reload=args.reload)
  return 0


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(prog="slidepress", description="Generate reveal.js slide decks with an LLM.")
  subparsers = parser.add_subparsers(dest="command", required=True)

  generate = subparsers.add_parser("generate", help="Submit a job and wait for the HTML.")
  generate.add_argument("--topic", required=True)
  generate.add_argument("--slides", type=int, default=8)
  generate.add_argument("--test-mode", action="store_true", help="Use the deterministic sample generator.")
  generate.add_argument("--provider", choices=["openai", "anthropic", "gemini"])
  generate.add_argument("--model")
  generate.add_argument("--api-key", help="Provider API key (defaults to the server key).")
  generate.add_argument("--audience")
  generate.add_argument("--tone")
  generate.add_argument("--theme", choices=THEMES, default="black")
  generate.add_argument("--transition", choices=TRANSITIONS, default="slide")
  generate.add_argument("--server", default=DEFAULT_SERVER)
  generate.add_argument("--output", default="presentation.html")
  generate.add_argument("--poll-interval", type=float, default=2.0)
  generate.add_argument("--max-attempts", type=int, default=150)
  generate.add_argument("--max-not-found", type=int, default=5)
  generate.set_defaults(handler=run_generate)

  serve = subparsers.add_parser("serve", help="Run the API server.")
  serve.add_argument("--host", default="127.0.0.1")
  serve.add_argument("--port", type=int, default=8000)
  serve.add_argument("--reload", action="store_true")
  serve.set_defaults(handler=run_serve)
  return parser


def main(argv: list[str] | None = None) -> int:
  parser = build_parser()
  args = parser.parse_args(argv)
  logging.basicConfig(level=logging.INFO, format="%(message)s")
  try:
    return args.handler(args)
  except (CliError, httpx.HTTPError) as exc:
    print(f"error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
  raise SystemExit(main())
