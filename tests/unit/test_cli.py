"""Tests for the command line client."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from slidepress.cli import CliError, build_parser, poll_job, run_generate


def _job(status: str, progress: int, **extra: object) -> dict:
  return {"id": "job-1", "status": status, "progress": progress, "message": "working", **extra}


class FakeServer:
  """Serve a submission and a scripted sequence of poll responses."""

  def __init__(self, polls: list[httpx.Response]) -> None:
    self.polls = polls
    self.submitted: list[dict] = []

  def handler(self, request: httpx.Request) -> httpx.Response:
    if request.method == "POST" and request.url.path == "/v1/jobs":
      self.submitted.append(json.loads(request.content))
      return httpx.Response(202, json={"success": True, "jobId": "job-1", "message": "Job started.", "pollUrl": "/v1/jobs/job-1"})
    assert request.url.path == "/v1/jobs/job-1"
    return self.polls.pop(0)


def test_poll_job_tolerates_early_not_found() -> None:
  server = FakeServer([httpx.Response(404, json={"detail": "Job not found."}), httpx.Response(200, json=_job("processing", 10)), httpx.Response(200, json=_job("completed", 100))])
  sleeps: list[float] = []
  with httpx.Client(base_url="http://test", transport=httpx.MockTransport(server.handler)) as client:
    job = poll_job(client, "/v1/jobs/job-1", interval=0.5, sleep=sleeps.append)
  assert job["status"] == "completed"
  assert sleeps == [0.5, 0.5, 0.5]


def test_poll_job_gives_up_on_repeated_not_found() -> None:
  server = FakeServer([httpx.Response(404, json={"detail": "Job not found."}) for _ in range(3)])
  with httpx.Client(base_url="http://test", transport=httpx.MockTransport(server.handler)) as client:
    with pytest.raises(CliError, match="not found"):
      poll_job(client, "/v1/jobs/job-1", max_not_found=3, sleep=lambda _: None)


def test_poll_job_stops_after_max_attempts() -> None:
  server = FakeServer([httpx.Response(200, json=_job("processing", 10)) for _ in range(2)])
  with httpx.Client(base_url="http://test", transport=httpx.MockTransport(server.handler)) as client:
    with pytest.raises(CliError, match="did not finish after 2 attempts"):
      poll_job(client, "/v1/jobs/job-1", max_attempts=2, sleep=lambda _: None)


def test_generate_writes_html(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
  output = tmp_path / "deck.html"
  data = {"slides": {"slideCount": 5}, "html": "<html>deck</html>"}
  server = FakeServer([httpx.Response(200, json=_job("completed", 100, data=data))])
  args = build_parser().parse_args(["generate", "--topic", "History of coffee", "--slides", "5", "--test-mode", "--theme", "moon", "--output", str(output)])

  assert run_generate(args, transport=httpx.MockTransport(server.handler), sleep=lambda _: None) == 0

  assert server.submitted == [{"topic": "History of coffee", "slideCount": 5, "testMode": True, "theme": "moon", "transition": "slide"}]
  assert output.read_text(encoding="utf-8") == "<html>deck</html>"
  assert "Wrote 5 slides" in capsys.readouterr().out


def test_generate_reports_failed_job(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
  server = FakeServer([httpx.Response(200, json=_job("failed", 10, error="Generation failed: Authentication failed for provider 'openai': bad key"))])
  args = build_parser().parse_args(["generate", "--topic", "Coffee", "--provider", "openai", "--model", "gpt-4o-mini", "--api-key", "bad", "--output", str(tmp_path / "out.html")])

  assert run_generate(args, transport=httpx.MockTransport(server.handler), sleep=lambda _: None) == 1
  assert server.submitted[0]["apiKey"] == "bad"
  assert "Authentication failed" in capsys.readouterr().err
  assert not (tmp_path / "out.html").exists()
