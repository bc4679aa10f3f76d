"""Tests for the GitHub Pages deployer against a fake GitHub API."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from slidepress.deploy.github import PAGES_BRANCH, DeployFile, DeploymentError, GitHubCredentialsError, GitHubPagesDeployer, validate_credentials

API = "https://api.github.test"


class FakeGitHub:
  """In-memory GitHub REST API covering the endpoints the deployer calls."""

  def __init__(self, *, login: str = "octo", repo_exists: bool = False, branch_exists: bool = False, pages_enabled: bool = False) -> None:
    self.login = login
    self.repos: set[str] = {"deck"} if repo_exists else set()
    self.branches: set[str] = {"deck"} if branch_exists else set()
    self.files: dict[str, str] = {}
    self.pages_enabled = pages_enabled
    self.requests: list[tuple[str, str]] = []
    self.branch_race = False
    self.stale_sha_conflicts = 0
    self.pages_status: int | None = None
    self.fail_path: str | None = None
    # (path, n): the n-th request to exactly this path raises a transport error.
    self.fail_nth: tuple[str, int] | None = None
    self.ref_payload: Any = {"object": {"sha": "base-sha"}}
    self.user_body: bytes | None = None
    self._sha_counter = 0

  def _next_sha(self) -> str:
    self._sha_counter += 1
    return f"sha-{self._sha_counter}"

  def handler(self, request: httpx.Request) -> httpx.Response:
    method, path = request.method, request.url.path
    self.requests.append((method, path))
    assert request.headers["authorization"] == "Bearer ghp_test"
    if self.fail_path and path.endswith(self.fail_path):
      raise httpx.ConnectError("connection refused", request=request)
    if self.fail_nth and path == self.fail_nth[0] and [p for _, p in self.requests].count(path) == self.fail_nth[1]:
      raise httpx.ConnectError("connection reset", request=request)

    if path == "/user" and self.user_body is not None:
      return httpx.Response(200, content=self.user_body)
    if path == "/user":
      return httpx.Response(200, json={"login": self.login, "name": "Octo Cat", "public_repos": 4})
    if path == "/user/repos" and method == "POST":
      name = json.loads(request.content)["name"]
      self.repos.add(name)
      return httpx.Response(201, json={"name": name})

    parts = path.split("/")
    repo = parts[3]
    if repo not in self.repos:
      return httpx.Response(404, json={"message": "Not Found"})
    rest = "/".join(parts[4:])

    if rest == "":
      return httpx.Response(200, json={"name": repo, "default_branch": "main"})
    if rest == f"branches/{PAGES_BRANCH}":
      return httpx.Response(200, json={"name": PAGES_BRANCH}) if repo in self.branches else httpx.Response(404, json={"message": "Branch not found"})
    if rest == "git/ref/heads/main":
      return httpx.Response(200, json=self.ref_payload)
    if rest == "git/refs" and method == "POST":
      if self.branch_race:
        self.branches.add(repo)
        return httpx.Response(422, json={"message": "Reference already exists"})
      self.branches.add(repo)
      return httpx.Response(201, json={"ref": f"refs/heads/{PAGES_BRANCH}"})
    if rest.startswith("contents/"):
      return self._contents(request, rest[len("contents/") :])
    if rest == "pages" and method == "POST":
      if self.pages_status is not None:
        return httpx.Response(self.pages_status, json={"message": "Pages unavailable"})
      if self.pages_enabled:
        return httpx.Response(409, json={"message": "GitHub Pages is already enabled."})
      self.pages_enabled = True
      return httpx.Response(201, json={"html_url": f"https://{self.login}.github.io/{repo}/"})
    return httpx.Response(500, json={"message": f"unexpected {method} {path}"})

  def _contents(self, request: httpx.Request, file_path: str) -> httpx.Response:
    if request.method == "GET":
      assert request.url.params["ref"] == PAGES_BRANCH
      sha = self.files.get(file_path)
      return httpx.Response(200, json={"sha": sha, "path": file_path}) if sha else httpx.Response(404, json={"message": "Not Found"})

    payload = json.loads(request.content)
    assert payload["branch"] == PAGES_BRANCH
    current = self.files.get(file_path)
    if self.stale_sha_conflicts > 0:
      # Someone else pushes between our read and write.
      self.stale_sha_conflicts -= 1
      self.files[file_path] = self._next_sha()
      return httpx.Response(409, json={"message": "is at a different sha"})
    if current is not None and payload.get("sha") != current:
      return httpx.Response(409, json={"message": "sha mismatch"})
    self.files[file_path] = self._next_sha()
    return httpx.Response(200 if current else 201, json={"content": {"sha": self.files[file_path]}})


class RecordingSleep:
  def __init__(self) -> None:
    self.calls: list[float] = []

  async def __call__(self, seconds: float) -> None:
    self.calls.append(seconds)


FILES = [DeployFile(path="index.html", content=b"<html></html>"), DeployFile(path="slides.md", content=b"# Hi")]


def _deployer(github: FakeGitHub, **kwargs: Any) -> tuple[GitHubPagesDeployer, RecordingSleep]:
  sleep = RecordingSleep()
  deployer = GitHubPagesDeployer(token="ghp_test", api_url=API, transport=httpx.MockTransport(github.handler), sleep=sleep, repo_ready_delay=kwargs.pop("repo_ready_delay", 2.0), **kwargs)
  return deployer, sleep


@pytest.mark.anyio
async def test_deploy_creates_repository_branch_and_pages() -> None:
  github = FakeGitHub()
  deployer, sleep = _deployer(github)

  result = await deployer.deploy(username="octo", repo_name="deck", files=FILES)

  assert result["success"] is True
  assert result["url"] == "https://octo.github.io/deck"
  assert result["repository"] == "https://github.com/octo/deck"
  assert result["branch"] == PAGES_BRANCH
  assert "deck" in github.repos and "deck" in github.branches
  assert set(github.files) == {"index.html", "slides.md"}
  assert github.pages_enabled is True
  assert sleep.calls == [2.0]


@pytest.mark.anyio
async def test_redeploy_is_idempotent() -> None:
  github = FakeGitHub(repo_exists=True, branch_exists=True, pages_enabled=True)
  github.files = {"index.html": "old-sha"}
  deployer, sleep = _deployer(github)

  result = await deployer.deploy(username="octo", repo_name="deck", files=FILES)

  assert result["success"] is True
  assert github.files["index.html"] != "old-sha"
  assert ("POST", "/user/repos") not in github.requests
  assert ("POST", "/repos/octo/deck/git/refs") not in github.requests
  assert sleep.calls == []


@pytest.mark.anyio
async def test_branch_created_concurrently_counts_as_present() -> None:
  github = FakeGitHub(repo_exists=True)
  github.branch_race = True
  deployer, _ = _deployer(github)

  result = await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert result["success"] is True


@pytest.mark.anyio
async def test_stale_sha_is_refetched_and_retried() -> None:
  github = FakeGitHub(repo_exists=True, branch_exists=True)
  github.stale_sha_conflicts = 1
  deployer, _ = _deployer(github, sha_retries=2)

  await deployer.deploy(username="octo", repo_name="deck", files=FILES)

  puts = [path for method, path in github.requests if method == "PUT"]
  assert puts.count("/repos/octo/deck/contents/index.html") == 2
  assert puts.count("/repos/octo/deck/contents/slides.md") == 1


@pytest.mark.anyio
async def test_upload_gives_up_after_retry_budget() -> None:
  github = FakeGitHub(repo_exists=True, branch_exists=True)
  github.stale_sha_conflicts = 5
  deployer, _ = _deployer(github, sha_retries=1)

  with pytest.raises(DeploymentError) as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert exc_info.value.step == "upload_files"
  assert "index.html" in str(exc_info.value)


@pytest.mark.anyio
async def test_token_for_another_user_fails_verification() -> None:
  github = FakeGitHub(login="someone-else")
  deployer, _ = _deployer(github)

  with pytest.raises(DeploymentError, match="GitHub deployment failed at verify_credentials") as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert "Token belongs to someone-else" in exc_info.value.detail
  assert github.requests == [("GET", "/user")]


@pytest.mark.anyio
async def test_pages_error_names_the_step() -> None:
  github = FakeGitHub(repo_exists=True, branch_exists=True)
  github.pages_status = 500
  deployer, _ = _deployer(github)

  with pytest.raises(DeploymentError) as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert exc_info.value.step == "enable_pages"
  assert "500 Pages unavailable" in exc_info.value.detail


@pytest.mark.anyio
async def test_transport_error_maps_to_step() -> None:
  github = FakeGitHub(repo_exists=True, branch_exists=True)
  github.fail_path = "/pages"
  deployer, _ = _deployer(github)

  with pytest.raises(DeploymentError) as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert exc_info.value.step == "enable_pages"


@pytest.mark.anyio
async def test_validate_credentials_reports_profile() -> None:
  github = FakeGitHub()
  result = await validate_credentials("Octo", "ghp_test", api_url=API, transport=httpx.MockTransport(github.handler))
  assert result == {"valid": True, "username": "octo", "name": "Octo Cat", "publicRepos": 4}


@pytest.mark.anyio
async def test_validate_credentials_rejects_mismatched_user() -> None:
  github = FakeGitHub(login="someone-else")
  with pytest.raises(GitHubCredentialsError, match="Token belongs to someone-else, not octo"):
    await validate_credentials("octo", "ghp_test", api_url=API, transport=httpx.MockTransport(github.handler))


@pytest.mark.anyio
async def test_transport_error_while_reading_default_branch_names_ensure_branch() -> None:
  github = FakeGitHub(repo_exists=True)
  # The first GET is ensure_repository, the second is ensure_branch looking up the default branch.
  github.fail_nth = ("/repos/octo/deck", 2)
  deployer, _ = _deployer(github)

  with pytest.raises(DeploymentError) as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert exc_info.value.step == "ensure_branch"
  assert "connection reset" in exc_info.value.detail


@pytest.mark.parametrize("ref_payload", [{"ref": "refs/heads/main"}, {"object": None}, ["not", "an", "object"]])
@pytest.mark.anyio
async def test_malformed_ref_body_names_ensure_branch(ref_payload: Any) -> None:
  github = FakeGitHub(repo_exists=True)
  github.ref_payload = ref_payload
  deployer, _ = _deployer(github)

  with pytest.raises(DeploymentError) as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert exc_info.value.step == "ensure_branch"
  assert ("POST", "/repos/octo/deck/git/refs") not in github.requests


@pytest.mark.parametrize("body", [b"<html>maintenance</html>", b'{"name": "no login"}', b"[]"])
@pytest.mark.anyio
async def test_malformed_user_body_fails_verification(body: bytes) -> None:
  github = FakeGitHub()
  github.user_body = body
  deployer, _ = _deployer(github)

  with pytest.raises(DeploymentError) as exc_info:
    await deployer.deploy(username="octo", repo_name="deck", files=FILES)
  assert exc_info.value.step == "verify_credentials"
  assert github.requests == [("GET", "/user")]
