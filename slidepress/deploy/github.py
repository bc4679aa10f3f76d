"""Publish rendered presentations to a GitHub Pages branch.

Every sub-step is idempotent: an existing repository, branch or Pages site is
treated as already done, and file writes are create-or-update keyed on the
blob SHA GitHub reports for the current file.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

PAGES_BRANCH = "gh-pages"
REPO_DESCRIPTION = "AI-generated presentation published with SlidePress"
_GITHUB_ACCEPT = "application/vnd.github+json"
_GITHUB_API_VERSION = "2022-11-28"
_STALE_SHA_STATUSES = {409, 422}


class DeploymentError(RuntimeError):
  """Raised when a deployment sub-step fails."""

  def __init__(self, step: str, detail: str) -> None:
    super().__init__(f"GitHub deployment failed at {step}: {detail}")
    self.step = step
    self.detail = detail


class GitHubCredentialsError(RuntimeError):
  """Raised when a token cannot be used for the given username."""


@dataclass(frozen=True)
class DeployFile:
  """A file to publish at ``path`` on the Pages branch."""

  path: str
  content: bytes


def _error_detail(response: httpx.Response) -> str:
  try:
    payload = response.json()
  except ValueError:
    payload = None
  if isinstance(payload, dict) and payload.get("message"):
    return f"{response.status_code} {payload['message']}"
  return f"{response.status_code} {response.text[:200] or response.reason_phrase}"


def _build_client(token: str, *, api_url: str, timeout_seconds: float, transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
  headers = {"Authorization": f"Bearer {token}", "Accept": _GITHUB_ACCEPT, "X-GitHub-Api-Version": _GITHUB_API_VERSION, "User-Agent": "slidepress"}
  return httpx.AsyncClient(base_url=api_url, headers=headers, timeout=timeout_seconds, transport=transport, trust_env=False)


def _json_object(response: httpx.Response, step: str) -> dict[str, Any]:
  try:
    payload = response.json()
  except ValueError as exc:
    raise DeploymentError(step, f"{response.status_code} response is not JSON") from exc
  if not isinstance(payload, dict):
    raise DeploymentError(step, f"{response.status_code} response is not a JSON object")
  return payload


async def _fetch_authenticated_user(client: httpx.AsyncClient, username: str) -> dict[str, Any]:
  try:
    response = await client.get("/user")
  except httpx.RequestError as exc:
    raise GitHubCredentialsError(f"Invalid GitHub credentials: {exc}") from exc
  if response.status_code != 200:
    raise GitHubCredentialsError(f"Invalid GitHub credentials: {_error_detail(response)}")
  try:
    data = response.json()
  except ValueError as exc:
    raise GitHubCredentialsError("Invalid GitHub credentials: /user returned a non-JSON body") from exc
  login = str(data.get("login") or "") if isinstance(data, dict) else ""
  if not login:
    raise GitHubCredentialsError("Invalid GitHub credentials: /user response has no login")
  if login.lower() != username.lower():
    raise GitHubCredentialsError(f"Invalid GitHub credentials: Token belongs to {login}, not {username}")
  return data


async def validate_credentials(username: str, token: str, *, api_url: str = "https://api.github.com", timeout_seconds: float = 30.0, transport: httpx.AsyncBaseTransport | None = None) -> dict[str, Any]:
  """Check that ``token`` authenticates as ``username``."""
  async with _build_client(token, api_url=api_url, timeout_seconds=timeout_seconds, transport=transport) as client:
    data = await _fetch_authenticated_user(client, username)
  return {"valid": True, "username": data["login"], "name": data.get("name"), "publicRepos": data.get("public_repos")}


class GitHubPagesDeployer:
  """Create the repository and branch if needed, upload files and enable Pages."""

  def __init__(
    self,
    *,
    token: str,
    api_url: str = "https://api.github.com",
    timeout_seconds: float = 30.0,
    sha_retries: int = 2,
    repo_ready_delay: float = 2.0,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
  ) -> None:
    self._token = token
    self._api_url = api_url
    self._timeout_seconds = timeout_seconds
    self._sha_retries = max(sha_retries, 0)
    self._repo_ready_delay = repo_ready_delay
    self._transport = transport
    self._sleep = sleep

  async def deploy(self, *, username: str, repo_name: str, files: Sequence[DeployFile]) -> dict[str, Any]:
    """Publish ``files`` and return the public Pages URL."""
    logger.info("Deploying %d file(s) to %s/%s", len(files), username, repo_name)
    async with _build_client(self._token, api_url=self._api_url, timeout_seconds=self._timeout_seconds, transport=self._transport) as client:
      step = "verify_credentials"
      try:
        owner = await self.verify_credentials(client, username)
        step = "ensure_repository"
        await self.ensure_repository(client, owner, repo_name)
        step = "ensure_branch"
        await self.ensure_branch(client, owner, repo_name)
        step = "upload_files"
        await self.upload_files(client, owner, repo_name, files)
        step = "enable_pages"
        await self.enable_pages(client, owner, repo_name)
      except (httpx.RequestError, ValueError, KeyError, TypeError) as exc:
        # Transport failures and malformed response bodies.
        raise DeploymentError(step, str(exc) or exc.__class__.__name__) from exc

    url = f"https://{username}.github.io/{repo_name}"
    logger.info("Deployed presentation to %s", url)
    return {"success": True, "url": url, "username": username, "repoName": repo_name, "repository": f"https://github.com/{owner}/{repo_name}", "branch": PAGES_BRANCH}

  async def verify_credentials(self, client: httpx.AsyncClient, username: str) -> str:
    try:
      data = await _fetch_authenticated_user(client, username)
    except GitHubCredentialsError as exc:
      raise DeploymentError("verify_credentials", str(exc)) from exc
    return str(data["login"])

  async def ensure_repository(self, client: httpx.AsyncClient, owner: str, repo_name: str) -> bool:
    """Return True when the repository had to be created."""
    response = await client.get(f"/repos/{owner}/{repo_name}")
    if response.status_code == 200:
      logger.info("Repository %s/%s exists", owner, repo_name)
      return False
    if response.status_code != 404:
      raise DeploymentError("ensure_repository", _error_detail(response))

    created = await client.post("/user/repos", json={"name": repo_name, "description": REPO_DESCRIPTION, "auto_init": True, "private": False})
    if created.status_code != 201:
      raise DeploymentError("ensure_repository", _error_detail(created))
    logger.info("Created repository %s/%s", owner, repo_name)
    # GitHub needs a moment before the initial commit is readable.
    if self._repo_ready_delay > 0:
      await self._sleep(self._repo_ready_delay)
    return True

  async def ensure_branch(self, client: httpx.AsyncClient, owner: str, repo_name: str) -> bool:
    """Return True when the Pages branch had to be created."""
    response = await client.get(f"/repos/{owner}/{repo_name}/branches/{PAGES_BRANCH}")
    if response.status_code == 200:
      return False
    if response.status_code != 404:
      raise DeploymentError("ensure_branch", _error_detail(response))

    repo = await client.get(f"/repos/{owner}/{repo_name}")
    if repo.status_code != 200:
      raise DeploymentError("ensure_branch", _error_detail(repo))
    default_branch = _json_object(repo, "ensure_branch").get("default_branch") or "main"

    ref = await client.get(f"/repos/{owner}/{repo_name}/git/ref/heads/{default_branch}")
    if ref.status_code != 200:
      raise DeploymentError("ensure_branch", _error_detail(ref))
    ref_object = _json_object(ref, "ensure_branch").get("object")
    base_sha = ref_object.get("sha") if isinstance(ref_object, dict) else None
    if not isinstance(base_sha, str) or not base_sha:
      raise DeploymentError("ensure_branch", f"{default_branch} ref has no commit sha")

    created = await client.post(f"/repos/{owner}/{repo_name}/git/refs", json={"ref": f"refs/heads/{PAGES_BRANCH}", "sha": base_sha})
    if created.status_code == 201:
      logger.info("Created %s branch from %s", PAGES_BRANCH, default_branch)
      return True
    # Another deploy created the branch between our check and this call.
    if created.status_code == 422 and "already exists" in created.text.lower():
      return False
    raise DeploymentError("ensure_branch", _error_detail(created))

  async def upload_files(self, client: httpx.AsyncClient, owner: str, repo_name: str, files: Sequence[DeployFile]) -> None:
    for deploy_file in files:
      await self._upload_file(client, owner, repo_name, deploy_file)

  async def enable_pages(self, client: httpx.AsyncClient, owner: str, repo_name: str) -> bool:
    """Return True when Pages was newly enabled."""
    response = await client.post(f"/repos/{owner}/{repo_name}/pages", json={"source": {"branch": PAGES_BRANCH, "path": "/"}})
    if response.status_code == 201:
      logger.info("Enabled GitHub Pages for %s/%s", owner, repo_name)
      return True
    if response.status_code == 409 or (response.status_code == 422 and "already" in response.text.lower()):
      logger.info("GitHub Pages already enabled for %s/%s", owner, repo_name)
      return False
    raise DeploymentError("enable_pages", _error_detail(response))

  async def _upload_file(self, client: httpx.AsyncClient, owner: str, repo_name: str, deploy_file: DeployFile) -> None:
    encoded = base64.b64encode(deploy_file.content).decode("ascii")
    sha = await self._get_file_sha(client, owner, repo_name, deploy_file.path)
    retries = 0
    while True:
      payload: dict[str, Any] = {"message": f"Update {deploy_file.path}" if sha else f"Add {deploy_file.path}", "content": encoded, "branch": PAGES_BRANCH}
      if sha:
        payload["sha"] = sha
      response = await client.put(f"/repos/{owner}/{repo_name}/contents/{deploy_file.path}", json=payload)
      if response.status_code in (200, 201):
        logger.info("Uploaded %s", deploy_file.path)
        return
      # A stale or missing SHA means the file changed under us; refetch and retry.
      if response.status_code in _STALE_SHA_STATUSES and retries < self._sha_retries:
        retries += 1
        logger.warning("SHA conflict uploading %s (attempt %d/%d)", deploy_file.path, retries, self._sha_retries)
        sha = await self._get_file_sha(client, owner, repo_name, deploy_file.path)
        continue
      raise DeploymentError("upload_files", f"{deploy_file.path}: {_error_detail(response)}")

  async def _get_file_sha(self, client: httpx.AsyncClient, owner: str, repo_name: str, path: str) -> str | None:
    response = await client.get(f"/repos/{owner}/{repo_name}/contents/{path}", params={"ref": PAGES_BRANCH})
    if response.status_code == 404:
      return None
    if response.status_code != 200:
      raise DeploymentError("upload_files", f"{path}: {_error_detail(response)}")
    data = response.json()
    if not isinstance(data, dict):
      raise DeploymentError("upload_files", f"{path} is a directory on {PAGES_BRANCH}")
    return data.get("sha")

