import logging

import httpx
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from slidepress.api.deps import get_github_transport
from slidepress.api.models import GitHubValidateRequest, GitHubValidateResponse
from slidepress.config import Settings, get_settings
from slidepress.deploy.github import GitHubCredentialsError, validate_credentials

router = APIRouter()
logger = logging.getLogger("slidepress.api.routes.github")


@router.post("/validate", response_model=GitHubValidateResponse, response_model_exclude_none=True, responses={401: {"model": GitHubValidateResponse}})
async def validate_github(  # noqa: B008
  payload: GitHubValidateRequest,
  settings: Settings = Depends(get_settings),  # noqa: B008
  transport: httpx.AsyncBaseTransport | None = Depends(get_github_transport),  # noqa: B008
) -> GitHubValidateResponse | JSONResponse:
  """Check that a personal access token belongs to the given GitHub user."""
  try:
    result = await validate_credentials(payload.username, payload.token, api_url=settings.github_api_url, timeout_seconds=settings.github_timeout_seconds, transport=transport)
  except GitHubCredentialsError as exc:
    logger.info("GitHub credential check failed for %s", payload.username)
    body = GitHubValidateResponse(valid=False, error=str(exc))
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=body.model_dump(by_alias=True, exclude_none=True))
  return GitHubValidateResponse.model_validate(result)
