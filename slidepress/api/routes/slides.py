from fastapi import APIRouter, Depends

from slidepress.ai.generator import SlideGenerator
from slidepress.api.deps import get_deployer_factory, get_repo, get_slide_generator
from slidepress.api.models import GenerateSlidesRequest, JobStatusResponse
from slidepress.config import Settings, get_settings
from slidepress.jobs.worker import DeployerFactory
from slidepress.services import jobs as job_service
from slidepress.storage.jobs_repo import JobsRepository

router = APIRouter()


@router.post("/generate", response_model=JobStatusResponse, response_model_exclude_none=True)
async def generate_slides(  # noqa: B008
  request: GenerateSlidesRequest,
  settings: Settings = Depends(get_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_repo),  # noqa: B008
  generator: SlideGenerator = Depends(get_slide_generator),  # noqa: B008
  deployer_factory: DeployerFactory | None = Depends(get_deployer_factory),  # noqa: B008
) -> JobStatusResponse:
  """Generate, render and optionally deploy within the request."""
  return await job_service.generate_sync(request, settings, jobs_repo=jobs_repo, generator=generator, deployer_factory=deployer_factory)
