import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from slidepress.ai.generator import SlideGenerator
from slidepress.api.deps import get_deployer_factory, get_repo, get_slide_generator
from slidepress.api.models import GenerateSlidesRequest, JobCreateResponse, JobStatusResponse
from slidepress.config import Settings, get_settings
from slidepress.jobs.worker import DeployerFactory
from slidepress.services import jobs as job_service
from slidepress.storage.jobs_repo import JobsRepository

router = APIRouter()
logger = logging.getLogger("slidepress.api.routes.jobs")


@router.post("", response_model=JobCreateResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_job(  # noqa: B008
  request: GenerateSlidesRequest,
  background_tasks: BackgroundTasks,
  settings: Settings = Depends(get_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_repo),  # noqa: B008
  generator: SlideGenerator = Depends(get_slide_generator),  # noqa: B008
  deployer_factory: DeployerFactory | None = Depends(get_deployer_factory),  # noqa: B008
) -> JobCreateResponse:
  """Accept a slide generation job and process it in the background."""
  return await job_service.create_job(request, settings, background_tasks, jobs_repo=jobs_repo, generator=generator, deployer_factory=deployer_factory)


@router.get("/{job_id}", response_model=JobStatusResponse, response_model_exclude_none=True)
async def get_job_status(  # noqa: B008
  job_id: str,
  jobs_repo: JobsRepository = Depends(get_repo),  # noqa: B008
) -> JobStatusResponse:
  """Fetch the status and result of a background job."""
  return await job_service.get_job_status(job_id, jobs_repo=jobs_repo)
