import logging

from fastapi import BackgroundTasks, HTTPException, status

from slidepress.ai.generator import SlideGenerator
from slidepress.ai.providers import SUPPORTED_PROVIDERS
from slidepress.api.models import GenerateSlidesRequest, JobCreateResponse, JobStatusResponse
from slidepress.config import Settings
from slidepress.jobs.models import JobRecord
from slidepress.jobs.progress import new_job_record
from slidepress.jobs.worker import DeployerFactory, JobProcessor, PipelineInputs, run_job
from slidepress.storage.jobs_repo import JobsRepository
from slidepress.utils.ids import generate_job_id

logger = logging.getLogger(__name__)

_JOB_NOT_FOUND_MSG = "Job not found."


def validate_request(request: GenerateSlidesRequest, settings: Settings) -> PipelineInputs:
  """Reject bad submissions before any job exists and resolve pipeline inputs."""
  if len(request.topic) > settings.max_topic_length:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Topic must be at most {settings.max_topic_length} characters.")

  github_fields = (request.github_username, request.github_token, request.repo_name)
  if any(github_fields) and not all(github_fields):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="githubUsername, githubToken and repoName must be provided together.")

  provider = request.provider
  api_key = request.api_key
  if not request.test_mode:
    if provider is not None and provider not in SUPPORTED_PROVIDERS:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported provider: {provider}. Must be one of: {', '.join(SUPPORTED_PROVIDERS)}.")
    # Fall back to the server-side key for the chosen provider.
    if provider is not None and api_key is None:
      api_key = settings.provider_api_key(provider)
    if not (provider and request.model and api_key):
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provider, API key, and model are required unless testMode is enabled.")

  return PipelineInputs(
    topic=request.topic,
    slide_count=request.slide_count or settings.default_slide_count,
    audience=request.audience,
    tone=request.tone,
    topic_type=request.topic_type,
    include_code=request.include_code,
    provider=provider,
    model=request.model,
    api_key=api_key,
    custom_system_prompt=request.custom_system_prompt,
    test_mode=request.test_mode,
    github_username=request.github_username,
    github_token=request.github_token,
    repo_name=request.repo_name,
    render_options=request.render_options(),
  )


def _poll_url(job_id: str, settings: Settings) -> str:
  path = f"/v1/jobs/{job_id}"
  if settings.base_url:
    return f"{settings.base_url.rstrip('/')}{path}"
  return path


def _new_record(request: GenerateSlidesRequest, inputs: PipelineInputs, settings: Settings) -> JobRecord:
  stored_request = request.sanitized()
  stored_request["slideCount"] = inputs.slide_count
  return new_job_record(generate_job_id(), request=stored_request, ttl_seconds=settings.jobs_ttl_seconds)


def job_to_response(record: JobRecord) -> JobStatusResponse:
  return JobStatusResponse(
    job_id=record.job_id,
    status=record.status,
    progress=record.progress,
    message=record.message,
    created_at=record.created_at,
    updated_at=record.updated_at,
    completed_at=record.completed_at,
    failed_at=record.failed_at,
    data=record.data,
    error=record.error,
    artifacts=record.artifacts,
    request=record.request or None,
    logs=record.logs or None,
  )


def trigger_job_processing(background_tasks: BackgroundTasks, record: JobRecord, inputs: PipelineInputs, *, jobs_repo: JobsRepository, settings: Settings, generator: SlideGenerator | None = None, deployer_factory: DeployerFactory | None = None) -> None:
  """Schedule the pipeline to run after the response is sent."""
  background_tasks.add_task(run_job, record, inputs, jobs_repo=jobs_repo, settings=settings, generator=generator, deployer_factory=deployer_factory)


async def create_job(
  request: GenerateSlidesRequest,
  settings: Settings,
  background_tasks: BackgroundTasks,
  *,
  jobs_repo: JobsRepository,
  generator: SlideGenerator | None = None,
  deployer_factory: DeployerFactory | None = None,
) -> JobCreateResponse:
  """Persist a processing record and hand the pipeline to a background task."""
  inputs = validate_request(request, settings)
  record = _new_record(request, inputs, settings)
  await jobs_repo.put_job(record)
  logger.info("Created job %s (slides=%d test_mode=%s deploy=%s)", record.job_id, inputs.slide_count, inputs.test_mode, inputs.wants_deploy)

  if settings.jobs_auto_process:
    trigger_job_processing(background_tasks, record, inputs, jobs_repo=jobs_repo, settings=settings, generator=generator, deployer_factory=deployer_factory)
  else:
    logger.info("Auto-processing disabled; job %s left in processing", record.job_id)

  poll_url = _poll_url(record.job_id, settings)
  return JobCreateResponse(success=True, job_id=record.job_id, message=f"Job started. Poll {poll_url} for status", poll_url=poll_url)


async def get_job_status(job_id: str, *, jobs_repo: JobsRepository) -> JobStatusResponse:
  """Return the current record for ``job_id`` or raise 404."""
  record = await jobs_repo.get_job(job_id)
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  return job_to_response(record)


async def generate_sync(
  request: GenerateSlidesRequest,
  settings: Settings,
  *,
  jobs_repo: JobsRepository,
  generator: SlideGenerator | None = None,
  deployer_factory: DeployerFactory | None = None,
) -> JobStatusResponse:
  """Run the same pipeline inline and return the terminal record."""
  inputs = validate_request(request, settings)
  record = _new_record(request, inputs, settings)
  await jobs_repo.put_job(record)
  processor = JobProcessor(jobs_repo=jobs_repo, settings=settings, generator=generator, deployer_factory=deployer_factory)
  result = await processor.process_job(record, inputs)
  return job_to_response(result)
