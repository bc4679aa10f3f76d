"""Background processor for slide generation jobs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from starlette.concurrency import run_in_threadpool

from slidepress.ai.generator import SlideDeck, SlideGenerator
from slidepress.ai.prompts import PromptConfig
from slidepress.config import Settings
from slidepress.deploy.github import DeployFile, DeploymentError, GitHubPagesDeployer
from slidepress.jobs.models import JobRecord
from slidepress.jobs.progress import PROGRESS_DEPLOYING, PROGRESS_GENERATING, PROGRESS_RENDERING, JobProgressTracker
from slidepress.render.options import RenderOptions
from slidepress.render.reveal import build_static_presentation, render
from slidepress.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)

_STAGE_LABELS = {"generate": "Generation", "render": "Rendering", "deploy": "Deployment"}


@dataclass(frozen=True)
class PipelineInputs:
  """Everything the background task needs, including secrets that are never persisted."""

  topic: str
  slide_count: int
  audience: str = "general audience"
  tone: str = "professional"
  topic_type: str = "general"
  include_code: bool = False
  provider: str | None = None
  model: str | None = None
  api_key: str | None = field(default=None, repr=False)
  custom_system_prompt: str | None = None
  test_mode: bool = False
  github_username: str | None = None
  github_token: str | None = field(default=None, repr=False)
  repo_name: str | None = None
  render_options: RenderOptions = field(default_factory=RenderOptions)

  @property
  def wants_deploy(self) -> bool:
    return not self.test_mode and bool(self.github_username and self.github_token and self.repo_name)

  def prompt_config(self) -> PromptConfig:
    if not (self.provider and self.model and self.api_key):
      raise ValueError("Provider, model and API key are required outside test mode.")
    return PromptConfig(
      topic=self.topic,
      provider=self.provider,
      model=self.model,
      api_key=self.api_key,
      audience=self.audience,
      slide_count=self.slide_count,
      tone=self.tone,
      topic_type=self.topic_type,
      include_code=self.include_code,
      custom_system_prompt=self.custom_system_prompt,
    )


DeployerFactory = Callable[[str], GitHubPagesDeployer]


class JobProcessor:
  """Runs generate, render and deploy for one job, writing checkpoints as it goes."""

  def __init__(self, *, jobs_repo: JobsRepository, settings: Settings, generator: SlideGenerator | None = None, deployer_factory: DeployerFactory | None = None) -> None:
    self._jobs_repo = jobs_repo
    self._settings = settings
    self._generator = generator or SlideGenerator(timeout_seconds=settings.generation_timeout_seconds)
    self._deployer_factory = deployer_factory or self._build_deployer

  async def process_job(self, job: JobRecord, inputs: PipelineInputs) -> JobRecord:
    """Execute the pipeline and return the terminal record.

    Every exception is converted into a failed record; nothing escapes while
    the job is still marked as processing.
    """
    if job.is_terminal:
      return job

    tracker = JobProgressTracker(record=job, jobs_repo=self._jobs_repo)
    stage = "generate"
    deck: SlideDeck | None = None
    html: str | None = None
    try:
      await tracker.checkpoint(PROGRESS_GENERATING, "Generating slides with AI...")
      deck = await self._generate(inputs)
      tracker.add_logs(f"Generated {deck.slide_count} slides with {deck.metadata['provider']}/{deck.metadata['model']}.")

      stage = "render"
      await tracker.checkpoint(PROGRESS_RENDERING, "Building HTML...")
      html = render(deck.markdown, inputs.render_options)
      build = await self._build_static(job.job_id, deck, inputs.render_options)

      stage = "deploy"
      deploying = inputs.wants_deploy
      await tracker.checkpoint(PROGRESS_DEPLOYING, "Deploying to GitHub Pages..." if deploying else "Finalizing...")
      deployment = await self._deploy(inputs, deck, html) if deploying else None
      if deployment:
        tracker.add_logs(f"Deployed to {deployment['url']}.")

      data = {
        "slides": {"filename": deck.filename, "slideCount": deck.metadata["slide_count"], "characterCount": deck.metadata["character_count"], "provider": deck.metadata["provider"], "model": deck.metadata["model"]},
        "markdown": deck.markdown,
        "html": html,
        "theme": inputs.render_options.theme,
        "build": build,
        "deployment": deployment,
      }
      return await tracker.complete(data)
    except Exception as exc:  # noqa: BLE001
      error = str(exc) if isinstance(exc, DeploymentError) else f"{_STAGE_LABELS[stage]} failed: {str(exc) or exc.__class__.__name__}"
      logger.warning("Job %s failed during %s: %s", job.job_id, stage, exc, exc_info=not isinstance(exc, DeploymentError))
      # Output produced before a deploy failure is kept so callers can recover it.
      artifacts = {"markdown": deck.markdown, "html": html} if stage == "deploy" and deck is not None and html is not None else None
      return await self._record_failure(tracker, error, artifacts)

  async def _generate(self, inputs: PipelineInputs) -> SlideDeck:
    if inputs.test_mode:
      return await self._generator.generate_sample(inputs.topic, inputs.slide_count)
    return await self._generator.generate(inputs.prompt_config())

  async def _build_static(self, job_id: str, deck: SlideDeck, options: RenderOptions) -> dict[str, Any] | None:
    if self._settings.static_build_dir is None:
      return None
    # File writes stay off the event loop.
    return await run_in_threadpool(build_static_presentation, deck.markdown, self._settings.static_build_dir / job_id, options)

  async def _deploy(self, inputs: PipelineInputs, deck: SlideDeck, html: str) -> dict[str, Any]:
    deployer = self._deployer_factory(inputs.github_token or "")
    files = [DeployFile(path="index.html", content=html.encode("utf-8")), DeployFile(path="slides.md", content=deck.markdown.encode("utf-8"))]
    return await deployer.deploy(username=inputs.github_username or "", repo_name=inputs.repo_name or "", files=files)

  async def _record_failure(self, tracker: JobProgressTracker, error: str, artifacts: dict[str, Any] | None) -> JobRecord:
    try:
      return await tracker.fail(error, artifacts=artifacts)
    except Exception:  # noqa: BLE001
      # The store is unreachable; the record stays in processing until its ttl expires.
      logger.exception("Could not persist failure for job %s", tracker.job_id)
      return tracker.record

  def _build_deployer(self, token: str) -> GitHubPagesDeployer:
    return GitHubPagesDeployer(token=token, api_url=self._settings.github_api_url, timeout_seconds=self._settings.github_timeout_seconds, sha_retries=self._settings.github_sha_retries, repo_ready_delay=self._settings.github_repo_ready_delay)


async def run_job(job: JobRecord, inputs: PipelineInputs, *, jobs_repo: JobsRepository, settings: Settings, generator: SlideGenerator | None = None, deployer_factory: DeployerFactory | None = None) -> JobRecord:
  """Background-task entry point for one submitted job."""
  processor = JobProcessor(jobs_repo=jobs_repo, settings=settings, generator=generator, deployer_factory=deployer_factory)
  result = await processor.process_job(job, inputs)
  logger.info("Job %s finished with status %s", job.job_id, result.status)
  return result
