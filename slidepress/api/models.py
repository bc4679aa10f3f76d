from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from slidepress.ai.prompts import Tone, TopicType
from slidepress.jobs.models import JobStatus
from slidepress.render.options import HighlightTheme, RenderOptions, Theme, Transition

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

GITHUB_USERNAME_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$"
REPO_NAME_PATTERN = r"^[A-Za-z0-9._-]{1,100}$"

_SECRET_FIELDS = {"api_key", "github_token"}


class GenerateSlidesRequest(BaseModel):
  """Request payload for slide generation, accepted in camelCase or snake_case."""

  topic: StrictStr = Field(min_length=1, description="Presentation topic.", examples=["History of coffee"])
  audience: StrictStr = Field(default="general audience", max_length=200)
  tone: Tone = "professional"
  topic_type: TopicType = "general"
  slide_count: int | None = Field(default=None, ge=1, le=50, description="Number of slides (defaults to the server setting).")
  include_code: bool = False
  provider: StrictStr | None = Field(default=None, description="AI provider: openai, anthropic or gemini.")
  model: StrictStr | None = Field(default=None, description="Provider model identifier.")
  api_key: StrictStr | None = Field(default=None, description="Provider API key; falls back to the server key.")
  custom_system_prompt: StrictStr | None = Field(default=None, max_length=20_000)
  test_mode: bool = Field(default=False, description="Generate deterministic sample slides without calling a provider.")
  github_username: StrictStr | None = Field(default=None, pattern=GITHUB_USERNAME_PATTERN)
  github_token: StrictStr | None = Field(default=None, validation_alias=AliasChoices("githubToken", "githubPAT", "github_token"), serialization_alias="githubToken")
  repo_name: StrictStr | None = Field(default=None, pattern=REPO_NAME_PATTERN)
  theme: Theme = "black"
  transition: Transition = "slide"
  highlight_theme: HighlightTheme = "monokai"
  controls: bool = True
  progress: bool = True
  slide_number: bool = False
  hash: bool = True
  center: bool = True
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

  @field_validator("provider", "model", "api_key", "custom_system_prompt", "github_username", "github_token", "repo_name", mode="before")
  @classmethod
  def blank_to_none(cls, value: Any) -> Any:
    # Browser forms send empty strings for unset optional fields.
    if isinstance(value, str) and value.strip() == "":
      return None
    return value

  @field_validator("topic")
  @classmethod
  def validate_topic(cls, value: str) -> str:
    topic = value.strip()
    if not topic:
      raise ValueError("Topic must not be blank.")
    return topic

  @field_validator("provider")
  @classmethod
  def normalize_provider(cls, value: str | None) -> str | None:
    return value.strip().lower() if value else value

  def render_options(self) -> RenderOptions:
    return RenderOptions(theme=self.theme, transition=self.transition, highlight_theme=self.highlight_theme, controls=self.controls, progress=self.progress, slide_number=self.slide_number, hash=self.hash, center=self.center)

  def sanitized(self) -> dict[str, Any]:
    """Return the request as stored on the job, without credentials."""
    return self.model_dump(mode="json", by_alias=True, exclude=_SECRET_FIELDS, exclude_none=True)


class JobCreateResponse(BaseModel):
  """Response payload for job creation."""

  success: bool = True
  job_id: StrictStr
  message: StrictStr
  poll_url: StrictStr
  model_config = _CAMEL_CONFIG


class JobStatusResponse(BaseModel):
  """Status payload for a background job."""

  job_id: StrictStr = Field(alias="id")
  status: JobStatus
  progress: int = Field(ge=0, le=100)
  message: StrictStr
  created_at: StrictStr
  updated_at: StrictStr
  completed_at: StrictStr | None = None
  failed_at: StrictStr | None = None
  data: dict[str, Any] | None = None
  error: StrictStr | None = None
  artifacts: dict[str, Any] | None = None
  request: dict[str, Any] | None = None
  logs: list[str] | None = None
  model_config = _CAMEL_CONFIG


class ThemeInfo(BaseModel):
  id: StrictStr
  name: StrictStr
  description: StrictStr


class ThemeCatalogResponse(BaseModel):
  """Available presentation themes, highlight themes and transitions."""

  themes: list[ThemeInfo]
  highlight_themes: list[StrictStr]
  transitions: list[StrictStr]
  model_config = _CAMEL_CONFIG


class GitHubValidateRequest(BaseModel):
  username: StrictStr = Field(min_length=1, pattern=GITHUB_USERNAME_PATTERN)
  token: StrictStr = Field(min_length=1)
  model_config = ConfigDict(extra="forbid")


class GitHubValidateResponse(BaseModel):
  """Result of a GitHub credential check."""

  valid: bool
  username: StrictStr | None = None
  name: StrictStr | None = None
  public_repos: int | None = None
  error: StrictStr | None = None
  model_config = _CAMEL_CONFIG


class HealthResponse(BaseModel):
  status: StrictStr
  version: StrictStr
