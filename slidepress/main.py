from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from slidepress import __version__
from slidepress.api.models import HealthResponse
from slidepress.api.routes import github, jobs, slides, themes
from slidepress.config import get_settings
from slidepress.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from slidepress.core.lifespan import lifespan
from slidepress.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="SlidePress", version=__version__, lifespan=lifespan, docs_url="/docs" if settings.debug else None, redoc_url=None)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
  """Return a simple health status."""
  return HealthResponse(status="ok", version=__version__)


app.include_router(jobs.router, prefix="/v1/jobs", tags=["jobs"])
app.include_router(slides.router, prefix="/v1/slides", tags=["slides"])
app.include_router(themes.router, prefix="/v1/themes", tags=["themes"])
app.include_router(github.router, prefix="/v1/github", tags=["github"])
