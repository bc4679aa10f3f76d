from fastapi import APIRouter

from slidepress.api.models import ThemeCatalogResponse
from slidepress.render.options import theme_catalog

router = APIRouter()


@router.get("", response_model=ThemeCatalogResponse)
async def list_themes() -> ThemeCatalogResponse:
  """List presentation themes, code highlight themes and transitions."""
  return ThemeCatalogResponse.model_validate(theme_catalog())
