from fastapi import APIRouter, Query

from app.design.catalog import (
    DEFAULT_CATALOG,
    CamelModel,
    Catalog,
    MaterialSelection,
    default_selections,
)
from app.design.naming import normalize_material_name

router = APIRouter(prefix="/catalog", tags=["catalog"])


class MaterialKeyResolution(CamelModel):
    name: str
    normalized_name: str
    key: str | None = None


@router.get("/model", response_model=Catalog)
def read_catalog() -> Catalog:
    return DEFAULT_CATALOG


@router.get("/model/defaults", response_model=dict[str, MaterialSelection])
def read_default_selections() -> dict[str, MaterialSelection]:
    """Starting selections the configurator uses for a fresh design."""
    return default_selections(DEFAULT_CATALOG)


@router.get("/model/resolve", response_model=MaterialKeyResolution)
def resolve_material_name(name: str = Query(min_length=1, max_length=255)) -> MaterialKeyResolution:
    """Map a material name from a 3D asset export onto a catalog key, if any."""
    return MaterialKeyResolution(
        name=name,
        normalized_name=normalize_material_name(name),
        key=DEFAULT_CATALOG.resolve_key(name),
    )
