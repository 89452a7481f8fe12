"""Definition authoring, resolution and geometry API routes."""

from fastapi import APIRouter
from pydantic import BaseModel, Field, field_validator

from customizer.errors import NotFoundError, OwnershipError, ValidationError
from customizer.models.product import ProductDefinition, Region
from customizer.models.selection import SelectionState, StageRect
from customizer.services.catalog import normalize_definition
from customizer.services.geometry import HANDLE_KINDS, drag_region, pixel_delta_to_percent
from customizer.services.pricing import total_price
from customizer.services.projector import project_view
from customizer.services.resolver import CatalogVariationImage, resolve
from customizer.services.variants import regenerate
from customizer.storage.supabase_client import get_definition, save_definition

router = APIRouter(prefix="/api", tags=["definitions"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class ResolveRequest(BaseModel):
    definition: ProductDefinition
    selection: SelectionState = Field(default_factory=SelectionState)
    stage: StageRect | None = None
    content_view_ids: list[str] = Field(default_factory=list)
    variation_image: CatalogVariationImage | None = None
    require_full_selection: bool = False


class DragRequest(BaseModel):
    region: Region
    handle: str
    dx_px: float
    dy_px: float
    container_width: float
    container_height: float

    @field_validator("handle")
    @classmethod
    def must_be_known_handle(cls, v: str) -> str:
        if v not in HANDLE_KINDS:
            raise ValueError(f"Unknown handle '{v}'. Expected one of {', '.join(HANDLE_KINDS)}.")
        return v


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_definition(owner_id: str, product_id: str) -> ProductDefinition:
    row = get_definition(owner_id, product_id)
    if row is None:
        raise NotFoundError(f"Definition '{product_id}' not found.")
    return normalize_definition(row, owner_id=owner_id)


def _stored_fields(definition: ProductDefinition) -> dict:
    return definition.model_dump(mode="json", exclude={"id", "owner_id"})


# --------------------------------------------------------------------------- #
# 1. Definitions
# --------------------------------------------------------------------------- #

@router.get("/definitions/{owner_id}/{product_id}")
async def read_definition(owner_id: str, product_id: str):
    """Return the normalized definition, with fallback view and grouping filled in."""
    return _load_definition(owner_id, product_id).model_dump()


@router.put("/definitions/{owner_id}/{product_id}")
async def write_definition(owner_id: str, product_id: str, body: ProductDefinition):
    """Validate and merge-save a definition authored by *owner_id*."""
    if body.owner_id is not None and body.owner_id != owner_id:
        raise OwnershipError(f"Definition belongs to '{body.owner_id}', not '{owner_id}'.")
    if body.id != product_id:
        raise ValidationError(f"Body id '{body.id}' does not match path id '{product_id}'.")

    definition = body.model_copy(update={"owner_id": owner_id})
    save_definition(owner_id, product_id, _stored_fields(definition))
    return {"saved": True, "definition": definition.model_dump()}


@router.post("/definitions/{owner_id}/{product_id}/variations/regenerate")
async def regenerate_variations(owner_id: str, product_id: str):
    """Rebuild the variation list from the stored attributes and persist it."""
    definition = regenerate(_load_definition(owner_id, product_id))
    save_definition(
        owner_id,
        product_id,
        {"variations": [v.model_dump(mode="json") for v in definition.variations]},
    )
    return {"variations": [v.model_dump() for v in definition.variations], "total": len(definition.variations)}


# --------------------------------------------------------------------------- #
# 2. Resolution
# --------------------------------------------------------------------------- #

@router.post("/resolve")
async def resolve_surface(body: ResolveRequest):
    """Resolve views, pixel regions and the total price for a selection."""
    resolved = resolve(
        body.definition,
        body.selection,
        variation_image=body.variation_image,
        require_full_selection=body.require_full_selection,
    )
    return {
        "resolved": resolved.model_dump(),
        "pixel_regions": [r.model_dump() for r in project_view(resolved.active_view, body.stage)],
        "total_price": total_price(
            resolved.unit_price,
            resolved.views,
            body.content_view_ids,
            body.selection.technique,
        ),
    }


# --------------------------------------------------------------------------- #
# 3. Geometry
# --------------------------------------------------------------------------- #

@router.post("/geometry/drag")
async def drag(body: DragRequest):
    """Apply one pointer drag to a region and return the clamped result."""
    dx, dy = pixel_delta_to_percent(body.dx_px, body.dy_px, body.container_width, body.container_height)
    region = body.region.with_rect(drag_region(body.region, body.handle, dx, dy))
    return region.model_dump()
