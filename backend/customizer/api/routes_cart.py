"""Cart and image-proxy API routes."""

from functools import partial

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from customizer.config import CART_KEY_PREFIX
from customizer.errors import NotFoundError
from customizer.models.selection import SelectionState
from customizer.services.cart_snapshot import (
    CapturedStage,
    add_to_cart,
    build_line_item,
    capture_previews,
    cart_key,
    get_cart,
    remove_from_cart,
)
from customizer.services.catalog import normalize_definition
from customizer.services.image_proxy import fetch_as_embeddable
from customizer.services.pricing import total_price
from customizer.services.resolver import resolve
from customizer.storage.r2_client import upload_preview
from customizer.storage.supabase_client import get_definition

router = APIRouter(prefix="/api", tags=["cart"])


class AddToCartRequest(BaseModel):
    owner_id: str
    product_id: str
    selection: SelectionState = Field(default_factory=SelectionState)
    # view id -> elements placed on that view
    designs: dict[str, list[dict]] = Field(default_factory=dict)
    # view id -> data URL of the composited view
    captures: dict[str, str] = Field(default_factory=dict)
    quantity: int = Field(default=1, ge=1)
    item_id: str | None = None
    require_full_selection: bool = False


def _key(raw: str) -> str:
    return raw if raw.startswith(CART_KEY_PREFIX) else cart_key(raw)


def _cart_response(key: str, items) -> dict:
    return {
        "cart_key": key,
        "items": [i.model_dump() for i in items],
        "total": round(sum(i.line_total for i in items), 2),
    }


# --------------------------------------------------------------------------- #
# 1. Cart
# --------------------------------------------------------------------------- #

@router.get("/cart/{cart_id}")
async def read_cart(cart_id: str):
    key = _key(cart_id)
    return _cart_response(key, get_cart(key))


@router.post("/cart/{cart_id}/items")
async def add_item(cart_id: str, body: AddToCartRequest):
    """Snapshot the design and add (or replace) it in the cart.

    The price is resolved server-side from the stored definition; the
    client only supplies the selection, the placed elements and the
    rendered captures.
    """
    row = get_definition(body.owner_id, body.product_id)
    if row is None:
        raise NotFoundError(f"Definition '{body.product_id}' not found.")
    definition = normalize_definition(row, owner_id=body.owner_id)

    resolved = resolve(definition, body.selection, require_full_selection=body.require_full_selection)
    content_view_ids = [view_id for view_id, items in body.designs.items() if items]

    stage = CapturedStage(body.captures, active_view_id=resolved.active_view_id)
    previews = await capture_previews(
        stage,
        resolved.views,
        content_view_ids,
        uploader=partial(upload_preview, body.owner_id),
    )

    item = build_line_item(
        definition,
        body.selection,
        unit_price=total_price(resolved.unit_price, resolved.views, content_view_ids, body.selection.technique),
        designs=body.designs,
        previews=previews,
        variation_id=resolved.matched_variation_id,
        quantity=body.quantity,
        item_id=body.item_id,
    )

    key = _key(cart_id)
    items = add_to_cart(key, item)
    return {"item": item.model_dump(), **_cart_response(key, items)}


@router.delete("/cart/{cart_id}/items/{item_id}")
async def delete_item(cart_id: str, item_id: str):
    key = _key(cart_id)
    return _cart_response(key, remove_from_cart(key, item_id))


# --------------------------------------------------------------------------- #
# 2. Image proxy
# --------------------------------------------------------------------------- #

@router.get("/proxy-image")
async def proxy_image(url: str | None = Query(default=None, description="Remote image URL")):
    """Return the image at *url* as an embeddable data URL.

    Upstream failures are not errors: the original URL comes back with
    ``proxied: false``.
    """
    if not url:
        raise HTTPException(status_code=400, detail="Image URL is required.")
    data_url = await fetch_as_embeddable(url)
    return {"data_url": data_url, "proxied": data_url != url}
