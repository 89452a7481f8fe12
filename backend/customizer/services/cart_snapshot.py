"""
Cart snapshot serializer.

On add-to-cart the design is frozen into an immutable :class:`CartLineItem`:
one rendered preview per view that carries content, a structural copy of
the placed elements without inline image payloads, the selected options
and the resolved price.

Previews are produced by switching the rendering stage through each
content view and capturing it. The stage is always returned to the view
the shopper was looking at, even when a capture fails.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from typing import Protocol

from customizer.config import CART_KEY_PREFIX, INLINE_PAYLOAD_FIELDS
from customizer.errors import NotFoundError, ValidationError
from customizer.models.cart import CartLineItem, PreviewImage, ViewDesignSnapshot
from customizer.models.product import ProductDefinition, View
from customizer.models.selection import SelectionState
from customizer.services.catalog import ensure_customizable
from customizer.storage.supabase_client import load_cart, save_cart

logger = logging.getLogger(__name__)

PreviewUploader = Callable[[str], str]


class Stage(Protocol):
    """The rendering surface the previews are captured from."""

    active_view_id: str | None

    def size(self) -> tuple[float, float]: ...

    async def set_active_view(self, view_id: str | None) -> None: ...

    async def capture(self) -> str:
        """Return the composited current view as a ``data:`` URL."""
        ...


class CapturedStage:
    """Stage replaying composites the client already rendered, keyed by view id."""

    def __init__(
        self,
        captures: dict[str, str],
        active_view_id: str | None = None,
        stage_size: tuple[float, float] = (0.0, 0.0),
    ) -> None:
        self._captures = dict(captures)
        self._size = stage_size
        self.active_view_id = active_view_id

    def size(self) -> tuple[float, float]:
        return self._size

    async def set_active_view(self, view_id: str | None) -> None:
        self.active_view_id = view_id

    async def capture(self) -> str:
        try:
            return self._captures[self.active_view_id]
        except KeyError:
            raise LookupError(f"No capture for view {self.active_view_id}") from None


# ---------------------------------------------------------------------------
# Previews
# ---------------------------------------------------------------------------

def _upload_or_embed(data_url: str, uploader: PreviewUploader | None) -> str:
    if uploader is None:
        return data_url
    try:
        return uploader(data_url)
    except Exception as exc:
        logger.warning("[cart_snapshot] Preview upload failed, embedding data URL: %s", exc)
        return data_url


async def capture_previews(
    stage: Stage,
    views: list[View],
    content_view_ids: Iterable[str],
    uploader: PreviewUploader | None = None,
) -> list[PreviewImage]:
    """Capture one preview per content view, in resolved-view order.

    A view whose capture fails is logged and skipped.
    """
    with_content = set(content_view_ids)
    original_view_id = stage.active_view_id
    previews: list[PreviewImage] = []

    try:
        for view in views:
            if view.id not in with_content:
                continue
            await stage.set_active_view(view.id)
            try:
                data_url = await stage.capture()
            except Exception as exc:
                logger.warning("[cart_snapshot] Capture failed for view %s: %s", view.id, exc)
                continue
            previews.append(
                PreviewImage(
                    view_id=view.id,
                    view_name=view.name,
                    url=_upload_or_embed(data_url, uploader),
                )
            )
    finally:
        if stage.active_view_id != original_view_id:
            await stage.set_active_view(original_view_id)

    return previews


# ---------------------------------------------------------------------------
# Design snapshot
# ---------------------------------------------------------------------------

def strip_inline_payloads(elements: list[dict]) -> list[dict]:
    """Deep-copy *elements* without their inline image payloads.

    Image elements keep a reference to their source image as
    ``source_image_id``.
    """
    stripped = []
    for element in copy.deepcopy(elements):
        for key in INLINE_PAYLOAD_FIELDS:
            element.pop(key, None)
        if "sourceImageId" in element:
            element.setdefault("source_image_id", element.pop("sourceImageId"))
        stripped.append(element)
    return stripped


def build_line_item(
    definition: ProductDefinition,
    selection: SelectionState,
    unit_price: float,
    designs: dict[str, list[dict]],
    previews: list[PreviewImage] | None = None,
    variation_id: str | None = None,
    quantity: int = 1,
    item_id: str | None = None,
) -> CartLineItem:
    """Assemble the immutable line item for the current design.

    *designs* maps view ids to the elements placed on them. Passing
    *item_id* replaces an existing cart item (edit flow).
    """
    ensure_customizable(definition)

    view_data = [
        ViewDesignSnapshot(view_id=view_id, items=strip_inline_payloads(items))
        for view_id, items in designs.items()
        if items
    ]
    if not view_data:
        raise ValidationError("The design is empty; add at least one element before adding to cart.")

    fields = {
        "product_id": definition.id,
        "product_name": definition.name,
        "quantity": quantity,
        "selected_options": dict(selection.attributes),
        "variation_id": variation_id,
        "technique": selection.technique,
        "unit_price": unit_price,
        "preview_images": previews or [],
        "view_data": view_data,
    }
    if item_id:
        fields["id"] = item_id
    return CartLineItem(**fields)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

def cart_key(storefront_or_owner: str) -> str:
    return f"{CART_KEY_PREFIX}{storefront_or_owner}"


def get_cart(key: str) -> list[CartLineItem]:
    return [CartLineItem.model_validate(row) for row in load_cart(key)]


def add_to_cart(key: str, item: CartLineItem) -> list[CartLineItem]:
    """Append *item*, or replace the item with the same id; rewrite the cart."""
    items = get_cart(key)
    if any(existing.id == item.id for existing in items):
        items = [item if existing.id == item.id else existing for existing in items]
        logger.info("[cart_snapshot] Replaced item %s in %s", item.id, key)
    else:
        items.append(item)
        logger.info("[cart_snapshot] Added item %s to %s", item.id, key)

    save_cart(key, [i.model_dump() for i in items])
    return items


def remove_from_cart(key: str, item_id: str) -> list[CartLineItem]:
    items = get_cart(key)
    remaining = [i for i in items if i.id != item_id]
    if len(remaining) == len(items):
        raise NotFoundError(f"Cart item {item_id} not found in {key}.")
    save_cart(key, [i.model_dump() for i in remaining])
    return remaining
