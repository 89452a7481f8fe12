"""
Variant & view resolver.

Given a product definition and the shopper's selection, decides which
variation prices the product and which view set is shown. Resolution is
a pure function of its inputs: calling it twice with the same arguments
returns equal results, and nothing in the definition is mutated.

View-set priority:
    1. The grouping value's override group, when it has views.
    2. A catalog-supplied variation image, wrapped in a transient view that
       borrows the first default view's regions.
    3. The definition's default views.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel

from customizer.models.product import ProductDefinition, View
from customizer.models.selection import ResolvedSurface, SelectionState
from customizer.services.variants import is_full_selection, match_variation

logger = logging.getLogger(__name__)


class CatalogVariationImage(BaseModel):
    """A single variation-specific image supplied by an external catalog."""

    variation_id: str
    image_url: str
    ai_hint: str | None = None


# ---------------------------------------------------------------------------
# Pieces
# ---------------------------------------------------------------------------

def resolve_unit_price(
    definition: ProductDefinition,
    selected: dict[str, str],
    require_full_selection: bool = False,
    prefer_sale_price: bool = False,
) -> tuple[float, str | None]:
    """Return ``(unit_price, matched_variation_id)`` before surcharges.

    The regular price applies; *prefer_sale_price* switches to the sale
    price wherever one is set. With *require_full_selection* a partial
    selection never matches and the product base price applies until
    every attribute has a value.
    """
    if require_full_selection and not is_full_selection(definition, selected):
        return definition.unit_price(prefer_sale_price), None

    variation = match_variation(definition.variations, selected)
    if variation is None:
        return definition.unit_price(prefer_sale_price), None
    return variation.unit_price(prefer_sale_price), variation.id


def override_views(definition: ProductDefinition, selected: dict[str, str]) -> list[View] | None:
    """Views of the selected grouping value's override group, if non-empty."""
    if not definition.grouping_attribute:
        return None
    group_key = selected.get(definition.grouping_attribute)
    if group_key is None:
        return None
    group = definition.view_overrides.get(group_key)
    if group is None or not group.views:
        return None
    return [view.model_copy(deep=True) for view in group.views]


def synthesize_variation_view(
    definition: ProductDefinition,
    image: CatalogVariationImage,
    selected: dict[str, str],
) -> View:
    """Wrap a catalog variation image in a transient single view."""
    first = definition.default_views[0]
    label = " ".join(selected.values()) or first.name
    return View(
        id=f"variation_view_{image.variation_id}",
        name=label,
        image_url=image.image_url,
        ai_hint=image.ai_hint or "product variation",
        regions=[region.model_copy() for region in first.regions],
        price=0.0,
        embroidery_fee=0.0,
        print_fee=0.0,
    )


def default_views(definition: ProductDefinition) -> list[View]:
    """Fresh copies of the default views straight from the definition."""
    return [view.model_copy(deep=True) for view in definition.default_views]


def pick_active_view_id(views: list[View], current: str | None) -> str | None:
    """Keep *current* when it is still in *views*, else fall back to the first."""
    if any(view.id == current for view in views):
        return current
    return views[0].id if views else None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def resolve(
    definition: ProductDefinition,
    selection: SelectionState,
    variation_image: CatalogVariationImage | None = None,
    require_full_selection: bool = False,
    prefer_sale_price: bool = False,
) -> ResolvedSurface:
    """Resolve the unit price, view set and active view for *selection*."""
    selected = selection.attributes
    unit_price, matched_id = resolve_unit_price(definition, selected, require_full_selection, prefer_sale_price)

    views = override_views(definition, selected)
    if views is not None:
        source = "override"
    elif variation_image is not None:
        views = [synthesize_variation_view(definition, variation_image, selected)]
        source = "catalog"
    else:
        views = default_views(definition)
        source = "default"

    active_view_id = pick_active_view_id(views, selection.active_view_id)
    if active_view_id != selection.active_view_id:
        logger.debug(
            "[resolver] Active view %s not in %s set, falling back to %s",
            selection.active_view_id, source, active_view_id,
        )

    return ResolvedSurface(
        unit_price=unit_price,
        views=views,
        active_view_id=active_view_id,
        matched_variation_id=matched_id,
    )
