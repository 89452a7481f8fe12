"""
Product source normalization.

Stored definition documents come in two shapes: the current snake_case
layout written by this service, and the legacy camelCase layout
(``defaultViews``, ``boundaryBoxes``, ``optionsByColor``,
``nativeAttributes``/``nativeVariations`` ...). Both are normalized into a
validated :class:`ProductDefinition`.
"""

import copy
import logging

from pydantic import ValidationError as PydanticValidationError

from customizer.config import (
    COLOR_ATTRIBUTE,
    COLOR_ATTRIBUTE_ALIASES,
    FALLBACK_DEFAULT_VIEW,
    SIZE_ATTRIBUTE,
    SIZE_ATTRIBUTE_ALIASES,
)
from customizer.errors import ValidationError
from customizer.models.product import ProductDefinition

logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = {
    "productId": "id",
    "ownerId": "owner_id",
    "userId": "owner_id",
    "price": "base_price",
    "basePrice": "base_price",
    "salePrice": "sale_price",
    "type": "kind",
    "allowCustomization": "allow_customization",
    "customizationTechniques": "techniques",
    "groupingAttributeName": "grouping_attribute",
    "defaultViews": "default_views",
    "optionsByColor": "view_overrides",
    "nativeVariations": "variations",
}

_VIEW_KEYS = {
    "imageUrl": "image_url",
    "aiHint": "ai_hint",
    "boundaryBoxes": "regions",
    "embroideryAdditionalFee": "embroidery_fee",
    "printAdditionalFee": "print_fee",
}


def _rename(doc: dict, mapping: dict[str, str]) -> dict:
    out = {}
    for key, value in doc.items():
        target = mapping.get(key, key)
        # An explicit snake_case value wins over its legacy alias.
        if target in out and target != key:
            continue
        out[target] = value
    return out


def _normalize_view(view: dict) -> dict:
    view = _rename(view, _VIEW_KEYS)
    if view.get("price") is None:
        view["price"] = 0.0
    view.setdefault("regions", [])
    return view


def _normalize_views(views) -> list[dict]:
    return [_normalize_view(v) for v in views or []]


def _normalize_overrides(overrides: dict | None) -> dict:
    groups = {}
    for value, group in (overrides or {}).items():
        group = _rename(group or {}, {"selectedVariationIds": "selected_variation_ids"})
        group["views"] = _normalize_views(group.get("views"))
        groups[value] = group
    return groups


def _normalize_variations(variations) -> list[dict]:
    return [_rename(v, {"salePrice": "sale_price"}) for v in variations or []]


def _attributes_from_native(native: dict | None) -> list[dict]:
    """Build Color/Size attributes from the legacy ``nativeAttributes`` block."""
    if not native:
        return []
    attributes = []
    colors = native.get("colors") or []
    if colors:
        attributes.append({
            "name": COLOR_ATTRIBUTE,
            "options": [{"name": c["name"], "hex": c.get("hex") or None} for c in colors],
        })
    sizes = native.get("sizes") or []
    if sizes:
        attributes.append({
            "name": SIZE_ATTRIBUTE,
            "options": [{"name": s["name"] if isinstance(s, dict) else s} for s in sizes],
        })
    return attributes


def detect_grouping_attribute(attribute_names: list[str]) -> str | None:
    """Pick the attribute whose value drives view overrides.

    Color (or Colour) when present, else the first attribute that is not a
    size, else the first attribute.
    """
    for name in attribute_names:
        if name.lower() in COLOR_ATTRIBUTE_ALIASES:
            return name
    for name in attribute_names:
        if name.lower() not in SIZE_ATTRIBUTE_ALIASES:
            return name
    return attribute_names[0] if attribute_names else None


def normalize_definition(doc: dict, owner_id: str | None = None) -> ProductDefinition:
    """Turn a raw stored document into a validated ``ProductDefinition``.

    Raises ``ValidationError`` when the document lacks an identity or is
    otherwise unusable.
    """
    data = _rename(copy.deepcopy(doc), _TOP_LEVEL_KEYS)
    # Stored rows are keyed by product_id.
    product_id = data.pop("product_id", None)
    if product_id:
        data["id"] = product_id
    if owner_id is not None:
        data.setdefault("owner_id", owner_id)

    if data.get("kind") not in ("simple", "variable"):
        data["kind"] = "variable" if data.get("variations") else "simple"
    if data.get("base_price") is None:
        data["base_price"] = 0.0

    if not data.get("attributes"):
        data["attributes"] = _attributes_from_native(data.pop("nativeAttributes", None))
    else:
        data.pop("nativeAttributes", None)

    data["variations"] = _normalize_variations(data.get("variations"))
    data["view_overrides"] = _normalize_overrides(data.get("view_overrides"))

    default_views = _normalize_views(data.get("default_views"))
    if not default_views:
        logger.info("[catalog] No default views saved for %s, using fallback view", data.get("id"))
        default_views = [copy.deepcopy(FALLBACK_DEFAULT_VIEW)]
    data["default_views"] = default_views

    if not data.get("grouping_attribute"):
        data["grouping_attribute"] = detect_grouping_attribute([a["name"] for a in data["attributes"]])

    try:
        return ProductDefinition.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("[catalog] Invalid definition document %s: %s", data.get("id"), e)
        raise ValidationError(str(e)) from e


def ensure_customizable(definition: ProductDefinition) -> ProductDefinition:
    if not definition.allow_customization:
        raise ValidationError(f"Product {definition.id} is not available for customization.")
    return definition
