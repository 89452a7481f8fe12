"""Pydantic v2 models for customizable product definitions."""

import math
import re
import uuid
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from customizer.config import (
    MAX_REGIONS_PER_VIEW,
    MAX_VIEWS_PER_COLLECTION,
    MIN_REGION_SIZE_PCT,
)
from customizer.services.geometry import Rect, normalize_rect

_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def _new_id() -> str:
    return uuid.uuid4().hex


def _as_float(value, default: float) -> float:
    """Coerce form-style input to float; unparsable values become NaN."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


class Region(BaseModel):
    """A customization region ("boundary box") in percentage space.

    Geometry is clamped during construction, so every instance satisfies
    the size and containment invariants. Build new rectangles through
    :meth:`with_rect` rather than ``model_copy`` (which skips validation).
    """

    model_config = {"from_attributes": True}

    id: str = Field(default_factory=_new_id)
    name: str = "Area"
    x: float = 0.0
    y: float = 0.0
    width: float = MIN_REGION_SIZE_PCT
    height: float = MIN_REGION_SIZE_PCT

    @model_validator(mode="before")
    @classmethod
    def _clamp_geometry(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        rect = normalize_rect(
            _as_float(data.get("x"), 0.0),
            _as_float(data.get("y"), 0.0),
            _as_float(data.get("width"), MIN_REGION_SIZE_PCT),
            _as_float(data.get("height"), MIN_REGION_SIZE_PCT),
        )
        data.update(rect._asdict())
        return data

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def with_rect(self, rect: Rect) -> "Region":
        """Return a copy of this region with *rect* (clamped) as geometry."""
        return Region(id=self.id, name=self.name, **rect._asdict())


class View(BaseModel):
    """One photographed face of a product together with its regions."""

    model_config = {"from_attributes": True}

    id: str = Field(default_factory=_new_id)
    name: str
    image_url: str
    ai_hint: str | None = None

    regions: list[Region] = Field(default_factory=list, max_length=MAX_REGIONS_PER_VIEW)

    # Surcharges
    price: float = 0.0
    embroidery_fee: float | None = None
    print_fee: float | None = None


class AttributeOption(BaseModel):
    """A single selectable value. Color options carry a hex swatch."""

    name: str
    hex: str | None = None

    @field_validator("name")
    @classmethod
    def must_be_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Attribute option name must be a non-empty string.")
        return v.strip()

    @field_validator("hex")
    @classmethod
    def must_be_hex_color(cls, v: str | None) -> str | None:
        if v is not None and not _HEX_COLOR_RE.match(v):
            raise ValueError(f"'{v}' is not a 6-digit hex color.")
        return v


class AttributeDefinition(BaseModel):
    """A variant attribute (e.g. Color, Size) with its ordered options."""

    name: str
    options: list[AttributeOption] = Field(default_factory=list)

    @field_validator("options")
    @classmethod
    def options_must_be_unique(cls, v: list[AttributeOption]) -> list[AttributeOption]:
        seen: set[str] = set()
        for option in v:
            key = option.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate attribute option '{option.name}'.")
            seen.add(key)
        return v

    @property
    def option_names(self) -> list[str]:
        return [o.name for o in self.options]


class Variation(BaseModel):
    """A priced combination of attribute values."""

    id: str
    attributes: dict[str, str]
    price: float = 0.0
    sale_price: float | None = None

    def unit_price(self, prefer_sale: bool = False) -> float:
        if prefer_sale and self.sale_price is not None:
            return self.sale_price
        return self.price


class ViewOverrideGroup(BaseModel):
    """Views replacing the defaults for one grouping-attribute value.

    An empty ``views`` list means "no override, use the defaults".
    """

    selected_variation_ids: list[str] = Field(default_factory=list)
    views: list[View] = Field(default_factory=list, max_length=MAX_VIEWS_PER_COLLECTION)


class ProductDefinition(BaseModel):
    """A customizable product as authored by the merchant."""

    model_config = {"from_attributes": True}

    # Identity
    id: str
    owner_id: str | None = None
    name: str
    description: str = ""
    kind: Literal["simple", "variable"] = "simple"

    # Pricing
    base_price: float = 0.0
    sale_price: float | None = None

    # Customization
    allow_customization: bool = True
    techniques: list[str] = Field(default_factory=list)

    # Variants
    attributes: list[AttributeDefinition] = Field(default_factory=list)
    variations: list[Variation] = Field(default_factory=list)
    grouping_attribute: str | None = None
    view_overrides: dict[str, ViewOverrideGroup] = Field(default_factory=dict)

    # Views
    default_views: list[View] = Field(min_length=1, max_length=MAX_VIEWS_PER_COLLECTION)

    @field_validator("id", "name")
    @classmethod
    def must_be_non_empty(cls, v: str, info) -> str:  # noqa: N805
        if not v or not v.strip():
            raise ValueError(f"'{info.field_name}' must be a non-empty string.")
        return v

    @field_validator("techniques")
    @classmethod
    def dedupe_techniques(cls, v: list[str]) -> list[str]:
        # Keep first occurrence order.
        return list(dict.fromkeys(v))

    def unit_price(self, prefer_sale: bool = False) -> float:
        if prefer_sale and self.sale_price is not None:
            return self.sale_price
        return self.base_price

    def get_attribute(self, name: str) -> AttributeDefinition | None:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def get_default_view(self, view_id: str) -> View | None:
        for view in self.default_views:
            if view.id == view_id:
                return view
        return None
