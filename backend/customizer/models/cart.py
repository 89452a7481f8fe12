"""Pydantic v2 models for cart line items."""

import uuid

from pydantic import BaseModel, Field


class PreviewImage(BaseModel):
    """A rendered composite of one customized view.

    ``url`` is a blob-store URL, or the raw data URL when the upload failed.
    """

    model_config = {"frozen": True}

    view_id: str
    view_name: str
    url: str

    @property
    def is_embedded(self) -> bool:
        return self.url.startswith("data:")


class ViewDesignSnapshot(BaseModel):
    """Structural copy of the design elements placed on one view."""

    model_config = {"frozen": True}

    view_id: str
    items: list[dict] = Field(default_factory=list)


class CartLineItem(BaseModel):
    """An immutable cart record created on add-to-cart."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    product_id: str
    product_name: str
    quantity: int = Field(default=1, ge=1)

    selected_options: dict[str, str] = Field(default_factory=dict)
    variation_id: str | None = None
    technique: str | None = None

    # Resolved unit price including view surcharges.
    unit_price: float

    preview_images: list[PreviewImage] = Field(default_factory=list)
    view_data: list[ViewDesignSnapshot] = Field(default_factory=list)

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)
