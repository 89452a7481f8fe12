"""Tests for the pydantic product and cart models."""

import pytest
from pydantic import ValidationError

from customizer.models.cart import CartLineItem, PreviewImage
from customizer.models.product import (
    AttributeDefinition,
    AttributeOption,
    ProductDefinition,
    Region,
    Variation,
    View,
)
from customizer.services.geometry import Rect


class TestRegion:
    """Region geometry is clamped on construction."""

    def test_out_of_range_values_are_clamped(self):
        region = Region(x=-10, y=120, width=2, height=300)
        assert (region.x, region.y, region.width, region.height) == (0.0, 0.0, 5.0, 100.0)

    def test_text_input_is_parsed(self):
        """Form input arrives as text."""
        region = Region(x="12.5", y="7", width="40", height="20")
        assert region.rect == (12.5, 7.0, 40.0, 20.0)

    def test_unparsable_text_falls_back(self):
        region = Region(x="abc", width="")
        assert region.x == 0.0
        assert region.width == 5.0

    def test_with_rect_keeps_identity(self):
        region = Region(id="r1", name="Chest", x=10, y=10, width=30, height=20)
        moved = region.with_rect(Rect(90, 10, 30, 20))
        assert moved.id == "r1" and moved.name == "Chest"
        assert moved.x == 70.0


class TestView:
    def test_at_most_three_regions(self):
        with pytest.raises(ValidationError):
            View(name="Front", image_url="x.png", regions=[Region() for _ in range(4)])


class TestAttributes:
    def test_duplicate_options_rejected(self):
        """Option names are unique regardless of case."""
        with pytest.raises(ValidationError):
            AttributeDefinition(name="Color", options=[AttributeOption(name="Red"), AttributeOption(name="red")])

    def test_hex_must_be_six_digits(self):
        with pytest.raises(ValidationError):
            AttributeOption(name="Red", hex="#f00")

    def test_blank_option_name_rejected(self):
        with pytest.raises(ValidationError):
            AttributeOption(name="   ")


class TestProductDefinition:
    def test_needs_a_default_view(self):
        with pytest.raises(ValidationError):
            ProductDefinition(id="p", name="P", default_views=[])

    def test_at_most_four_default_views(self, front_view):
        views = [front_view.model_copy(update={"id": f"v{i}"}) for i in range(5)]
        with pytest.raises(ValidationError):
            ProductDefinition(id="p", name="P", default_views=views)

    def test_blank_identity_rejected(self, front_view):
        with pytest.raises(ValidationError) as exc_info:
            ProductDefinition(id=" ", name="P", default_views=[front_view])
        assert "'id' must be a non-empty string" in str(exc_info.value)

    def test_unit_price_is_regular_unless_sale_preferred(self, front_view):
        definition = ProductDefinition(id="p", name="P", base_price=20, sale_price=15, default_views=[front_view])
        assert definition.unit_price() == 20
        assert definition.unit_price(prefer_sale=True) == 15

    def test_techniques_are_deduplicated(self, front_view):
        definition = ProductDefinition(
            id="p", name="P", techniques=["DTG", "DTF", "DTG"], default_views=[front_view]
        )
        assert definition.techniques == ["DTG", "DTF"]

    def test_variation_unit_price(self):
        assert Variation(id="v", attributes={}, price=10).unit_price(prefer_sale=True) == 10
        assert Variation(id="v", attributes={}, price=10, sale_price=8).unit_price() == 10
        assert Variation(id="v", attributes={}, price=10, sale_price=8).unit_price(prefer_sale=True) == 8


class TestCartLineItem:
    def test_is_immutable(self):
        item = CartLineItem(product_id="p", product_name="P", unit_price=10)
        with pytest.raises(ValidationError):
            item.quantity = 3

    def test_line_total(self):
        item = CartLineItem(product_id="p", product_name="P", unit_price=10.333, quantity=3)
        assert item.line_total == 31.0

    def test_embedded_preview(self):
        assert PreviewImage(view_id="v", view_name="V", url="data:image/png;base64,AA==").is_embedded
        assert not PreviewImage(view_id="v", view_name="V", url="https://cdn/x.webp").is_embedded
