"""Tests for variation ids, regeneration and matching."""

import pytest

from customizer.errors import ValidationError
from customizer.models.product import AttributeDefinition, AttributeOption, ProductDefinition
from customizer.services.variants import (
    bulk_update_variations,
    default_selection,
    generate_variations,
    is_full_selection,
    match_variation,
    regenerate,
    variation_id,
)


class TestVariationId:
    def test_sorted_lowercased_and_dashed(self):
        assert variation_id({"Size": "M", "Color": "Navy Blue"}) == "color-navy-blue-size-m"

    def test_order_independent(self):
        assert variation_id({"A": "1", "B": "2"}) == variation_id({"B": "2", "A": "1"})


class TestGenerateVariations:
    """Regeneration keeps prices for surviving combinations."""

    def test_preserves_prices_and_defaults_new_ones(self, tee_definition):
        """Adding a size keeps existing prices; new ids take the base price."""
        size = tee_definition.get_attribute("Size")
        bigger = size.model_copy(update={"options": [*size.options, AttributeOption(name="XL")]})
        definition = tee_definition.model_copy(
            update={"attributes": [tee_definition.attributes[0], bigger], "base_price": 18.0}
        )

        variations = {v.id: v for v in generate_variations(definition)}

        assert len(variations) == 6
        navy_s = variations[variation_id({"Color": "Navy", "Size": "S"})]
        assert (navy_s.price, navy_s.sale_price) == (22.99, 20.99)
        white_xl = variations[variation_id({"Color": "White", "Size": "XL"})]
        assert (white_xl.price, white_xl.sale_price) == (18.0, None)

    def test_orphans_are_dropped(self, tee_definition):
        color = tee_definition.get_attribute("Color")
        white_only = color.model_copy(update={"options": [color.options[0]]})
        definition = tee_definition.model_copy(update={"attributes": [white_only, tee_definition.attributes[1]]})

        ids = [v.id for v in generate_variations(definition)]
        assert ids == [
            variation_id({"Color": "White", "Size": "S"}),
            variation_id({"Color": "White", "Size": "M"}),
        ]

    def test_is_idempotent(self, tee_definition):
        once = regenerate(tee_definition)
        twice = regenerate(once)
        assert once.variations == twice.variations

    def test_attributes_without_options_are_skipped(self, tee_definition):
        definition = tee_definition.model_copy(
            update={"attributes": [*tee_definition.attributes, AttributeDefinition(name="Fit")]}
        )
        assert len(generate_variations(definition)) == 4

    def test_variable_product_needs_options(self, front_view):
        definition = ProductDefinition(
            id="p", name="P", kind="variable", attributes=[AttributeDefinition(name="Color")], default_views=[front_view]
        )
        with pytest.raises(ValidationError):
            regenerate(definition)

    def test_simple_product_may_have_no_variations(self, simple_definition):
        assert regenerate(simple_definition).variations == []


class TestBulkUpdate:
    def test_sets_sale_price_everywhere(self, tee_definition):
        updated = bulk_update_variations(tee_definition.variations, "sale_price", 9.99)
        assert {v.sale_price for v in updated} == {9.99}

    def test_sale_price_can_be_cleared(self, tee_definition):
        updated = bulk_update_variations(tee_definition.variations, "sale_price", None)
        assert all(v.sale_price is None for v in updated)

    def test_price_cannot_be_cleared(self, tee_definition):
        with pytest.raises(ValidationError):
            bulk_update_variations(tee_definition.variations, "price", None)


class TestMatching:
    def test_full_selection_matches_exactly(self, tee_definition):
        match = match_variation(tee_definition.variations, {"Color": "White", "Size": "M"})
        assert match.price == 21.99

    def test_partial_selection_takes_first_in_order(self, tee_definition):
        match = match_variation(tee_definition.variations, {"Color": "Navy"})
        assert match.attributes == {"Color": "Navy", "Size": "S"}

    def test_no_match(self, tee_definition):
        assert match_variation(tee_definition.variations, {"Color": "Red"}) is None

    def test_default_selection_uses_first_options(self, tee_definition):
        selection = default_selection(tee_definition)
        assert selection == {"Color": "White", "Size": "S"}
        assert is_full_selection(tee_definition, selection)
        assert not is_full_selection(tee_definition, {"Color": "White"})
