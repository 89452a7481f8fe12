"""Tests for the variant & view resolver."""

from customizer.models.selection import SelectionState
from customizer.services.resolver import (
    CatalogVariationImage,
    pick_active_view_id,
    resolve,
    resolve_unit_price,
)
from customizer.services.variants import variation_id


class TestUnitPrice:
    def test_matched_variation_uses_regular_price(self, tee_definition):
        price, matched = resolve_unit_price(tee_definition, {"Color": "Navy", "Size": "S"})
        assert price == 22.99
        assert matched == variation_id({"Color": "Navy", "Size": "S"})

    def test_sale_price_only_when_preferred(self, tee_definition):
        price, _ = resolve_unit_price(tee_definition, {"Color": "Navy", "Size": "S"}, prefer_sale_price=True)
        assert price == 20.99

        # Variations without a sale price keep the regular one.
        price, _ = resolve_unit_price(tee_definition, {"Color": "Navy", "Size": "M"}, prefer_sale_price=True)
        assert price == 24.99

    def test_resolve_passes_sale_policy_through(self, tee_definition):
        selection = SelectionState(attributes={"Color": "Navy", "Size": "S"})
        assert resolve(tee_definition, selection).unit_price == 22.99
        assert resolve(tee_definition, selection, prefer_sale_price=True).unit_price == 20.99

    def test_no_match_falls_back_to_base_price(self, tee_definition):
        price, matched = resolve_unit_price(tee_definition, {"Color": "Red"})
        assert (price, matched) == (19.99, None)

    def test_partial_selection_matches_by_default(self, tee_definition):
        price, _ = resolve_unit_price(tee_definition, {"Size": "M"})
        assert price == 21.99

    def test_require_full_selection_refuses_partial(self, tee_definition):
        price, matched = resolve_unit_price(tee_definition, {"Size": "M"}, require_full_selection=True)
        assert (price, matched) == (19.99, None)


class TestViewSet:
    """View-set priority: override, catalog image, defaults."""

    def test_override_group_wins(self, tee_definition):
        resolved = resolve(tee_definition, SelectionState(attributes={"Color": "Navy", "Size": "M"}))
        assert [v.id for v in resolved.views] == ["navy_front"]
        assert resolved.active_view_id == "navy_front"

    def test_empty_override_group_uses_defaults(self, tee_definition):
        resolved = resolve(tee_definition, SelectionState(attributes={"Color": "White"}))
        assert [v.id for v in resolved.views] == ["front", "back"]

    def test_catalog_image_builds_transient_view(self, tee_definition):
        image = CatalogVariationImage(variation_id="white-m", image_url="https://shop.example.com/white-m.jpg")
        resolved = resolve(
            tee_definition,
            SelectionState(attributes={"Color": "White", "Size": "M"}),
            variation_image=image,
        )

        (view,) = resolved.views
        assert view.id == "variation_view_white-m"
        assert view.name == "White M"
        assert view.image_url == "https://shop.example.com/white-m.jpg"
        assert [r.rect for r in view.regions] == [r.rect for r in tee_definition.default_views[0].regions]
        assert (view.price, view.print_fee, view.embroidery_fee) == (0.0, 0.0, 0.0)

    def test_override_beats_catalog_image(self, tee_definition):
        image = CatalogVariationImage(variation_id="navy-s", image_url="https://shop.example.com/navy.jpg")
        resolved = resolve(tee_definition, SelectionState(attributes={"Color": "Navy"}), variation_image=image)
        assert [v.id for v in resolved.views] == ["navy_front"]

    def test_active_view_kept_when_still_present(self, tee_definition):
        resolved = resolve(tee_definition, SelectionState(attributes={"Color": "White"}, active_view_id="back"))
        assert resolved.active_view_id == "back"

    def test_active_view_falls_back_to_first(self, tee_definition):
        selection = SelectionState(attributes={"Color": "Navy"}, active_view_id="back")
        assert resolve(tee_definition, selection).active_view_id == "navy_front"

    def test_pick_active_view_on_empty_set(self):
        assert pick_active_view_id([], "front") is None


class TestPurity:
    def test_resolution_is_idempotent(self, tee_definition):
        selection = SelectionState(attributes={"Color": "Navy", "Size": "S"}, technique="DTG")
        assert resolve(tee_definition, selection) == resolve(tee_definition, selection)

    def test_definition_is_not_mutated(self, tee_definition):
        before = tee_definition.model_dump()
        resolved = resolve(tee_definition, SelectionState(attributes={"Color": "White"}))
        resolved.views[0].regions.clear()

        assert tee_definition.model_dump() == before
