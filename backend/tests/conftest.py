"""Shared pytest fixtures for customizer tests."""

import copy

import pytest

from customizer.models.product import (
    AttributeDefinition,
    AttributeOption,
    ProductDefinition,
    Region,
    Variation,
    View,
    ViewOverrideGroup,
)
from customizer.services import cart_snapshot
from customizer.services.variants import variation_id


def make_variation(color: str, size: str, price: float, sale_price: float | None = None) -> Variation:
    attributes = {"Color": color, "Size": size}
    return Variation(id=variation_id(attributes), attributes=attributes, price=price, sale_price=sale_price)


@pytest.fixture
def front_view() -> View:
    return View(
        id="front",
        name="Front",
        image_url="https://cdn.example.com/tee-front.png",
        regions=[Region(id="chest", name="Chest", x=25, y=25, width=50, height=30)],
        price=1.0,
        print_fee=3.0,
        embroidery_fee=5.0,
    )


@pytest.fixture
def back_view() -> View:
    return View(
        id="back",
        name="Back",
        image_url="https://cdn.example.com/tee-back.png",
        regions=[Region(id="back_area", name="Back", x=20, y=10, width=60, height=60)],
        price=2.0,
    )


@pytest.fixture
def navy_front_view() -> View:
    return View(
        id="navy_front",
        name="Navy Front",
        image_url="https://cdn.example.com/tee-navy-front.png",
        regions=[Region(id="navy_chest", name="Chest", x=30, y=20, width=40, height=30)],
        print_fee=4.0,
    )


@pytest.fixture
def tee_definition(front_view, back_view, navy_front_view) -> ProductDefinition:
    """Variable tee: Color x Size, with a view override for Navy."""
    return ProductDefinition(
        id="tee",
        owner_id="owner-1",
        name="Classic Tee",
        kind="variable",
        base_price=19.99,
        techniques=["DTG", "Embroidery"],
        attributes=[
            AttributeDefinition(
                name="Color",
                options=[AttributeOption(name="White", hex="#ffffff"), AttributeOption(name="Navy", hex="#000080")],
            ),
            AttributeDefinition(name="Size", options=[AttributeOption(name="S"), AttributeOption(name="M")]),
        ],
        variations=[
            make_variation("White", "S", 19.99),
            make_variation("White", "M", 21.99),
            make_variation("Navy", "S", 22.99, sale_price=20.99),
            make_variation("Navy", "M", 24.99),
        ],
        grouping_attribute="Color",
        view_overrides={
            "Navy": ViewOverrideGroup(views=[navy_front_view]),
            "White": ViewOverrideGroup(views=[]),
        },
        default_views=[front_view, back_view],
    )


@pytest.fixture
def simple_definition(front_view, back_view) -> ProductDefinition:
    return ProductDefinition(
        id="mug",
        owner_id="owner-1",
        name="Mug",
        base_price=19.99,
        techniques=["Sublimation"],
        default_views=[front_view, back_view],
    )


@pytest.fixture
def cart_store(monkeypatch) -> dict[str, list[dict]]:
    """In-memory cart table behind the cart snapshot module."""
    store: dict[str, list[dict]] = {}

    def load(key):
        return copy.deepcopy(store.get(key, []))

    def save(key, items):
        store[key] = copy.deepcopy(items)

    monkeypatch.setattr(cart_snapshot, "load_cart", load)
    monkeypatch.setattr(cart_snapshot, "save_cart", save)
    return store
