"""
Variation bookkeeping: deterministic ids, regeneration on attribute edits,
selection matching and bulk price edits.
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import Literal

from customizer.errors import ValidationError
from customizer.models.product import AttributeDefinition, ProductDefinition, Variation

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------------

def variation_id(attributes: dict[str, str]) -> str:
    """Return the stable id for an attribute-value combination.

    Pairs are emitted in sorted attribute-name order, so
    ``{"Size": "M", "Color": "Navy Blue"}`` becomes
    ``color-navy-blue-size-m``.
    """
    raw = "-".join(f"{name}-{value}" for name, value in sorted(attributes.items()))
    return _WHITESPACE_RE.sub("-", raw.lower())


# ---------------------------------------------------------------------------
# Regeneration
# ---------------------------------------------------------------------------

def _combinations(attributes: list[AttributeDefinition]) -> list[dict[str, str]]:
    populated = [a for a in attributes if a.options]
    if not populated:
        return []
    names = [a.name for a in populated]
    return [
        dict(zip(names, values))
        for values in itertools.product(*(a.option_names for a in populated))
    ]


def generate_variations(definition: ProductDefinition) -> list[Variation]:
    """Rebuild the variation list for the definition's current attribute set.

    Existing variations keep their price and sale price when their id still
    corresponds to a combination. New combinations default to the current
    base price with no sale price. Orphans are dropped.
    """
    existing = {v.id: v for v in definition.variations}
    regenerated: list[Variation] = []

    for combo in _combinations(definition.attributes):
        vid = variation_id(combo)
        previous = existing.get(vid)
        if previous is not None:
            regenerated.append(
                Variation(id=vid, attributes=combo, price=previous.price, sale_price=previous.sale_price)
            )
        else:
            regenerated.append(Variation(id=vid, attributes=combo, price=definition.base_price))

    dropped = len(set(existing) - {v.id for v in regenerated})
    logger.info(
        "[variants] Regenerated %d variations for %s (%d dropped)",
        len(regenerated), definition.id, dropped,
    )
    return regenerated


def regenerate(definition: ProductDefinition) -> ProductDefinition:
    """Return *definition* with its variation list regenerated.

    A ``variable`` product needs at least one attribute option to vary on.
    """
    variations = generate_variations(definition)
    if definition.kind == "variable" and not variations:
        raise ValidationError("A variable product needs at least one attribute option.")
    return definition.model_copy(update={"variations": variations})


def bulk_update_variations(
    variations: list[Variation],
    field: Literal["price", "sale_price"],
    value: float | None,
) -> list[Variation]:
    """Set *field* to *value* on every variation.

    ``price`` cannot be cleared; ``sale_price`` can (``None``).
    """
    if field == "price" and value is None:
        raise ValidationError("Base price for a variation cannot be empty.")
    return [v.model_copy(update={field: value}) for v in variations]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def default_selection(definition: ProductDefinition) -> dict[str, str]:
    """A full selection made of the first option of every attribute."""
    return {a.name: a.options[0].name for a in definition.attributes if a.options}


def is_full_selection(definition: ProductDefinition, selected: dict[str, str]) -> bool:
    return all(a.name in selected for a in definition.attributes if a.options)


def match_variation(
    variations: list[Variation],
    selected: dict[str, str],
) -> Variation | None:
    """Return the first variation agreeing with every selected attribute.

    Attributes absent from *selected* are not checked, so a partial
    selection can match several variations; the first in definition order
    wins.
    """
    for variation in variations:
        if all(variation.attributes.get(name) == value for name, value in selected.items()):
            return variation
    return None
