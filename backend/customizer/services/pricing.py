"""
Price aggregator.

total = resolved unit price + surcharge of every resolved view that
currently carries at least one placed design element. Which views carry
content is decided by the canvas, not here.
"""

from __future__ import annotations

from collections.abc import Iterable

from customizer.config import EMBROIDERY_TECHNIQUE
from customizer.models.product import View


def view_surcharge(view: View, technique: str | None) -> float:
    """Technique-specific fee of *view*, falling back to its generic price."""
    if technique == EMBROIDERY_TECHNIQUE:
        fee = view.embroidery_fee
    else:
        fee = view.print_fee
    if fee is None:
        fee = view.price
    return fee or 0.0


def total_price(
    unit_price: float,
    views: list[View],
    content_view_ids: Iterable[str],
    technique: str | None,
) -> float:
    """Sum *unit_price* and the surcharges of views holding content.

    Ids that are not part of *views* contribute nothing.
    """
    with_content = set(content_view_ids)
    surcharges = sum(view_surcharge(view, technique) for view in views if view.id in with_content)
    return round(unit_price + surcharges, 2)
