"""Pixel projector: maps a view's percentage regions onto the live stage."""

from __future__ import annotations

from customizer.config import WIDTH_EXPANSION_FACTOR
from customizer.models.product import Region, View
from customizer.models.selection import PixelRect, StageRect


def project_region(
    region: Region,
    stage: StageRect,
    expansion: float = WIDTH_EXPANSION_FACTOR,
) -> PixelRect:
    """Project one region into stage pixels.

    The width is widened by *expansion* and re-centred on the region's
    original horizontal centre; the height is not expanded.
    """
    base_width = stage.width * region.width / 100
    width = base_width * expansion
    x = stage.x + stage.width * region.x / 100 - (width - base_width) / 2

    return PixelRect(
        region_id=region.id,
        x=x,
        y=stage.y + stage.height * region.y / 100,
        width=width,
        height=stage.height * region.height / 100,
    )


def project_view(
    view: View | None,
    stage: StageRect | None,
    expansion: float = WIDTH_EXPANSION_FACTOR,
) -> list[PixelRect]:
    """Project every region of *view*; empty when either input is missing."""
    if view is None or stage is None:
        return []
    return [project_region(region, stage, expansion) for region in view.regions]
