"""
Geometry kernel for customization regions.

Every rectangle here lives in percentage space (0-100 of the owning
image). The functions are pure: they take numbers or anything exposing
``x``, ``y``, ``width`` and ``height`` and return new values, so the
region editor, the pydantic models and the API can all share them.

Clamping order matters: size first, then position against the already
clamped size. That way a region can never be pushed partially outside
the image.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Protocol

from customizer.config import MAX_REGION_EXTENT_PCT, MIN_REGION_SIZE_PCT

# ---------------------------------------------------------------------------
# Handle kinds
# ---------------------------------------------------------------------------
MOVE = "move"
RESIZE_TOP_LEFT = "resize-top-left"
RESIZE_TOP_RIGHT = "resize-top-right"
RESIZE_BOTTOM_LEFT = "resize-bottom-left"
RESIZE_BOTTOM_RIGHT = "resize-bottom-right"

HANDLE_KINDS: tuple[str, ...] = (
    MOVE,
    RESIZE_TOP_LEFT,
    RESIZE_TOP_RIGHT,
    RESIZE_BOTTOM_LEFT,
    RESIZE_BOTTOM_RIGHT,
)

# Handles whose drag moves the left / top edge; the opposite edge stays put.
_MOVES_LEFT_EDGE = {RESIZE_TOP_LEFT, RESIZE_BOTTOM_LEFT}
_MOVES_TOP_EDGE = {RESIZE_TOP_LEFT, RESIZE_TOP_RIGHT}


class Rect(NamedTuple):
    """A rectangle in percentage space."""

    x: float
    y: float
    width: float
    height: float


class HasRect(Protocol):
    x: float
    y: float
    width: float
    height: float


# ---------------------------------------------------------------------------
# Clamping primitives
# ---------------------------------------------------------------------------

def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def clamp_size(width: float, height: float) -> tuple[float, float]:
    """Enforce the minimum region size (and the image extent as ceiling)."""
    return (
        _clamp(width, MIN_REGION_SIZE_PCT, MAX_REGION_EXTENT_PCT),
        _clamp(height, MIN_REGION_SIZE_PCT, MAX_REGION_EXTENT_PCT),
    )


def clamp_position(x: float, y: float, width: float, height: float) -> tuple[float, float]:
    """Keep the rectangle's origin such that it fits inside the image."""
    return (
        _clamp(x, 0.0, MAX_REGION_EXTENT_PCT - width),
        _clamp(y, 0.0, MAX_REGION_EXTENT_PCT - height),
    )


def normalize_rect(x: float, y: float, width: float, height: float) -> Rect:
    """Return the nearest rectangle satisfying every region invariant.

    NaN inputs fall back to ``0`` for the origin and the minimum size for
    the extent.
    """
    if math.isnan(x):
        x = 0.0
    if math.isnan(y):
        y = 0.0
    if math.isnan(width):
        width = MIN_REGION_SIZE_PCT
    if math.isnan(height):
        height = MIN_REGION_SIZE_PCT

    width, height = clamp_size(width, height)
    x, y = clamp_position(x, y, width, height)
    return Rect(x, y, width, height)


def satisfies_invariants(rect: HasRect, tolerance: float = 1e-9) -> bool:
    """True when *rect* is a valid region rectangle (up to float rounding)."""
    return (
        rect.width >= MIN_REGION_SIZE_PCT - tolerance
        and rect.height >= MIN_REGION_SIZE_PCT - tolerance
        and rect.x >= -tolerance
        and rect.y >= -tolerance
        and rect.x + rect.width <= MAX_REGION_EXTENT_PCT + tolerance
        and rect.y + rect.height <= MAX_REGION_EXTENT_PCT + tolerance
    )


# ---------------------------------------------------------------------------
# Handle deltas
# ---------------------------------------------------------------------------

def apply_delta(region: HasRect, handle: str, dx: float, dy: float) -> Rect:
    """Apply a percentage delta for *handle* and return the raw rectangle.

    No clamping happens here; see :func:`drag_region` for the full step.
    Unknown handle kinds leave the rectangle unchanged.
    """
    x, y, w, h = region.x, region.y, region.width, region.height

    if handle == MOVE:
        return Rect(x + dx, y + dy, w, h)
    if handle == RESIZE_TOP_LEFT:
        return Rect(x + dx, y + dy, w - dx, h - dy)
    if handle == RESIZE_TOP_RIGHT:
        return Rect(x, y + dy, w + dx, h - dy)
    if handle == RESIZE_BOTTOM_LEFT:
        return Rect(x + dx, y, w - dx, h + dy)
    if handle == RESIZE_BOTTOM_RIGHT:
        return Rect(x, y, w + dx, h + dy)
    return Rect(x, y, w, h)


def drag_region(region: HasRect, handle: str, dx: float, dy: float) -> Rect:
    """Apply a handle drag to *region* and clamp the result.

    When a resize hits the minimum size, the edge opposite the dragged
    handle stays anchored instead of sliding with the pointer.
    """
    raw = apply_delta(region, handle, dx, dy)
    width, height = clamp_size(raw.width, raw.height)
    x, y = raw.x, raw.y

    if handle in _MOVES_LEFT_EDGE and width != raw.width:
        x = region.x + region.width - width
    if handle in _MOVES_TOP_EDGE and height != raw.height:
        y = region.y + region.height - height

    x, y = clamp_position(x, y, width, height)
    return Rect(x, y, width, height)


def pixel_delta_to_percent(
    dx_px: float,
    dy_px: float,
    container_width_px: float,
    container_height_px: float,
) -> tuple[float, float]:
    """Convert a pointer delta in pixels into a percentage delta."""
    dx = dx_px / container_width_px * 100 if container_width_px > 0 else 0.0
    dy = dy_px / container_height_px * 100 if container_height_px > 0 else 0.0
    return dx, dy
