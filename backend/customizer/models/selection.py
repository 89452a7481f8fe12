"""Pydantic v2 models for shopper selection, resolution output and stage geometry."""

from pydantic import BaseModel, Field

from customizer.models.product import View


class SelectionState(BaseModel):
    """The shopper's current choices in one customizer session."""

    attributes: dict[str, str] = Field(default_factory=dict)
    technique: str | None = None
    active_view_id: str | None = None


class StageRect(BaseModel):
    """Pixel rectangle of the live stage (image area) on screen."""

    x: float = 0.0
    y: float = 0.0
    width: float
    height: float


class PixelRect(BaseModel):
    """A region projected into on-screen pixels."""

    region_id: str
    x: float
    y: float
    width: float
    height: float


class ResolvedSurface(BaseModel):
    """Result of resolving a definition against a selection."""

    unit_price: float
    views: list[View]
    active_view_id: str | None = None
    matched_variation_id: str | None = None

    def get_view(self, view_id: str | None) -> View | None:
        for view in self.views:
            if view.id == view_id:
                return view
        return None

    @property
    def active_view(self) -> View | None:
        return self.get_view(self.active_view_id)
