"""
Reactive customizer session.

Holds one shopper's state and keeps the derived values current: every
input change (definition, attribute selection, technique, active view,
stage rect, content views) recomputes the resolved surface, the pixel
regions of the active view and the total price.

Definition loads are asynchronous. Each load takes a fresh request token
and only the load holding the latest token may commit, so a slow response
for product A can never overwrite product B loaded after it.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from customizer.models.product import ProductDefinition
from customizer.models.selection import PixelRect, ResolvedSurface, SelectionState, StageRect
from customizer.services.pricing import total_price
from customizer.services.projector import project_view
from customizer.services.resolver import CatalogVariationImage, resolve, resolve_unit_price
from customizer.services.variants import default_selection

logger = logging.getLogger(__name__)

DefinitionLoader = Callable[[], Awaitable[ProductDefinition]]


class CustomizerSession:
    def __init__(
        self,
        definition: ProductDefinition | None = None,
        variation_images: dict[str, CatalogVariationImage] | None = None,
        require_full_selection: bool = False,
    ) -> None:
        self.definition: ProductDefinition | None = None
        self.selection = SelectionState()
        self.stage: StageRect | None = None
        self.content_view_ids: set[str] = set()
        self.require_full_selection = require_full_selection

        self.resolved: ResolvedSurface | None = None
        self.pixel_regions: list[PixelRect] = []
        self.total_price: float = 0.0

        self._variation_images = dict(variation_images or {})
        self._load_token = 0

        if definition is not None:
            self.set_definition(definition)

    # -- Inputs ----------------------------------------------------------------

    def set_definition(
        self,
        definition: ProductDefinition,
        variation_images: dict[str, CatalogVariationImage] | None = None,
    ) -> None:
        """Switch to *definition* and seed a full default selection."""
        self.definition = definition
        if variation_images is not None:
            self._variation_images = dict(variation_images)
        self.selection = SelectionState(
            attributes=default_selection(definition),
            technique=definition.techniques[0] if definition.techniques else None,
        )
        self.content_view_ids = set()
        self._recompute()

    def select_attribute(self, name: str, value: str) -> None:
        attributes = {**self.selection.attributes, name: value}
        self.selection = self.selection.model_copy(update={"attributes": attributes})
        self._recompute()

    def set_technique(self, technique: str | None) -> None:
        self.selection = self.selection.model_copy(update={"technique": technique})
        self._recompute()

    def select_view(self, view_id: str) -> None:
        self.selection = self.selection.model_copy(update={"active_view_id": view_id})
        self._recompute()

    def set_stage(self, stage: StageRect | None) -> None:
        self.stage = stage
        self._recompute()

    def set_content_views(self, view_ids: Iterable[str]) -> None:
        self.content_view_ids = set(view_ids)
        self._recompute()

    # -- Loading ---------------------------------------------------------------

    async def load_definition(self, loader: DefinitionLoader) -> bool:
        """Await *loader* and commit its result unless a newer load started.

        Returns True when the result was committed. Loader errors propagate
        for the latest load and are dropped for superseded ones; the
        current state is left untouched either way.
        """
        self._load_token += 1
        token = self._load_token
        try:
            definition = await loader()
        except Exception as exc:
            if token != self._load_token:
                logger.debug("[session] Ignoring failure of superseded load %d: %s", token, exc)
                return False
            logger.error("[session] Definition load failed: %s", exc)
            raise

        if token != self._load_token:
            logger.debug("[session] Discarding stale definition %s (load %d)", definition.id, token)
            return False

        self.set_definition(definition)
        return True

    # -- Derived state ---------------------------------------------------------

    @property
    def unit_price(self) -> float:
        return self.resolved.unit_price if self.resolved else 0.0

    def _recompute(self) -> None:
        if self.definition is None:
            self.resolved = None
            self.pixel_regions = []
            self.total_price = 0.0
            return

        _, matched_id = resolve_unit_price(
            self.definition, self.selection.attributes, self.require_full_selection
        )
        self.resolved = resolve(
            self.definition,
            self.selection,
            variation_image=self._variation_images.get(matched_id) if matched_id else None,
            require_full_selection=self.require_full_selection,
        )
        if self.resolved.active_view_id != self.selection.active_view_id:
            self.selection = self.selection.model_copy(
                update={"active_view_id": self.resolved.active_view_id}
            )

        self.pixel_regions = project_view(self.resolved.active_view, self.stage)
        self.total_price = total_price(
            self.resolved.unit_price,
            self.resolved.views,
            self.content_view_ids,
            self.selection.technique,
        )
