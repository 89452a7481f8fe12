"""
Interactive region editor.

Owns the authoring-time view collection of one variant group (the default
views, or the override views of one grouping value) and lets a merchant
move and resize regions by direct manipulation.

A drag is a scoped :class:`DragSession`: it subscribes to global pointer
move/up events when it starts and its single cleanup runs exactly once,
whether the drag ends explicitly, the pointer is released outside the
surface or leaves the window, or the editor is torn down.

Pointer moves can arrive faster than the surface redraws. They are
coalesced through a :class:`FrameCoalescer`: at most one geometry
mutation per frame, using the most recent pointer position.

Nothing here raises in normal operation. Out-of-range geometry is
clamped, cap overflows and unknown ids are silent no-ops.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Protocol, TypeVar

from customizer.config import (
    FRAME_INTERVAL_SECONDS,
    MAX_REGIONS_PER_VIEW,
    MAX_VIEWS_PER_COLLECTION,
    NEW_REGION_HEIGHT_PCT,
    NEW_REGION_ORIGIN_PCT,
    NEW_REGION_STAGGER_PCT,
    NEW_REGION_WIDTH_PCT,
    PLACEHOLDER_VIEW_IMAGE_URL,
)
from customizer.models.product import Region, View
from customizer.services.geometry import HANDLE_KINDS, Rect, drag_region, pixel_delta_to_percent

logger = logging.getLogger(__name__)

Point = tuple[float, float]
T = TypeVar("T")

_EDITABLE_VIEW_FIELDS = {"name", "image_url", "ai_hint", "price", "embroidery_fee", "print_fee"}
_EDITABLE_REGION_PROPERTIES = {"x", "y", "width", "height"}


# ---------------------------------------------------------------------------
# Frame scheduling
# ---------------------------------------------------------------------------

class FrameScheduler(Protocol):
    def request(self, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ManualFrameScheduler:
    """Runs requested callbacks when :meth:`flush` is called.

    Used headless and in tests, where "a frame" is whatever the caller
    decides it is.
    """

    def __init__(self) -> None:
        self._pending: dict[int, Callable[[], None]] = {}
        self._next_handle = 0

    def request(self, callback: Callable[[], None]) -> int:
        self._next_handle += 1
        self._pending[self._next_handle] = callback
        return self._next_handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def flush(self) -> int:
        """Run every pending callback once; return how many ran."""
        pending, self._pending = self._pending, {}
        for callback in pending.values():
            callback()
        return len(pending)


class AsyncioFrameScheduler:
    """Schedules frame callbacks on an asyncio loop at a fixed cadence."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        interval: float = FRAME_INTERVAL_SECONDS,
    ) -> None:
        self._loop = loop
        self._interval = interval

    def request(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self._interval, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


_UNSET = object()


class FrameCoalescer(Generic[T]):
    """Latest value wins; at most one flush per frame.

    Superseded values pushed during a frame are discarded, not queued.
    """

    def __init__(self, scheduler: FrameScheduler, apply: Callable[[T], None]) -> None:
        self._scheduler = scheduler
        self._apply = apply
        self._latest: Any = _UNSET
        self._handle: Any = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, value: T) -> None:
        self._latest = value
        if self._handle is None:
            self._handle = self._scheduler.request(self._flush)

    def cancel(self) -> None:
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
        self._handle = None
        self._latest = _UNSET

    def _flush(self) -> None:
        value, self._latest = self._latest, _UNSET
        self._handle = None
        if value is not _UNSET:
            self._apply(value)


# ---------------------------------------------------------------------------
# Pointer events
# ---------------------------------------------------------------------------

class PointerEventSource(Protocol):
    def subscribe(
        self,
        on_move: Callable[[Point], None],
        on_up: Callable[[], None],
    ) -> Callable[[], None]:
        """Register global listeners; return the function removing them."""
        ...


class PointerHub:
    """In-process window-level pointer event source."""

    def __init__(self) -> None:
        self._listeners: list[tuple[Callable[[Point], None], Callable[[], None]]] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(
        self,
        on_move: Callable[[Point], None],
        on_up: Callable[[], None],
    ) -> Callable[[], None]:
        entry = (on_move, on_up)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def move(self, x: float, y: float) -> None:
        for on_move, _ in list(self._listeners):
            on_move((x, y))

    def up(self) -> None:
        for _, on_up in list(self._listeners):
            on_up()

    def leave(self) -> None:
        """Pointer left the window; ends drags like a release."""
        self.up()


# ---------------------------------------------------------------------------
# Drag session
# ---------------------------------------------------------------------------

@dataclass
class DragSession:
    """State of one move/resize interaction."""

    handle: str
    region_id: str
    view_id: str
    pointer_origin: Point
    start_rect: Rect
    container_size: tuple[float, float]
    _cleanup: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def closed(self) -> bool:
        return self._cleanup is None

    def close(self) -> None:
        """Run the registered cleanup; later calls do nothing."""
        cleanup, self._cleanup = self._cleanup, None
        if cleanup is not None:
            cleanup()

    def rect_for(self, pointer: Point) -> Rect:
        dx, dy = pixel_delta_to_percent(
            pointer[0] - self.pointer_origin[0],
            pointer[1] - self.pointer_origin[1],
            *self.container_size,
        )
        return drag_region(self.start_rect, self.handle, dx, dy)


# ---------------------------------------------------------------------------
# Editor
# ---------------------------------------------------------------------------

class RegionEditor:
    """Authoring controller for one view collection."""

    def __init__(
        self,
        views: list[View] | None = None,
        pointer_source: PointerEventSource | None = None,
        scheduler: FrameScheduler | None = None,
    ) -> None:
        self._views: list[View] = [v.model_copy(deep=True) for v in (views or [])][:MAX_VIEWS_PER_COLLECTION]
        self.active_view_id: str | None = self._views[0].id if self._views else None
        self.selected_region_id: str | None = None
        self.has_unsaved_changes = False

        self._pointer_source = pointer_source
        self._scheduler = scheduler or ManualFrameScheduler()
        self._coalescer: FrameCoalescer[Point] = FrameCoalescer(self._scheduler, self._apply_pointer)
        self._session: DragSession | None = None

    def __enter__(self) -> "RegionEditor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.teardown()

    # -- Read access ---------------------------------------------------------

    @property
    def views(self) -> list[View]:
        return [v.model_copy(deep=True) for v in self._views]

    @property
    def active_view(self) -> View | None:
        return self._find_view(self.active_view_id)

    @property
    def session(self) -> DragSession | None:
        return self._session

    def _find_view(self, view_id: str | None) -> View | None:
        for view in self._views:
            if view.id == view_id:
                return view
        return None

    def _replace_view(self, updated: View) -> None:
        self._views = [updated if v.id == updated.id else v for v in self._views]
        self.has_unsaved_changes = True

    def _replace_region(self, view_id: str, region: Region) -> None:
        view = self._find_view(view_id)
        if view is None:
            return
        regions = [region if r.id == region.id else r for r in view.regions]
        self._replace_view(view.model_copy(update={"regions": regions}))

    # -- Drag sessions -------------------------------------------------------

    def start_session(
        self,
        region_id: str,
        handle: str,
        pointer_xy: Point,
        container_size: tuple[float, float],
    ) -> DragSession | None:
        """Begin a move/resize of *region_id* on the active view.

        Ignored (returns ``None``) while another session is open, or for an
        unknown region or handle kind.
        """
        if self._session is not None:
            return None
        if handle not in HANDLE_KINDS:
            return None
        view = self.active_view
        region = next((r for r in view.regions if r.id == region_id), None) if view else None
        if region is None:
            return None

        self.selected_region_id = region_id
        session = DragSession(
            handle=handle,
            region_id=region_id,
            view_id=view.id,
            pointer_origin=pointer_xy,
            start_rect=region.rect,
            container_size=container_size,
        )
        unsubscribe = None
        if self._pointer_source is not None:
            unsubscribe = self._pointer_source.subscribe(self.update_session, self.end_session)
        session._cleanup = unsubscribe or (lambda: None)
        self._session = session
        return session

    def update_session(self, pointer_xy: Point) -> None:
        """Queue a pointer position; applied on the next frame."""
        if self._session is None:
            return
        self._coalescer.push(pointer_xy)

    def end_session(self) -> None:
        """Finish the drag, dropping any frame not yet applied."""
        session, self._session = self._session, None
        self._coalescer.cancel()
        if session is not None:
            session.close()

    def teardown(self) -> None:
        self.end_session()

    def _apply_pointer(self, pointer_xy: Point) -> None:
        session = self._session
        if session is None:
            return
        view = self._find_view(session.view_id)
        region = next((r for r in view.regions if r.id == session.region_id), None) if view else None
        if region is None:
            return
        self._replace_region(session.view_id, region.with_rect(session.rect_for(pointer_xy)))

    # -- Regions -------------------------------------------------------------

    def select_region(self, region_id: str | None) -> None:
        view = self.active_view
        if region_id is None or (view and any(r.id == region_id for r in view.regions)):
            self.selected_region_id = region_id

    def add_region(self) -> None:
        """Add a staggered default region to the active view (max 3)."""
        view = self.active_view
        if view is None or len(view.regions) >= MAX_REGIONS_PER_VIEW:
            return
        count = len(view.regions)
        offset = NEW_REGION_ORIGIN_PCT + count * NEW_REGION_STAGGER_PCT
        region = Region(
            name=f"Area {count + 1}",
            x=offset,
            y=offset,
            width=NEW_REGION_WIDTH_PCT,
            height=NEW_REGION_HEIGHT_PCT,
        )
        self._replace_view(view.model_copy(update={"regions": [*view.regions, region]}))
        self.selected_region_id = region.id

    def remove_region(self, region_id: str) -> None:
        view = self.active_view
        if view is None or not any(r.id == region_id for r in view.regions):
            return
        if self._session is not None and self._session.region_id == region_id:
            self.end_session()
        self._replace_view(view.model_copy(update={"regions": [r for r in view.regions if r.id != region_id]}))
        if self.selected_region_id == region_id:
            self.selected_region_id = None

    def rename_region(self, region_id: str, name: str) -> None:
        view = self.active_view
        region = next((r for r in view.regions if r.id == region_id), None) if view else None
        if region is None:
            return
        self._replace_region(view.id, region.model_copy(update={"name": name}))

    def set_region_property(self, region_id: str, prop: str, value: str | float) -> None:
        """Set x/y/width/height from form input; the result is clamped."""
        if prop not in _EDITABLE_REGION_PROPERTIES:
            return
        view = self.active_view
        region = next((r for r in view.regions if r.id == region_id), None) if view else None
        if region is None:
            return
        data = region.model_dump()
        data[prop] = value
        self._replace_region(view.id, Region.model_validate(data))

    # -- Views ---------------------------------------------------------------

    def select_view(self, view_id: str) -> None:
        if self._find_view(view_id) is None:
            return
        if view_id != self.active_view_id:
            self.end_session()
        self.active_view_id = view_id
        self.selected_region_id = None

    def add_view(self) -> None:
        """Append a placeholder view and make it active (max 4)."""
        if len(self._views) >= MAX_VIEWS_PER_COLLECTION:
            return
        view = View(
            name=f"View {len(self._views) + 1}",
            image_url=PLACEHOLDER_VIEW_IMAGE_URL,
            ai_hint="product view",
            price=0.0,
        )
        self._views.append(view)
        self.has_unsaved_changes = True
        self.end_session()
        self.active_view_id = view.id
        self.selected_region_id = None

    def remove_view(self, view_id: str) -> None:
        """Delete a view; the active view falls back to the first remaining one."""
        if self._find_view(view_id) is None:
            return
        if self._session is not None and self._session.view_id == view_id:
            self.end_session()
        self._views = [v for v in self._views if v.id != view_id]
        self.has_unsaved_changes = True
        if self._find_view(self.active_view_id) is None:
            self.active_view_id = self._views[0].id if self._views else None
            self.selected_region_id = None

    def update_view(self, view_id: str, **changes: Any) -> None:
        """Edit a view's name, image or surcharges. Other fields are ignored."""
        view = self._find_view(view_id)
        if view is None:
            return
        allowed = {k: v for k, v in changes.items() if k in _EDITABLE_VIEW_FIELDS}
        if not allowed:
            return
        try:
            updated = View.model_validate({**view.model_dump(), **allowed})
        except ValueError as exc:
            logger.warning("[region_editor] Ignoring invalid view change for %s: %s", view_id, exc)
            return
        self._replace_view(updated)
