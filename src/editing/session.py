"""
Edit session controller for a hand-drawn route.

Wraps a DrawingSurface (the map's polyline capability) and records every
committed change in a RouteEditHistory:

    Idle --draw--> HasRoute --start_edit--> Editing --stop_edit--> HasRoute
    HasRoute --clear--> Idle

While editing, a periodic asyncio task polls the surface and records a
snapshot whenever the vertices change beyond 6-decimal rounding. Surfaces
that emit change notifications trigger the same check immediately. Hosts
without a running event loop call poll() themselves.
"""

import asyncio
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Sequence

from src.config import RoutingSettings, routing_settings
from src.editing.history import HistoryMove, RouteEditHistory, Snapshot, freeze, snapshot_key
from src.errors import InputError, NeedMorePointsError
from src.routes.smoothing import smooth

logger = logging.getLogger(__name__)


class DrawingSurface(Protocol):
    """Polyline drawing capability supplied by the map layer."""

    def get_vertices(self) -> Optional[Sequence[Any]]:
        ...

    def set_vertices(self, vertices: Optional[Sequence[Any]]) -> None:
        ...

    def on_vertex_change(self, callback: Callable[[], None]) -> None:
        ...


class EditState(str, Enum):
    IDLE = "idle"
    HAS_ROUTE = "has_route"
    EDITING = "editing"


class EditHistoryController:
    """
    Undo/redo and live checkpointing for one editing session.

    Usage:
        controller = EditHistoryController(surface)
        controller.draw(vertices)
        controller.start_edit()      # inside a running event loop
        ...                          # user drags vertices
        controller.stop_edit()
        controller.undo()
    """

    def __init__(
        self,
        surface: DrawingSurface,
        settings: Optional[RoutingSettings] = None,
        history: Optional[RouteEditHistory] = None,
    ):
        self.surface = surface
        self.settings = settings or routing_settings
        self.history = history or RouteEditHistory(limit=self.settings.history_limit)
        self.state = EditState.HAS_ROUTE if self.history.current is not None else EditState.IDLE

        self._poller: Optional[asyncio.Task] = None
        self._last_key: Optional[Snapshot] = None
        self._restoring = False

        surface.on_vertex_change(self._on_vertex_change)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and not self._poller.done()

    def _key(self, snapshot: Optional[Snapshot]) -> Optional[Snapshot]:
        return snapshot_key(snapshot, self.settings.coordinate_precision)

    @contextmanager
    def _restoring_surface(self):
        """Suppress change detection while the controller writes to the surface."""
        self._restoring = True
        try:
            yield
        finally:
            self._restoring = False

    def _show(self, snapshot: Optional[Snapshot]) -> None:
        with self._restoring_surface():
            self.surface.set_vertices(None if snapshot is None else [list(v) for v in snapshot])
        if self.state == EditState.EDITING:
            self._last_key = self._key(snapshot)

    def _cancel_poller(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None

    def _on_vertex_change(self) -> None:
        if self.state == EditState.EDITING and not self._restoring:
            self.poll()

    async def _poll_loop(self) -> None:
        interval = self.settings.edit_poll_interval
        while True:
            await asyncio.sleep(interval)
            try:
                self.poll()
            except InputError as e:
                logger.warning(f"Skipping edit checkpoint, surface returned bad vertices: {e.message}")

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw(self, vertices: Optional[Sequence[Any]]) -> HistoryMove:
        """Commit a newly drawn (or generated) polyline. None clears the route."""
        if vertices is None:
            return self.clear()
        if self.state == EditState.EDITING:
            self.stop_edit()
        snapshot = freeze(vertices)
        self.history.push(snapshot)
        self._show(snapshot)
        self.state = EditState.HAS_ROUTE
        return HistoryMove(True, snapshot)

    def load(self, vertices: Sequence[Any]) -> None:
        """Replace the session with a saved route as its only snapshot."""
        self._cancel_poller()
        self.history.reset()
        self.state = EditState.HAS_ROUTE
        self.draw(vertices)

    def clear(self) -> HistoryMove:
        """Remove the route, recording an explicit cleared checkpoint."""
        if self.state == EditState.EDITING:
            self.stop_edit()
        self.history.clear()
        self._show(None)
        self.state = EditState.IDLE
        return HistoryMove(True, None)

    def reset(self) -> None:
        """Drop all history, e.g. when the port pair changes."""
        self._cancel_poller()
        self.history.reset()
        self._last_key = None
        self.state = EditState.IDLE
        self._show(None)

    # ------------------------------------------------------------------
    # Live editing
    # ------------------------------------------------------------------

    def start_edit(self) -> bool:
        """
        Checkpoint the current vertices and begin watching for changes.

        Returns:
            False when there is no route on the surface to edit
        """
        self._cancel_poller()

        snapshot = freeze(self.surface.get_vertices())
        if not snapshot:
            logger.info("No route to edit")
            return False

        # Always checkpoint so undo returns to the pre-edit shape
        self.history.push(snapshot)
        self._last_key = self._key(snapshot)
        self.state = EditState.EDITING

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; edit changes recorded on poll() only")
        else:
            self._poller = loop.create_task(self._poll_loop())
        return True

    def poll(self) -> bool:
        """
        Record the surface vertices if they changed since the last record.

        Returns:
            True if a snapshot was pushed
        """
        if self.state != EditState.EDITING or self._restoring:
            return False

        snapshot = freeze(self.surface.get_vertices())
        if not snapshot:
            return False

        key = self._key(snapshot)
        if key == self._last_key:
            return False

        self._last_key = key
        self.history.push(snapshot)
        logger.debug(f"Edit checkpoint: {len(snapshot)} vertices, history size {len(self.history)}")
        return True

    def stop_edit(self) -> None:
        """Final check for changes, then stop the poller."""
        self._cancel_poller()
        if self.state == EditState.EDITING:
            self.poll()
            self.state = EditState.HAS_ROUTE
        self._last_key = None

    def close(self) -> None:
        self._cancel_poller()
        if self.state == EditState.EDITING:
            self.state = EditState.HAS_ROUTE

    # ------------------------------------------------------------------
    # History navigation
    # ------------------------------------------------------------------

    def _apply(self, move: HistoryMove) -> HistoryMove:
        if not move.moved:
            return move
        self._show(move.snapshot)
        if move.snapshot is None:
            self._cancel_poller()
            self.state = EditState.IDLE
        elif self.state != EditState.EDITING:
            self.state = EditState.HAS_ROUTE
        return move

    def undo(self) -> HistoryMove:
        return self._apply(self.history.undo())

    def redo(self) -> HistoryMove:
        return self._apply(self.history.redo())

    # ------------------------------------------------------------------
    # Smoothing
    # ------------------------------------------------------------------

    def smooth(self) -> HistoryMove:
        """
        Smooth the current route and record the result.

        Fewer than three vertices is a no-op carrying a notice for the user.
        """
        current = freeze(self.surface.get_vertices())
        try:
            smoothed = smooth(current or ())
        except NeedMorePointsError as e:
            logger.info(e.message)
            return HistoryMove(False, current, e.message)

        snapshot = freeze(smoothed)
        self.history.push(snapshot)
        self._show(snapshot)
        if self.state == EditState.IDLE:
            self.state = EditState.HAS_ROUTE
        logger.info(f"Smoothed route: {len(current)} -> {len(snapshot)} vertices")
        return HistoryMove(True, snapshot)
