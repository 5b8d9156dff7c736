"""
Bounded undo/redo log of polyline snapshots.

The log is a list with a cursor. Recording a snapshot while the cursor is not
at the end discards everything after it before appending, and the list never
holds more than `limit` entries: the oldest drop first.

A snapshot is an immutable tuple of (lat, lng) pairs. `None` stands for "no
route" and is accepted in two places only: as the first entry of an empty
log, and through clear(). Any other `None` found in the log (for example in a
restored history) is treated as stray and skipped by undo/redo.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from src.config import routing_settings
from src.errors import InputError

logger = logging.getLogger(__name__)

Snapshot = Tuple[Tuple[float, float], ...]

NOTHING_TO_UNDO = "Nothing to undo"
NOTHING_TO_REDO = "Nothing to redo"


def _vertex(value: Any) -> Tuple[float, float]:
    if isinstance(value, dict):
        return float(value["lat"]), float(value["lng"])
    if hasattr(value, "lat") and hasattr(value, "lng"):
        return float(value.lat), float(value.lng)
    lat, lng = value
    return float(lat), float(lng)


def freeze(vertices: Optional[Iterable[Any]]) -> Optional[Snapshot]:
    """
    Copy a vertex array into an immutable snapshot.

    Accepts (lat, lng) pairs, {"lat", "lng"} dicts or objects with lat/lng
    attributes. Returns None for None.
    """
    if vertices is None:
        return None
    try:
        return tuple(_vertex(v) for v in vertices)
    except (KeyError, TypeError, ValueError) as e:
        raise InputError(f"Invalid vertex array: {e}", field="vertices")


def snapshot_key(snapshot: Optional[Snapshot], precision: int = 6) -> Optional[Snapshot]:
    """Snapshot rounded to `precision` decimals, for change detection."""
    if snapshot is None:
        return None
    return tuple((round(lat, precision), round(lng, precision)) for lat, lng in snapshot)


@dataclass(frozen=True)
class HistoryEntry:
    snapshot: Optional[Snapshot]
    cleared: bool = False

    @property
    def is_stray(self) -> bool:
        return self.snapshot is None and not self.cleared


@dataclass(frozen=True)
class HistoryMove:
    """Outcome of undo/redo (and other history-changing actions)."""
    moved: bool
    snapshot: Optional[Snapshot] = None
    notice: Optional[str] = None


class RouteEditHistory:
    """
    Undo/redo log for one editing session.

    Usage:
        history = RouteEditHistory()
        history.push(route_a)
        history.push(route_b)
        history.undo().snapshot  # route_a
    """

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit if limit is not None else routing_settings.history_limit
        if self.limit < 1:
            raise InputError(f"History limit must be positive: {self.limit}", field="limit")
        self._entries: List[HistoryEntry] = []
        self._cursor = -1

    @classmethod
    def from_snapshots(
        cls,
        snapshots: Sequence[Optional[Iterable[Any]]],
        cursor: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> "RouteEditHistory":
        """
        Rebuild a history from a plain list of vertex arrays.

        None entries are restored as stray (not deliberate clears), the same
        as push(None) records an empty start. Undo/redo skip them; a warning
        is logged when a multi-entry list contains any.
        """
        history = cls(limit=limit)
        entries = [HistoryEntry(freeze(s)) for s in snapshots][-history.limit:]
        stray = sum(1 for e in entries if e.is_stray and len(entries) > 1)
        if stray:
            logger.warning(f"Restored history contains {stray} empty entries; undo/redo will skip them")
        history._entries = entries
        if not entries:
            history._cursor = -1
        elif cursor is None:
            history._cursor = len(entries) - 1
        else:
            history._cursor = max(0, min(cursor, len(entries) - 1))
        return history

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> List[Optional[Snapshot]]:
        return [e.snapshot for e in self._entries]

    @property
    def current(self) -> Optional[Snapshot]:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor].snapshot

    def __len__(self) -> int:
        return len(self._entries)

    def _previous_index(self) -> Optional[int]:
        i = self._cursor - 1
        while i >= 0:
            if not self._entries[i].is_stray:
                return i
            i -= 1
        return None

    def _next_index(self) -> Optional[int]:
        i = self._cursor + 1
        while i < len(self._entries):
            if not self._entries[i].is_stray:
                return i
            i += 1
        return None

    @property
    def can_undo(self) -> bool:
        return self._previous_index() is not None

    @property
    def can_redo(self) -> bool:
        return self._next_index() is not None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def _append(self, entry: HistoryEntry) -> None:
        del self._entries[self._cursor + 1:]
        self._entries.append(entry)
        overflow = len(self._entries) - self.limit
        if overflow > 0:
            del self._entries[:overflow]
        self._cursor = len(self._entries) - 1

    def push(self, vertices: Optional[Iterable[Any]]) -> bool:
        """
        Record a snapshot, discarding any redo branch.

        Returns:
            False when an empty route is pushed onto a non-empty log (ignored)
        """
        snapshot = freeze(vertices)
        if snapshot is None and self._entries:
            logger.debug("Ignoring empty snapshot outside of clear()")
            return False
        self._append(HistoryEntry(snapshot))
        return True

    def clear(self) -> None:
        """Record a deliberate "route cleared" checkpoint."""
        self._append(HistoryEntry(None, cleared=True))

    def reset(self) -> None:
        """Forget all history."""
        self._entries = []
        self._cursor = -1

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def undo(self) -> HistoryMove:
        target = self._previous_index()
        if target is None:
            logger.info(NOTHING_TO_UNDO)
            return HistoryMove(False, self.current, NOTHING_TO_UNDO)
        self._cursor = target
        return HistoryMove(True, self.current)

    def redo(self) -> HistoryMove:
        target = self._next_index()
        if target is None:
            logger.info(NOTHING_TO_REDO)
            return HistoryMove(False, self.current, NOTHING_TO_REDO)
        if target != self._cursor + 1:
            logger.debug(f"Redo skipped {target - self._cursor - 1} empty entries")
        self._cursor = target
        return HistoryMove(True, self.current)
