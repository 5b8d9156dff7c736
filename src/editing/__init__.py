"""Interactive route editing: undo/redo history and live edit sessions."""

from .history import HistoryMove, RouteEditHistory, freeze
from .session import DrawingSurface, EditHistoryController, EditState

__all__ = [
    'DrawingSurface',
    'EditHistoryController',
    'EditState',
    'HistoryMove',
    'RouteEditHistory',
    'freeze',
]
