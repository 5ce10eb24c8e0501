"""
Linear undo/redo history over snapshots of the committed polygon list.
"""

import copy
import logging
from typing import List, Optional

from .state import Polygon

logger = logging.getLogger(__name__)


class History:
    """
    Snapshot stack with a cursor.

    The stack always starts with one empty snapshot, so undoing the first
    commit returns an empty polygon list. Committing after an undo drops
    the redo branch.
    """

    def __init__(self, limit: int = 0):
        """
        Args:
            limit: Maximum number of snapshots kept (0 for unlimited)
        """
        self.limit = limit
        self._entries: List[List[Polygon]] = [[]]
        self._cursor = 0

    @staticmethod
    def _copy(polygons: List[Polygon]) -> List[Polygon]:
        return copy.deepcopy(list(polygons))

    def reset(self, initial: Optional[List[Polygon]] = None):
        self._entries = [self._copy(initial or [])]
        self._cursor = 0

    def commit(self, polygons: List[Polygon]):
        """Record a snapshot after the cursor, discarding any redo entries."""
        del self._entries[self._cursor + 1:]
        self._entries.append(self._copy(polygons))
        self._cursor += 1

        if self.limit and len(self._entries) > self.limit:
            overflow = len(self._entries) - self.limit
            del self._entries[:overflow]
            self._cursor -= overflow

        logger.debug("History commit %d/%d", self._cursor, len(self._entries) - 1)

    def undo(self) -> Optional[List[Polygon]]:
        """Step back one snapshot; None when already at the oldest one."""
        if self._cursor == 0:
            return None
        self._cursor -= 1
        return self._copy(self._entries[self._cursor])

    def redo(self) -> Optional[List[Polygon]]:
        """Step forward one snapshot; None when already at the newest one."""
        if self._cursor == len(self._entries) - 1:
            return None
        self._cursor += 1
        return self._copy(self._entries[self._cursor])

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self):
        return len(self._entries)
