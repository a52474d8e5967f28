"""Frame replacement policies for a buffer pool."""

from __future__ import annotations

import abc
import threading
from collections import OrderedDict
from typing import Optional


class Replacer(abc.ABC):
    """Tracks which buffer frames may be evicted and chooses victims."""

    @abc.abstractmethod
    def victim(self) -> Optional[int]:
        """Remove and return the frame to evict, or None if none can be."""

    @abc.abstractmethod
    def pin(self, frame_id: int) -> None:
        """Mark a frame as in use so that it cannot be evicted."""

    @abc.abstractmethod
    def unpin(self, frame_id: int) -> None:
        """Mark a frame as evictable."""

    @abc.abstractmethod
    def __len__(self) -> int:
        """Number of frames that can currently be evicted."""


class LRUReplacer(Replacer):
    """Evicts the frame that was unpinned the longest time ago."""

    def __init__(self, num_pages: int) -> None:
        self.max_size = num_pages
        self._lock = threading.Lock()
        # Oldest unpinned frame first, most recently unpinned last.
        self._frames: "OrderedDict[int, None]" = OrderedDict()

    def victim(self) -> Optional[int]:
        """Remove and return the least recently unpinned frame, or None."""
        with self._lock:
            if not self._frames:
                return None
            frame_id, _ = self._frames.popitem(last=False)
            return frame_id

    def pin(self, frame_id: int) -> None:
        """Stop tracking frame_id; it is in use and cannot be evicted."""
        with self._lock:
            self._frames.pop(frame_id, None)

    def unpin(self, frame_id: int) -> None:
        """Track frame_id as evictable; a frame already tracked keeps its place."""
        with self._lock:
            if frame_id not in self._frames:
                self._frames[frame_id] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)