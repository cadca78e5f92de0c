"""
Capability surface over one playback unit (one tile slot).

TileHandle is what every drift engine and the session depend on.
RateControlledTile adds the continuous playback-rate primitive; only the
continuous-rate engine accepts it, the discrete-seek engine is typed
against TileHandle alone.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class TileHandle(ABC):
    """
    Abstract handle bound to a single tile slot for its whole lifetime.

    Control calls on a handle that is not live (still initializing, no
    source loaded) must be silently ignored, never raised.
    """

    def __init__(self, index: int):
        """
        Args:
            index: Tile slot index (0 = master)
        """
        if index < 0:
            raise ValueError(f"Tile index must be non-negative, got {index}")
        self.index = index
        self._end_listeners: List[Callable[[int], None]] = []

    # ==================== CAPABILITY ====================

    @property
    @abstractmethod
    def is_live(self) -> bool:
        """True once the handle can report a numeric position and accept control calls."""
        pass

    @abstractmethod
    def play(self):
        pass

    @abstractmethod
    def pause(self):
        pass

    @abstractmethod
    def seek(self, to_seconds: float):
        pass

    @abstractmethod
    def current_time(self) -> Optional[float]:
        """Current position in seconds, or None while not live."""
        pass

    @abstractmethod
    def duration(self) -> Optional[float]:
        """Source duration in seconds, or None if unknown."""
        pass

    @abstractmethod
    def mute(self):
        pass

    @abstractmethod
    def unmute(self):
        pass

    @abstractmethod
    def load(self, source_ref: Any):
        """Re-bind this slot to a new source (same handle, same index)."""
        pass

    @abstractmethod
    def prime(self, on_ready: Callable[[], None]):
        """
        Run this handle's buffering protocol and call on_ready() once it can
        play without stalling. Handles that never get ready simply never
        call back; the director's failsafe covers them.
        """
        pass

    def close(self):
        """Release resources held by the handle (default: nothing)."""
        self._end_listeners.clear()

    # ==================== NATURAL END ====================

    def add_end_listener(self, callback: Callable[[int], None]):
        """Register callback(index) for natural end of the current source."""
        if callback not in self._end_listeners:
            self._end_listeners.append(callback)

    def remove_end_listener(self, callback: Callable[[int], None]):
        if callback in self._end_listeners:
            self._end_listeners.remove(callback)

    def _notify_end(self):
        logger.debug(f"Tile {self.index}: natural end")
        for callback in list(self._end_listeners):
            callback(self.index)

    def __repr__(self):
        return f"{type(self).__name__}(index={self.index}, live={self.is_live})"


class RateControlledTile(TileHandle):
    """TileHandle with a continuous playback-rate primitive (direct control)."""

    @property
    @abstractmethod
    def playback_rate(self) -> float:
        pass

    @abstractmethod
    def set_playback_rate(self, rate: float):
        pass

    @property
    @abstractmethod
    def is_paused(self) -> bool:
        pass
