"""
Base class for drift correction engines.

An engine reads each slave's clock relative to the master (tile 0) and
applies the correction its handles support. Subclasses differ only in the
control primitive (continuous rate vs. discrete seek) and tick cadence.

Target time for slave i is the master position minus i times the configured
gap, so gap_millis > 0 produces a deliberate ripple instead of perfect sync.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import pyglet

from config.wall_config import SyncConfig
from playback.director import PlaybackDirector
from playback.ticker import TickingTask
from playback.tiles.tile_set import TileSet
from playback.types import Correction, CorrectionAction, PlaybackState

logger = logging.getLogger(__name__)


class DriftEngine(ABC):
    """
    Recurring drift correction over one TileSet.

    SyncConfig is held by reference: gap and enable switch are read every
    pass, never captured.
    """

    #: Seconds between passes; None = every clock tick
    TICK_INTERVAL: Optional[float] = None

    def __init__(
        self,
        tiles: TileSet,
        director: PlaybackDirector,
        config: SyncConfig,
        clock: Optional[pyglet.clock.Clock] = None
    ):
        self.tiles = tiles
        self.director = director
        self.config = config
        self._task = TickingTask(
            self._on_tick,
            interval=self.TICK_INTERVAL,
            clock=clock,
            name=type(self).__name__
        )
        self.last_corrections: List[Correction] = []

    @property
    def running(self) -> bool:
        return self._task.running

    def target_time(self, master_time: float, index: int) -> float:
        """Where slave `index` should be, given the master position."""
        delay = (self.config.gap_millis * index) / 1000.0
        return max(0.0, master_time - delay)

    # ==================== LOOP CONTROL ====================

    @abstractmethod
    def should_run(self) -> bool:
        """Whether the loop may be active right now."""
        pass

    def start(self):
        """Start the loop if conditions allow. No-op when already running."""
        if self.running or not self.should_run():
            return
        self._task.start()
        logger.info(f"{type(self).__name__}: started over {len(self.tiles)} tiles "
                    f"(gap={self.config.gap_millis:.0f}ms)")

    def stop(self):
        """Cancel the loop."""
        if not self.running:
            return
        self._task.cancel()
        logger.info(f"{type(self).__name__}: stopped")

    def refresh(self):
        """Start or stop according to the current director state and config."""
        if self.should_run():
            self.start()
        else:
            self.stop()

    def _on_tick(self, dt: float):
        if not self.should_run():
            self.stop()
            return
        self.last_corrections = self.correct()

    @abstractmethod
    def correct(self) -> List[Correction]:
        """
        Run one correction pass.

        Returns:
            One Correction per evaluated slave
        """
        pass

    # ==================== TRANSPORT ====================

    def apply_transport(self, playing: bool):
        """
        Propagate global play/pause to every mounted handle.

        Handles that are not ready yet drop the call on their own.
        """
        for handle in self.tiles:
            if handle is None:
                continue
            if playing:
                handle.play()
            else:
                handle.pause()
        logger.debug(f"{type(self).__name__}: {'play' if playing else 'pause'} -> all tiles")

    # ==================== DIAGNOSTICS ====================

    def drift_report(self) -> Dict[str, Any]:
        """
        Summarize the last pass.

        Returns:
            {'max_drift_ms': float, 'corrected': int, 'evaluated': int}
        """
        corrections = self.last_corrections
        if not corrections:
            return {'max_drift_ms': 0.0, 'corrected': 0, 'evaluated': 0}
        return {
            'max_drift_ms': max(abs(c.drift_ms) for c in corrections),
            'corrected': sum(1 for c in corrections if c.action != CorrectionAction.NONE),
            'evaluated': len(corrections)
        }

    def _is_playing(self) -> bool:
        return self.director.playback_state == PlaybackState.PLAYING

    def __repr__(self):
        return f"{type(self).__name__}(tiles={len(self.tiles)}, running={self.running})"
