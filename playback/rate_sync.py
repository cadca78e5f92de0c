"""
Continuous-rate drift correction for direct-control tiles.

Runs once per clock tick (the display refresh of the pyglet event loop)
while the director is PLAYING and sync is enabled. Per slave:

1. |drift| > 0.5s   snap: seek to target and reset rate to 1.0
2. |drift| > 0.04s  nudge: rate 0.98 when ahead, 1.02 when behind (no seek)
3. otherwise        reset rate to 1.0 if it is not already

Small drift converges through an imperceptible speed change; large
discontinuities (scrubs, stalls) are fixed at once because a 2% rate change
would take far too long to close them.
"""

import logging
from typing import List, Optional

import pyglet

from config.wall_config import SyncConfig
from playback.director import PlaybackDirector
from playback.drift_engine import DriftEngine
from playback.tiles.base import RateControlledTile
from playback.tiles.tile_set import TileSet
from playback.types import Correction, CorrectionAction

logger = logging.getLogger(__name__)


class ContinuousRateSync(DriftEngine):
    """Drift engine that nudges slave playback rates, snapping only on large drift."""

    SYNC_THRESHOLD_SEC = 0.04
    HARD_SYNC_THRESHOLD_SEC = 0.5
    CORRECTION_RATE_FAST = 1.02
    CORRECTION_RATE_SLOW = 0.98
    NORMAL_RATE = 1.0

    TICK_INTERVAL = None  # every clock tick

    def __init__(
        self,
        tiles: TileSet,
        director: PlaybackDirector,
        config: SyncConfig,
        clock: Optional[pyglet.clock.Clock] = None
    ):
        """
        Raises:
            TypeError: If a mounted tile has no continuous-rate control
        """
        for handle in tiles:
            if handle is not None and not isinstance(handle, RateControlledTile):
                raise TypeError(
                    f"ContinuousRateSync needs rate-controlled tiles, "
                    f"tile {handle.index} is {type(handle).__name__}"
                )
        super().__init__(tiles, director, config, clock)

    def should_run(self) -> bool:
        return self._is_playing() and self.config.is_sync_enabled

    def stop(self):
        super().stop()
        self.restore_rates()

    def restore_rates(self):
        """Put every mounted tile back to normal speed."""
        for handle in self.tiles:
            if handle is not None and handle.playback_rate != self.NORMAL_RATE:
                handle.set_playback_rate(self.NORMAL_RATE)

    def correct(self) -> List[Correction]:
        master = self.tiles.master
        if master is None or master.is_paused:
            return []

        master_time = master.current_time()
        if master_time is None:
            return []

        corrections = []
        for index, slave in self.tiles.slaves():
            if slave is None:
                continue
            slave_time = slave.current_time()
            if slave_time is None:
                continue

            target = self.target_time(master_time, index)
            drift = slave_time - target
            action = self._apply(slave, target, drift)
            corrections.append(Correction(index, target, drift, action))

        return corrections

    def _apply(self, slave: RateControlledTile, target: float, drift: float) -> CorrectionAction:
        if abs(drift) > self.HARD_SYNC_THRESHOLD_SEC:
            slave.seek(target)
            slave.set_playback_rate(self.NORMAL_RATE)
            logger.debug(f"ContinuousRateSync: tile {slave.index} snapped to {target:.3f}s "
                         f"(drift {drift * 1000:+.1f}ms)")
            return CorrectionAction.SNAP

        if abs(drift) > self.SYNC_THRESHOLD_SEC:
            if drift > 0:
                rate, action = self.CORRECTION_RATE_SLOW, CorrectionAction.NUDGE_SLOW
            else:
                rate, action = self.CORRECTION_RATE_FAST, CorrectionAction.NUDGE_FAST
            if slave.playback_rate != rate:
                slave.set_playback_rate(rate)
                logger.debug(f"ContinuousRateSync: tile {slave.index} rate -> {rate} "
                             f"(drift {drift * 1000:+.1f}ms)")
            return action

        if slave.playback_rate != self.NORMAL_RATE:
            slave.set_playback_rate(self.NORMAL_RATE)
            return CorrectionAction.RATE_RESET

        return CorrectionAction.NONE
