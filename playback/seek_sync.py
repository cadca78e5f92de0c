"""
Discrete-seek drift correction for remote-controlled tiles.

Remote players are driven over a higher-latency channel and expose no usable
fine-grained rate control, so this engine polls on a fixed 100ms period and
corrects only by seeking. Both thresholds currently seek; they are kept as
separate constants so the soft band can be handled differently later.
"""

import logging
from typing import Dict, List

from playback.drift_engine import DriftEngine
from playback.types import Correction, CorrectionAction

logger = logging.getLogger(__name__)


class DiscreteSeekSync(DriftEngine):
    """Drift engine that snaps slaves back with seeks on a fixed period."""

    SYNC_INTERVAL_SEC = 0.1
    SEEK_THRESHOLD_SEC = 0.25
    HARD_SEEK_THRESHOLD_SEC = 1.0

    TICK_INTERVAL = SYNC_INTERVAL_SEC

    def should_run(self) -> bool:
        return self._is_playing()

    def correct(self) -> List[Correction]:
        if not self.config.is_sync_enabled:
            return []

        # Only handles reporting a numeric position take part
        times: Dict[int, float] = {}
        for index, handle in enumerate(self.tiles):
            if handle is None:
                continue
            position = handle.current_time()
            if isinstance(position, (int, float)):
                times[index] = float(position)

        if len(times) < 2 or 0 not in times:
            return []

        master_time = times[0]
        corrections = []
        for index, slave_time in times.items():
            if index == 0:
                continue

            target = self.target_time(master_time, index)
            drift = slave_time - target
            action = CorrectionAction.NONE

            if abs(drift) > self.HARD_SEEK_THRESHOLD_SEC:
                action = CorrectionAction.HARD_SEEK
            elif abs(drift) > self.SEEK_THRESHOLD_SEC:
                action = CorrectionAction.SEEK

            if action != CorrectionAction.NONE:
                self.tiles[index].seek(target)
                logger.debug(f"DiscreteSeekSync: tile {index} {action.value} to {target:.3f}s "
                             f"(drift {drift * 1000:+.1f}ms)")

            corrections.append(Correction(index, target, drift, action))

        return corrections
