"""
Shared enums and records for the WallSync playback layer.
"""

from dataclasses import dataclass
from enum import Enum


class PlaybackState(Enum):
    """Global playback intent owned by the PlaybackDirector."""

    IDLE = "IDLE"
    BUFFERING = "BUFFERING"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"


class SourceKind(Enum):
    """Kind of source a tile plays (and therefore which handle drives it)."""

    LOCAL = "local"
    REMOTE = "remote"


class CorrectionAction(Enum):
    """What a drift engine did to one slave during one pass."""

    NONE = "none"
    SNAP = "snap"              # seek + rate reset (continuous engine)
    NUDGE_SLOW = "nudge_slow"  # slave ahead of target
    NUDGE_FAST = "nudge_fast"  # slave behind target
    RATE_RESET = "rate_reset"
    SEEK = "seek"              # soft seek (discrete engine)
    HARD_SEEK = "hard_seek"


@dataclass
class Correction:
    """
    Outcome of evaluating one slave tile against the master.

    Attributes:
        index: Tile slot index (always >= 1)
        target_time: Position the slave should be at, in seconds
        drift: slave_time - target_time, in seconds
        action: Corrective action applied
    """
    index: int
    target_time: float
    drift: float
    action: CorrectionAction = CorrectionAction.NONE

    @property
    def drift_ms(self) -> float:
        return self.drift * 1000.0
