"""
Playback module for WallSync.

Contains the playback director (buffering barrier), the two drift
correction engines, the play queue and the tile handles they drive.
"""

from .types import PlaybackState, SourceKind, Correction, CorrectionAction
from .ticker import TickingTask
from .director import PlaybackDirector
from .drift_engine import DriftEngine
from .rate_sync import ContinuousRateSync
from .seek_sync import DiscreteSeekSync
from .play_queue import PlayQueue, QueueItem, MAX_QUEUE_SIZE, describe_remote_source

__all__ = [
    'PlaybackState',
    'SourceKind',
    'Correction',
    'CorrectionAction',
    'TickingTask',
    'PlaybackDirector',
    'DriftEngine',
    'ContinuousRateSync',
    'DiscreteSeekSync',
    'PlayQueue',
    'QueueItem',
    'MAX_QUEUE_SIZE',
    'describe_remote_source'
]
