"""
Playback director: global play/pause intent and the start-up buffering barrier.

The director never touches tiles itself. It tells the host when to prime
(by entering BUFFERING), collects readiness signals from every tile, and
emits a single "play all" once every tile is ready, or once the failsafe
timeout expires, whichever comes first.

State machine:
    IDLE --request_play--> BUFFERING --(all ready | timeout)--> PLAYING
    PLAYING --request_play--> PAUSED --request_play--> BUFFERING --> ...

Example Usage:
    director = PlaybackDirector(4, on_play_all=play_tiles, on_pause_all=pause_tiles)
    director.request_play()          # -> BUFFERING, host primes tiles
    for i in range(4):
        director.signal_ready(i)     # last one resolves -> PLAYING, play_tiles()
"""

import logging
from typing import Callable, Optional, Set

import pyglet

from playback.ticker import TickingTask
from playback.types import PlaybackState

logger = logging.getLogger(__name__)


class PlaybackDirector:
    """
    Owns DirectorState and the readiness barrier for one tile set.

    The ready set is private; callers only see aggregate counts.
    """

    DEFAULT_BUFFERING_TIMEOUT = 5.0  # seconds before forcing PLAYING

    def __init__(
        self,
        tile_count: int,
        on_play_all: Callable[[], None],
        on_pause_all: Callable[[], None],
        buffering_timeout: float = DEFAULT_BUFFERING_TIMEOUT,
        clock: Optional[pyglet.clock.Clock] = None,
        on_state_changed: Optional[Callable[[PlaybackState, PlaybackState], None]] = None
    ):
        """
        Initialize director in IDLE.

        Args:
            tile_count: Number of tiles the barrier waits for (expected count)
            on_play_all: Called once each time the barrier resolves
            on_pause_all: Called when PLAYING is toggled to PAUSED
            buffering_timeout: Failsafe window in seconds
            clock: Clock for the failsafe timer (default: pyglet default clock)
            on_state_changed: Optional observer called with (old, new)

        Raises:
            ValueError: If tile_count < 1 or buffering_timeout < 0
        """
        if tile_count < 1:
            raise ValueError(f"tile_count must be >= 1, got {tile_count}")
        if buffering_timeout < 0:
            raise ValueError(f"buffering_timeout must be non-negative, got {buffering_timeout}")

        self._expected_count = tile_count
        self._on_play_all = on_play_all
        self._on_pause_all = on_pause_all
        self._on_state_changed = on_state_changed
        self.buffering_timeout = buffering_timeout

        self._state = PlaybackState.IDLE
        self._ready: Set[int] = set()
        self._disposed = False

        self._failsafe = TickingTask(
            self._on_buffering_timeout,
            interval=buffering_timeout,
            clock=clock,
            repeat=False,
            name="buffering-failsafe"
        )

    # ==================== STATE ====================

    @property
    def playback_state(self) -> PlaybackState:
        return self._state

    @property
    def expected_count(self) -> int:
        return self._expected_count

    @property
    def ready_count(self) -> int:
        return len(self._ready)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def failsafe_armed(self) -> bool:
        return self._failsafe.running

    def _set_state(self, new_state: PlaybackState):
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.info(f"Director: {old_state.value} -> {new_state.value}")
        if self._on_state_changed:
            self._on_state_changed(old_state, new_state)

    # ==================== HOST API ====================

    def request_play(self):
        """
        Toggle global playback intent.

        PLAYING -> PAUSED (signals "pause all").
        IDLE/PAUSED/BUFFERING -> BUFFERING (clears readiness, re-arms failsafe).
        Does not start any tile; the host primes tiles and reports back via
        signal_ready().
        """
        if self._disposed:
            logger.warning("Director: request_play() after dispose, ignoring")
            return

        if self._state == PlaybackState.PLAYING:
            self._failsafe.cancel()
            self._set_state(PlaybackState.PAUSED)
            self._ready.clear()
            self._on_pause_all()
            return

        # Never two failsafe timers for one director
        self._failsafe.cancel()
        self._ready.clear()
        self._set_state(PlaybackState.BUFFERING)
        self._failsafe.start()
        logger.info(f"Director: buffering {self._expected_count} tiles "
                    f"(failsafe {self.buffering_timeout:.1f}s)")

    def signal_ready(self, index: int):
        """
        Record that tile `index` has buffered enough to play.

        Ignored unless BUFFERING. Duplicate indices and signals after the
        barrier resolved have no effect.

        Args:
            index: Tile slot index in [0, expected_count)
        """
        if self._disposed or self._state != PlaybackState.BUFFERING:
            return

        if not 0 <= index < self._expected_count:
            logger.warning(f"Director: ready signal for out-of-range tile {index} "
                           f"(expected 0..{self._expected_count - 1}), ignoring")
            return

        if index in self._ready:
            return

        self._ready.add(index)
        logger.debug(f"Director: tile {index} ready "
                     f"({len(self._ready)}/{self._expected_count})")

        if len(self._ready) == self._expected_count:
            self._resolve_barrier()

    def reset(self):
        """Return to IDLE without signalling the host (source change, tile swap)."""
        self._failsafe.cancel()
        self._ready.clear()
        self._set_state(PlaybackState.IDLE)

    def dispose(self):
        """Cancel the failsafe timer and stop reacting to any further calls."""
        if self._disposed:
            return
        self._failsafe.cancel()
        self._ready.clear()
        self._disposed = True
        logger.debug("Director: disposed")

    # ==================== BARRIER ====================

    def _resolve_barrier(self):
        if self._state != PlaybackState.BUFFERING:
            return
        self._failsafe.cancel()
        self._set_state(PlaybackState.PLAYING)
        logger.info(f"Director: barrier resolved, all {self._expected_count} tiles ready")
        self._on_play_all()

    def _on_buffering_timeout(self, dt: float):
        if self._disposed or self._state != PlaybackState.BUFFERING:
            return
        logger.warning(f"Director: buffering timed out after {self.buffering_timeout:.1f}s "
                       f"with {len(self._ready)}/{self._expected_count} tiles ready, forcing play")
        self._set_state(PlaybackState.PLAYING)
        self._on_play_all()

    def __repr__(self):
        return (
            f"PlaybackDirector(state={self._state.value}, "
            f"ready={len(self._ready)}/{self._expected_count})"
        )
