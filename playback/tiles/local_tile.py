"""
Direct-control tile backed by a pyglet media player.

The player's `rate` (see RatePlayer) is the continuous-rate primitive; the
player's `on_eos` event is the natural end.
"""

import logging
from typing import Any, Callable, Optional

import pyglet

from playback.ticker import TickingTask
from playback.tiles.base import RateControlledTile
from playback.tiles.rate_player import RatePlayer

logger = logging.getLogger(__name__)


class LocalTile(RateControlledTile):
    """
    Tile playing a local file through a RatePlayer.

    Video textures are available via get_texture() for whatever renders the
    wall; rendering itself is not this class's concern.

    At end of stream the source stays loaded and the player is parked
    (paused) on it, so a restart or the next load always finds a live player.
    """

    def __init__(
        self,
        index: int,
        player: Optional[RatePlayer] = None,
        clock: Optional[pyglet.clock.Clock] = None,
        muted: bool = True
    ):
        """
        Initialize local tile.

        Args:
            index: Tile slot index
            player: Existing RatePlayer (created if None)
            clock: Clock used to defer the readiness callback after priming
            muted: Initial mute state
        """
        super().__init__(index)
        self.player = player if player is not None else RatePlayer()
        self.player.push_handlers(on_eos=self._on_eos)
        self._on_ready: Optional[Callable[[], None]] = None
        self._rewind_on_prime = True
        self._prime_task = TickingTask(
            self._finish_priming,
            clock=clock,
            repeat=False,
            name=f"prime-local-{index}"
        )
        if muted:
            self.mute()
        else:
            self.unmute()

    # ==================== CAPABILITY ====================

    @property
    def is_live(self) -> bool:
        return self.player is not None and self.player.source is not None

    def play(self):
        if not self.is_live:
            return
        self.player.play()

    def pause(self):
        if not self.is_live:
            return
        self.player.pause()

    def seek(self, to_seconds: float):
        if not self.is_live:
            return
        self.player.seek(max(0.0, to_seconds))

    def current_time(self) -> Optional[float]:
        if not self.is_live:
            return None
        return self.player.time

    def duration(self) -> Optional[float]:
        if not self.is_live:
            return None
        return self.player.source.duration

    @property
    def playback_rate(self) -> float:
        if self.player is None:
            return 1.0
        return self.player.rate

    def set_playback_rate(self, rate: float):
        if not self.is_live:
            return
        self.player.rate = rate

    @property
    def is_paused(self) -> bool:
        return self.player is None or not self.player.playing

    def mute(self):
        if self.player is not None:
            self.player.volume = 0.0

    def unmute(self):
        if self.player is not None:
            self.player.volume = 1.0

    # ==================== SOURCE ====================

    def load(self, source_ref: Any):
        """
        Bind a new source to this slot.

        Args:
            source_ref: File path (opened for this tile alone), or a pyglet
                        Source this tile may queue
        """
        self._prime_task.cancel()
        self._on_ready = None

        if isinstance(source_ref, str):
            source = pyglet.media.load(source_ref)
        else:
            source = source_ref

        had_source = self.player.source is not None
        self.player.pause()
        self.player.queue(source)
        if had_source:
            self.player.next_source()
        self.player.rate = 1.0
        self._rewind_on_prime = True

        logger.info(f"LocalTile {self.index}: loaded {source_ref}")

    def prime(self, on_ready: Callable[[], None]):
        """
        Play-then-pause cycle to force decoding, then report ready on the next
        clock tick.

        The first prime after a load or an end of stream starts from 0; later
        primes (resume from pause) return to where the player stood.
        """
        if not self.is_live:
            logger.debug(f"LocalTile {self.index}: prime requested with no source, skipping")
            return

        position = 0.0 if self._rewind_on_prime else self.player.time
        self._rewind_on_prime = False

        self.player.play()
        self.player.pause()
        self.player.seek(position)
        self._on_ready = on_ready
        self._prime_task.restart()

    def _finish_priming(self, dt: float):
        on_ready, self._on_ready = self._on_ready, None
        if on_ready is not None and self.is_live:
            on_ready()

    def get_texture(self):
        """Current video texture, or None."""
        if self.is_live:
            return self.player.texture
        return None

    def close(self):
        self._prime_task.cancel()
        self._on_ready = None
        if self.player is not None:
            self.player.remove_handlers(on_eos=self._on_eos)
            self.player.pause()
            self.player.delete()
            self.player = None
        super().close()

    # ==================== EVENTS ====================

    def _on_eos(self):
        # Park on the finished source; pyglet's default would drop it
        self.player.pause()
        self._rewind_on_prime = True
        self._notify_end()
        return pyglet.event.EVENT_HANDLED
