"""
WallSession: one active video wall (tiles + director + drift engine).

A session is created once per source-kind activation and disposed before the
next one, so no state leaks between tile sets. It is the host-side glue the
playback core expects:

- primes every tile when the director enters BUFFERING
- turns the director's "play all" / "pause all" into transport calls and
  drift-engine start/stop
- applies the queue policy when the master tile reaches its natural end

Example Usage:
    tiles = TileSet(SourceKind.LOCAL, [LocalTile(i) for i in range(4)])
    with WallSession(tiles, WallConfig()) as session:
        session.queue.enqueue(SourceKind.LOCAL, "intro.mp4", "/media/intro.mp4")
        session.play_next()          # load into all tiles, start the barrier
        pyglet.app.run()
"""

import functools
import logging
from typing import Any, Callable, Optional

import pyglet

from config.wall_config import SyncConfig, WallConfig
from playback.director import PlaybackDirector
from playback.drift_engine import DriftEngine
from playback.play_queue import PlayQueue, QueueItem
from playback.rate_sync import ContinuousRateSync
from playback.seek_sync import DiscreteSeekSync
from playback.tiles.base import RateControlledTile
from playback.tiles.tile_set import TileSet
from playback.types import PlaybackState, SourceKind

logger = logging.getLogger(__name__)


def create_drift_engine(
    tiles: TileSet,
    director: PlaybackDirector,
    config: SyncConfig,
    clock: Optional[pyglet.clock.Clock] = None
) -> DriftEngine:
    """
    Pick the drift engine matching the tiles' control primitive.

    Continuous-rate correction when every mounted tile can change its
    playback rate, discrete-seek correction otherwise.
    """
    mounted = [h for h in tiles if h is not None]
    if mounted and all(isinstance(h, RateControlledTile) for h in mounted):
        return ContinuousRateSync(tiles, director, config, clock)
    return DiscreteSeekSync(tiles, director, config, clock)


class WallSession:
    """
    Session object owning the director and drift engine for one TileSet.

    Lifecycle:
    1. __init__: wire director, engine and tile listeners
    2. request_play / play_next / load_source: drive playback
    3. replace_tiles: swap to a new TileSet (engine stopped first)
    4. dispose: cancel timers, stop engine, detach listeners
    """

    def __init__(
        self,
        tiles: TileSet,
        config: Optional[WallConfig] = None,
        play_queue: Optional[PlayQueue] = None,
        clock: Optional[pyglet.clock.Clock] = None,
        tile_factory: Optional[Callable[[SourceKind], TileSet]] = None
    ):
        """
        Initialize session.

        Args:
            tiles: Tile handles for the active source kind
            config: Wall configuration (defaults if None)
            play_queue: Queue to draw sources from (new empty queue if None)
            clock: Clock for every timer in the session
            tile_factory: Builds a TileSet for another source kind, used when
                          the next queued item needs different tiles

        Raises:
            ValueError: If the configuration is invalid or its tile_count
                        differs from len(tiles)
        """
        self.config = config or WallConfig()
        valid, errors = self.config.validate()
        if not valid:
            raise ValueError("Invalid wall configuration: " + "; ".join(errors))
        self._check_tile_count(tiles)

        self.queue = play_queue if play_queue is not None else PlayQueue()
        self._clock = clock
        self._tile_factory = tile_factory
        self._current_source: Optional[Any] = None
        self._disposed = False

        self.tiles: TileSet = tiles
        self.director: PlaybackDirector = None
        self.engine: DriftEngine = None
        self._build()

        logger.info(f"WallSession: created with {tiles!r}, engine={type(self.engine).__name__}")

    # ==================== WIRING ====================

    def _build(self):
        self.director = PlaybackDirector(
            len(self.tiles),
            on_play_all=self._on_play_all,
            on_pause_all=self._on_pause_all,
            buffering_timeout=self.config.buffering_timeout,
            clock=self._clock
        )
        self.engine = create_drift_engine(self.tiles, self.director, self.config.sync, self._clock)

        for handle in self.tiles:
            if handle is None:
                continue
            handle.add_end_listener(self._on_natural_end)
            if self.config.muted:
                handle.mute()
            else:
                handle.unmute()

    def _check_tile_count(self, tiles: TileSet):
        if len(tiles) != self.config.tile_count:
            raise ValueError(
                f"Wall configured for {self.config.tile_count} tiles, got {len(tiles)}"
            )

    def _teardown(self):
        self.engine.stop()
        self.director.dispose()
        for handle in self.tiles:
            if handle is not None:
                handle.remove_end_listener(self._on_natural_end)

    def _on_play_all(self):
        self.engine.apply_transport(True)
        self.engine.start()

    def _on_pause_all(self):
        self.engine.stop()
        self.engine.apply_transport(False)

    # ==================== STATE ====================

    @property
    def playback_state(self) -> PlaybackState:
        return self.director.playback_state

    @property
    def current_source(self) -> Optional[Any]:
        return self._current_source

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _check_alive(self, operation: str) -> bool:
        if self._disposed:
            logger.warning(f"WallSession: {operation}() after dispose, ignoring")
            return False
        return True

    # ==================== PLAYBACK ====================

    def request_play(self):
        """Toggle play/pause; entering BUFFERING primes every tile."""
        if not self._check_alive('request_play'):
            return

        self.director.request_play()
        if self.director.playback_state == PlaybackState.BUFFERING:
            self._prime_all()

    def _prime_all(self):
        director = self.director
        for index, handle in enumerate(self.tiles):
            if handle is None:
                continue
            # Bound to this director: a replaced director ignores late signals
            handle.prime(functools.partial(director.signal_ready, index))

    def load_source(self, source: Any):
        """
        Load a source into every tile without starting playback.

        Stops the engine and returns the director to IDLE first.

        Args:
            source: QueueItem, or a path / URL / pyglet Source. Paths are
                    opened once per tile; a pyglet StreamingSource can only be
                    queued on one player, so it is refused for multi-tile walls.

        Raises:
            ValueError: For a StreamingSource with more than one tile mounted
        """
        if not self._check_alive('load_source'):
            return

        source_ref = source.source_ref if isinstance(source, QueueItem) else source
        mounted = [h for h in self.tiles if h is not None]
        if isinstance(source_ref, pyglet.media.StreamingSource) and len(mounted) > 1:
            raise ValueError(
                "A StreamingSource plays on one player only; pass a path or a StaticSource"
            )

        self.engine.stop()
        self.director.reset()
        for handle in self.tiles:
            if handle is not None:
                handle.load(source_ref)
        self._current_source = source_ref
        logger.info(f"WallSession: loaded {source_ref} into {len(self.tiles)} tiles")

    def play_next(self) -> Optional[QueueItem]:
        """
        Dequeue the next item, load it and start the buffering barrier.

        With loop_queue enabled the item's descriptor is re-enqueued at the
        tail. If the head needs another source kind, the tiles are rebuilt
        through tile_factory; without a factory the item is left queued.

        Returns:
            The item now playing, or None
        """
        if not self._check_alive('play_next'):
            return None

        head = self.queue.peek_next()
        if head is None or not self._ensure_kind(head.kind):
            return None

        item = self.queue.dequeue_next()
        if self.config.loop_queue:
            self.queue.enqueue(item.kind, item.display_name, item.source_ref)

        self.load_source(item)
        self.request_play()
        return item

    def play_item(self, item: QueueItem) -> bool:
        """
        Load an item picked outside the queue and start the barrier.

        The queue and its currently-playing slot are left untouched.

        Returns:
            False if the item's kind has no matching tiles
        """
        if not self._check_alive('play_item') or not self._ensure_kind(item.kind):
            return False

        self.load_source(item)
        self.request_play()
        return True

    def _ensure_kind(self, kind: SourceKind) -> bool:
        if kind == self.tiles.kind:
            return True
        if self._tile_factory is None:
            logger.warning(f"WallSession: item is {kind.value} but tiles are "
                           f"{self.tiles.kind.value} and no tile factory is set")
            return False
        self.replace_tiles(self._tile_factory(kind))
        return True

    def restart_current(self):
        """Rewind the current source on every tile and run the barrier again."""
        if not self._check_alive('restart_current'):
            return

        self.engine.stop()
        self.director.reset()
        for handle in self.tiles:
            if handle is not None:
                handle.seek(0.0)
        self.request_play()

    def _on_natural_end(self, index: int):
        # Only the master decides
        if index != 0 or self._disposed:
            return

        logger.info("WallSession: master reached end of source")

        if self.config.auto_advance and not self.queue.is_empty():
            self.play_next()
        elif self.config.auto_advance and self.config.loop_queue and self._current_source is not None:
            self.restart_current()
        else:
            self.engine.stop()
            self.director.reset()

    # ==================== TILES ====================

    def replace_tiles(self, tiles: TileSet):
        """
        Swap to a new TileSet: stop engine, cancel failsafe, detach, rebuild.

        The caller owns the old handles and is responsible for closing them.

        Raises:
            ValueError: If the new set's size differs from config.tile_count
        """
        if not self._check_alive('replace_tiles'):
            return
        self._check_tile_count(tiles)

        self._teardown()
        self.tiles = tiles
        self._current_source = None
        self._build()
        logger.info(f"WallSession: tiles replaced with {tiles!r}, engine={type(self.engine).__name__}")

    # ==================== LIVE SETTINGS ====================

    def set_muted(self, muted: bool):
        self.config.muted = muted
        for handle in self.tiles:
            if handle is None:
                continue
            if muted:
                handle.mute()
            else:
                handle.unmute()

    def set_sync_enabled(self, enabled: bool):
        self.config.sync.is_sync_enabled = enabled
        self.engine.refresh()
        logger.info(f"WallSession: sync {'enabled' if enabled else 'disabled'}")

    def set_gap_millis(self, gap_millis: float):
        """
        Raises:
            ValueError: If gap_millis is negative
        """
        if gap_millis < 0:
            raise ValueError(f"gap_millis must be non-negative, got {gap_millis}")
        self.config.sync.gap_millis = gap_millis

    # ==================== LIFECYCLE ====================

    def dispose(self):
        """Cancel timers, stop the engine and detach from every tile."""
        if self._disposed:
            return
        self._teardown()
        self._disposed = True
        logger.info("WallSession: disposed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures cleanup."""
        self.dispose()
        return False

    def __repr__(self):
        return (
            f"WallSession(tiles={len(self.tiles)}, kind={self.tiles.kind.value}, "
            f"state={self.director.playback_state.value}, queued={len(self.queue)})"
        )
