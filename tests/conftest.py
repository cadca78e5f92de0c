"""
Pytest configuration and fixtures for WallSync tests.

Provides a manually driven pyglet clock and fake tile handles so the
director, drift engines and session can be tested without media or mpv.
"""

import pytest
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

import pyglet

# Real players in tests must never open a sound device
pyglet.options['audio'] = ('silent',)

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.wall_config import SyncConfig, WallConfig  # noqa: E402
from playback.tiles.base import RateControlledTile, TileHandle  # noqa: E402
from playback.tiles.tile_set import TileSet  # noqa: E402
from playback.types import SourceKind  # noqa: E402


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Add custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: unit test (fast, no I/O)")
    config.addinivalue_line("markers", "integration: integration test (with fakes)")


# ==================== CLOCK ====================

class FakeTime:
    """Time function for pyglet.clock.Clock that only moves when told to."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class ClockDriver:
    """
    Private pyglet Clock plus helpers to move time and tick it.

    Always advance, then tick: the clock only runs callbacks from tick().
    """

    def __init__(self):
        self.time = FakeTime()
        self.clock = pyglet.clock.Clock(time_function=self.time)

    def tick(self):
        self.clock.tick()

    def advance(self, seconds: float, steps: int = 1):
        """Move time forward by `seconds` in `steps` equal ticks."""
        step = seconds / steps
        for _ in range(steps):
            self.time.now += step
            self.clock.tick()


@pytest.fixture
def clock_driver():
    """Manually driven clock; nothing runs until the test ticks it."""
    return ClockDriver()


# ==================== FAKE TILES ====================

class FakeSeekTile(TileHandle):
    """
    TileHandle with scripted position and recorded control calls.

    prime() only records the callback; the test decides when (or whether)
    the tile becomes ready via finish_priming().
    """

    def __init__(self, index: int, position: Optional[float] = 0.0):
        super().__init__(index)
        self.position = position
        self.live = True
        self.playing = False
        self.muted = False
        self.seeks: List[float] = []
        self.loads: List[Any] = []
        self.play_calls = 0
        self.pause_calls = 0
        self.pending_ready: Optional[Callable[[], None]] = None
        self.prime_calls = 0

    @property
    def is_live(self) -> bool:
        return self.live

    def play(self):
        self.play_calls += 1
        self.playing = True

    def pause(self):
        self.pause_calls += 1
        self.playing = False

    def seek(self, to_seconds: float):
        self.seeks.append(to_seconds)
        self.position = to_seconds

    def current_time(self) -> Optional[float]:
        return self.position

    def duration(self) -> Optional[float]:
        return 600.0

    def mute(self):
        self.muted = True

    def unmute(self):
        self.muted = False

    def load(self, source_ref: Any):
        self.loads.append(source_ref)
        self.position = 0.0

    def prime(self, on_ready: Callable[[], None]):
        self.prime_calls += 1
        self.pending_ready = on_ready

    def finish_priming(self):
        on_ready, self.pending_ready = self.pending_ready, None
        if on_ready is not None:
            on_ready()

    def reach_end(self):
        self._notify_end()


class FakeRateTile(FakeSeekTile, RateControlledTile):
    """FakeSeekTile with a continuous playback-rate primitive."""

    def __init__(self, index: int, position: Optional[float] = 0.0):
        super().__init__(index, position)
        self.rate = 1.0
        self.rate_calls: List[float] = []

    @property
    def playback_rate(self) -> float:
        return self.rate

    def set_playback_rate(self, rate: float):
        self.rate_calls.append(rate)
        self.rate = rate

    @property
    def is_paused(self) -> bool:
        return not self.playing


@pytest.fixture
def make_rate_tiles():
    """
    Factory for a LOCAL TileSet of FakeRateTile, all playing at 0.0.

    Usage:
        tiles = make_rate_tiles(4)
    """
    def _make(count: int = 4, playing: bool = True) -> TileSet:
        handles = [FakeRateTile(i) for i in range(count)]
        for handle in handles:
            handle.playing = playing
        return TileSet(SourceKind.LOCAL, handles)
    return _make


@pytest.fixture
def make_seek_tiles():
    """Factory for a REMOTE TileSet of FakeSeekTile."""
    def _make(count: int = 4) -> TileSet:
        return TileSet(SourceKind.REMOTE, [FakeSeekTile(i) for i in range(count)])
    return _make


# ==================== CONFIG ====================

@pytest.fixture
def sync_config():
    """Sync enabled, no gap."""
    return SyncConfig()


@pytest.fixture
def wall_config():
    """Default four-tile wall configuration."""
    return WallConfig()


# ==================== DIRECTOR ====================

@pytest.fixture
def playing_director():
    """
    Factory for a PlaybackDirector already in PLAYING (barrier resolved).

    Usage:
        director = playing_director(tiles, clock_driver.clock)
    """
    from playback.director import PlaybackDirector
    from unittest.mock import MagicMock

    def _make(tile_count: int, clock) -> PlaybackDirector:
        director = PlaybackDirector(tile_count, MagicMock(), MagicMock(), clock=clock)
        director.request_play()
        for i in range(tile_count):
            director.signal_ready(i)
        return director
    return _make
