"""
Integration tests for LocalTile on real pyglet players.

Players run on the silent audio driver (see conftest) with synthesized
Silence sources; their playback timers read the same fake time as the
test clock, so nothing depends on wall-clock sleeps.
"""

import pytest

import pyglet
from pyglet.media.synthesis import Silence

from config.wall_config import WallConfig
from core.wall_session import WallSession
from playback.tiles.local_tile import LocalTile
from playback.tiles.rate_player import RatePlayer
from playback.tiles.tile_set import TileSet
from playback.types import PlaybackState, SourceKind

SAMPLE_RATE = 8000

# Fake media library: path -> duration in seconds
DURATIONS = {
    "/media/a.mp4": 3.0,
    "/media/b.mp4": 4.0,
    "/media/long.mp4": 10.0,
}


@pytest.fixture
def media(monkeypatch):
    """Every path opens as a fresh Silence source of the listed duration."""
    def fake_load(path, *args, **kwargs):
        return Silence(DURATIONS[path], sample_rate=SAMPLE_RATE)

    monkeypatch.setattr(pyglet.media, 'load', fake_load)


@pytest.fixture
def make_local_tiles(clock_driver):
    created = []

    def _make(count):
        tiles = [
            LocalTile(i, player=RatePlayer(time_function=clock_driver.time), clock=clock_driver.clock)
            for i in range(count)
        ]
        created.extend(tiles)
        return TileSet(SourceKind.LOCAL, tiles)

    yield _make
    for tile in created:
        tile.close()


def start_wall(session, clock_driver):
    """Let every tile report ready so the barrier opens."""
    clock_driver.advance(0.01)
    assert session.playback_state == PlaybackState.PLAYING


# ==================== RATE ====================

@pytest.mark.integration
def test_higher_rate_moves_player_clock_faster(media, make_local_tiles, clock_driver):
    tiles = make_local_tiles(2)
    for tile in tiles:
        tile.load("/media/long.mp4")
    tiles[1].set_playback_rate(1.5)

    for tile in tiles:
        tile.play()
    clock_driver.time.now += 1.0

    assert tiles[0].current_time() == pytest.approx(1.0)
    assert tiles[1].current_time() == pytest.approx(1.5)
    assert tiles[1].player.pitch == 1.5


@pytest.mark.integration
def test_nudge_closes_drift_on_real_players(media, make_local_tiles, clock_driver):
    """Slave 100ms ahead is slowed to 0.98 and the drift shrinks."""
    tiles = make_local_tiles(2)
    with WallSession(tiles, WallConfig(tile_count=2), clock=clock_driver.clock) as session:
        session.load_source("/media/long.mp4")
        session.request_play()
        start_wall(session, clock_driver)
        tiles[1].seek(0.1)

        clock_driver.advance(0.016)
        assert tiles[1].playback_rate == pytest.approx(0.98)

        # 2% slower gives back 40ms over 2s
        clock_driver.advance(2.0, steps=20)
        drift = tiles[1].current_time() - tiles[0].current_time()
        assert drift == pytest.approx(0.06, abs=0.005)
        assert tiles[1].playback_rate == pytest.approx(0.98)


# ==================== END OF STREAM ====================

@pytest.mark.integration
def test_auto_advance_keeps_next_source_loaded(media, make_local_tiles, clock_driver):
    tiles = make_local_tiles(2)
    with WallSession(tiles, WallConfig(tile_count=2), clock=clock_driver.clock) as session:
        session.queue.enqueue(SourceKind.LOCAL, "a", "/media/a.mp4")
        session.queue.enqueue(SourceKind.LOCAL, "b", "/media/b.mp4")
        session.play_next()
        start_wall(session, clock_driver)

        tiles[0].player.dispatch_event('on_eos')

        assert session.queue.currently_playing.display_name == "b"
        assert all(tile.is_live for tile in tiles)
        assert all(tile.duration() == pytest.approx(4.0) for tile in tiles)

        start_wall(session, clock_driver)
        assert tiles[0].current_time() == pytest.approx(0.0, abs=0.05)


@pytest.mark.integration
def test_loop_restart_keeps_source_loaded(media, make_local_tiles, clock_driver):
    tiles = make_local_tiles(2)
    config = WallConfig(tile_count=2, loop_queue=True)
    with WallSession(tiles, config, clock=clock_driver.clock) as session:
        session.queue.enqueue(SourceKind.LOCAL, "a", "/media/a.mp4")
        session.play_next()
        session.queue.remove(session.queue.queue[0].id)
        start_wall(session, clock_driver)
        clock_driver.advance(2.9)

        for tile in reversed(list(tiles)):
            tile.player.dispatch_event('on_eos')

        assert session.playback_state == PlaybackState.BUFFERING
        assert all(tile.is_live for tile in tiles)

        start_wall(session, clock_driver)
        assert all(tile.current_time() == pytest.approx(0.0, abs=0.05) for tile in tiles)


@pytest.mark.integration
def test_slave_end_parks_player_on_source(media, make_local_tiles, clock_driver):
    tiles = make_local_tiles(2)
    with WallSession(tiles, WallConfig(tile_count=2), clock=clock_driver.clock) as session:
        session.load_source("/media/a.mp4")
        session.request_play()
        start_wall(session, clock_driver)

        tiles[1].player.dispatch_event('on_eos')

        assert tiles[1].is_live
        assert tiles[1].is_paused
        assert session.playback_state == PlaybackState.PLAYING


# ==================== PAUSE / RESUME ====================

@pytest.mark.integration
def test_resume_continues_from_paused_position(media, make_local_tiles, clock_driver):
    tiles = make_local_tiles(2)
    with WallSession(tiles, WallConfig(tile_count=2), clock=clock_driver.clock) as session:
        session.load_source("/media/long.mp4")
        session.request_play()
        start_wall(session, clock_driver)
        for tile in tiles:
            tile.seek(6.0)

        session.request_play()
        assert session.playback_state == PlaybackState.PAUSED
        clock_driver.advance(1.0)

        session.request_play()
        assert session.playback_state == PlaybackState.BUFFERING
        start_wall(session, clock_driver)

        assert all(tile.current_time() == pytest.approx(6.0, abs=0.05) for tile in tiles)
