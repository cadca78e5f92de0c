"""
Example: Local Video Wall

Plays local files on a 2x2 grid of pyglet players inside one window, with
continuous-rate drift correction keeping the four tiles locked together.

Usage:
    python examples/local_wall_example.py clip1.mp4 [clip2.mp4 ...]

Keys:
    SPACE  play / pause (pause, then resume re-runs the buffering barrier)
    N      next queued clip
    S      toggle drift correction
    M      toggle mute
    G      cycle tile gap (0 / 100 / 250 ms)
"""

import sys
import os
import logging
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pyglet
from pyglet.window import key

from config.wall_config import WallConfig
from core.wall_session import WallSession
from playback.tiles import LocalTile, TileSet
from playback.types import SourceKind

GRID_COLUMNS = 2
GRID_ROWS = 2
GAP_STEPS = [0.0, 100.0, 250.0]


def build_session(paths):
    config = WallConfig(tile_count=GRID_COLUMNS * GRID_ROWS, loop_queue=True)
    tiles = TileSet(SourceKind.LOCAL, [LocalTile(i) for i in range(config.tile_count)])
    session = WallSession(tiles, config)
    for path in paths:
        session.queue.enqueue(SourceKind.LOCAL, os.path.basename(path), path)
    return session


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    paths = sys.argv[1:]
    if not paths:
        print("Usage: python examples/local_wall_example.py clip1.mp4 [clip2.mp4 ...]")
        return

    session = build_session(paths)
    window = pyglet.window.Window(1280, 720, caption="WallSync - local wall", resizable=True)

    @window.event
    def on_draw():
        window.clear()
        tile_w = window.width // GRID_COLUMNS
        tile_h = window.height // GRID_ROWS
        for tile in session.tiles:
            texture = tile.get_texture()
            if texture is None:
                continue
            col = tile.index % GRID_COLUMNS
            row = GRID_ROWS - 1 - tile.index // GRID_COLUMNS
            texture.blit(col * tile_w, row * tile_h, width=tile_w, height=tile_h)

    @window.event
    def on_key_press(symbol, modifiers):
        if symbol == key.SPACE:
            session.request_play()
        elif symbol == key.N:
            session.play_next()
        elif symbol == key.S:
            session.set_sync_enabled(not session.config.sync.is_sync_enabled)
        elif symbol == key.M:
            session.set_muted(not session.config.muted)
        elif symbol == key.G:
            current = session.config.sync.gap_millis
            next_gap = GAP_STEPS[(GAP_STEPS.index(current) + 1) % len(GAP_STEPS)] \
                if current in GAP_STEPS else GAP_STEPS[0]
            session.set_gap_millis(next_gap)
            print(f"[*] Gap: {next_gap:.0f}ms")

    @window.event
    def on_close():
        session.dispose()
        for tile in session.tiles:
            tile.close()

    def report(dt):
        stats = session.engine.drift_report()
        if stats['evaluated']:
            print(f"[*] {session.playback_state.value}: max drift {stats['max_drift_ms']:.1f}ms, "
                  f"{stats['corrected']}/{stats['evaluated']} corrected")

    pyglet.clock.schedule_interval(report, 1.0)

    session.play_next()
    pyglet.app.run()


if __name__ == "__main__":
    main()
