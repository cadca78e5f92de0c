"""
Example: Remote Video Wall

Launches one mpv process per tile, drives them over JSON IPC and keeps them
aligned with discrete-seek drift correction. mpv must be on PATH (and
yt-dlp, for YouTube sources).

Usage:
    python examples/remote_wall_example.py <url or YouTube id> [...]

The wall plays for the given number of seconds (default 60), pausing and
resuming once halfway through to exercise the buffering barrier again.
"""

import sys
import os
import logging
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pyglet

from config.wall_config import WallConfig
from core.ipc import MpvIpcTransport, MpvProcess, MpvProcessConfig
from core.wall_session import WallSession
from playback.play_queue import describe_remote_source
from playback.tiles import RemoteTile, TileSet
from playback.types import SourceKind

TILE_COUNT = 4
RUN_SECONDS = 60.0


def launch_tiles(count):
    """Start mpv processes in a 2-column grid and connect a RemoteTile to each."""
    processes = []
    handles = []
    for i in range(count):
        col, row = i % 2, i // 2
        config = MpvProcessConfig(extra_args=[f"--geometry=960x540+{col * 960}+{row * 540}"])
        process = MpvProcess(config, name=f"wallsync-tile-{i}")
        process.start()
        processes.append(process)

        transport = MpvIpcTransport(process.endpoint)
        transport.connect(timeout=5.0)
        tile = RemoteTile(i, transport)
        tile.open()
        handles.append(tile)
    return processes, TileSet(SourceKind.REMOTE, handles)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    inputs = sys.argv[1:] or ["jt7AF2RCMhg"]

    try:
        processes, tiles = launch_tiles(TILE_COUNT)
    except FileNotFoundError:
        print("[-] mpv not found on PATH")
        return
    except ConnectionError as e:
        print(f"[-] {e}")
        return

    session = WallSession(tiles, WallConfig(tile_count=TILE_COUNT))
    for text in inputs:
        source_ref, display_name = describe_remote_source(text)
        session.queue.enqueue(SourceKind.REMOTE, display_name, source_ref)

    def toggle(dt):
        session.request_play()

    def finish(dt):
        session.dispose()
        for tile in tiles:
            tile.close()
        for process in processes:
            process.stop()
        pyglet.app.exit()

    # Remote players need a moment to open the source before priming
    pyglet.clock.schedule_once(lambda dt: session.play_next(), 1.0)
    pyglet.clock.schedule_once(toggle, RUN_SECONDS / 2)
    pyglet.clock.schedule_once(toggle, RUN_SECONDS / 2 + 2.0)
    pyglet.clock.schedule_once(finish, RUN_SECONDS)

    pyglet.app.run()


if __name__ == "__main__":
    main()
