"""
Remote-controlled tile: an external mpv player driven over JSON IPC.

The control channel is asynchronous and higher-latency than a local player,
so position, duration and pause state are cached from mpv property-change
events that are pumped from the transport on a clock interval. The handle
deliberately offers no playback-rate primitive.
"""

import logging
from typing import Any, Callable, Dict, Optional

import pyglet

from core.ipc.messages import MpvCommand, MpvEvent, MpvReply
from playback.ticker import TickingTask
from playback.tiles.base import TileHandle

logger = logging.getLogger(__name__)


class RemoteTile(TileHandle):
    """
    TileHandle over an MpvIpcTransport.

    Any control call made before the transport is connected, or before mpv
    has reported a position, is dropped silently.
    """

    PUMP_INTERVAL = 0.05  # seconds between draining the IPC receive queue
    OBSERVED_PROPERTIES = ('time-pos', 'duration', 'pause', 'eof-reached')

    def __init__(
        self,
        index: int,
        transport: Any,
        clock: Optional[pyglet.clock.Clock] = None,
        muted: bool = True
    ):
        """
        Initialize remote tile.

        Args:
            index: Tile slot index
            transport: Connected (or connecting) MpvIpcTransport
            clock: Clock on which the message pump runs
            muted: Mute state applied once the handle opens
        """
        super().__init__(index)
        self.transport = transport
        self._time_pos: Optional[float] = None
        self._duration: Optional[float] = None
        self._paused = True
        self._muted = muted
        self._eof_reached = False
        self._on_ready: Optional[Callable[[], None]] = None
        self._prime_position = 0.0
        self._rewind_on_prime = True
        self._opened = False
        self._pump = TickingTask(
            self._pump_messages,
            interval=self.PUMP_INTERVAL,
            clock=clock,
            name=f"mpv-pump-{index}"
        )

    # ==================== LIFECYCLE ====================

    def open(self):
        """Subscribe to mpv properties and start the message pump."""
        if self._opened:
            return
        self._opened = True
        for obs_id, prop in enumerate(self.OBSERVED_PROPERTIES, start=1):
            self._send('observe_property', obs_id, prop)
        self._send('set_property', 'mute', self._muted)
        self._pump.start()

    def close(self):
        self._pump.cancel()
        self._on_ready = None
        self._opened = False
        self.transport.close()
        super().close()

    # ==================== CAPABILITY ====================

    @property
    def is_live(self) -> bool:
        return self.transport.connected and self._time_pos is not None

    @property
    def is_paused(self) -> bool:
        return self._paused

    def play(self):
        self._send('set_property', 'pause', False)

    def pause(self):
        self._send('set_property', 'pause', True)

    def seek(self, to_seconds: float):
        target = max(0.0, float(to_seconds))
        if self._time_pos is not None:
            # mpv confirms through the next time-pos change
            self._time_pos = target
        self._send('seek', target, 'absolute')

    def current_time(self) -> Optional[float]:
        if not self.is_live:
            return None
        return self._time_pos

    def duration(self) -> Optional[float]:
        return self._duration

    def mute(self):
        self._muted = True
        self._send('set_property', 'mute', True)

    def unmute(self):
        self._muted = False
        self._send('set_property', 'mute', False)

    def load(self, source_ref: Any):
        """Load a URL or path into mpv, replacing the current file."""
        self._on_ready = None
        self._time_pos = None
        self._duration = None
        self._rewind_on_prime = True
        self._send('loadfile', str(source_ref), 'replace')
        logger.info(f"RemoteTile {self.index}: loading {source_ref}")

    def prime(self, on_ready: Callable[[], None]):
        """
        Unpause and seek in place, then wait for mpv's playback-restart; the
        handler pauses back on the primed position and reports ready.

        mpv only emits playback-restart after a load or a seek, so the seek is
        sent on every prime. The first prime after a load starts from 0; later
        primes keep the last reported position.
        """
        if not self.transport.connected:
            logger.debug(f"RemoteTile {self.index}: prime requested before connect, skipping")
            return
        if self._rewind_on_prime or self._time_pos is None:
            self._prime_position = 0.0
        else:
            self._prime_position = self._time_pos
        self._rewind_on_prime = False
        self._on_ready = on_ready
        self._send('set_property', 'pause', False)
        self._send('seek', self._prime_position, 'absolute')

    # ==================== IPC ====================

    def _send(self, *command: Any):
        if not self.transport.connected:
            logger.debug(f"RemoteTile {self.index}: not connected, dropping {command[0]}")
            return
        try:
            self.transport.send(MpvCommand(list(command)))
        except ConnectionError as e:
            logger.debug(f"RemoteTile {self.index}: dropping {command[0]} ({e})")

    def _pump_messages(self, dt: float):
        for message in self.transport.drain():
            if isinstance(message, MpvEvent):
                self._handle_event(message)
            elif isinstance(message, MpvReply) and not message.ok:
                logger.debug(f"RemoteTile {self.index}: mpv error reply: {message.error}")

    def _handle_event(self, event: MpvEvent):
        if event.name == 'property-change':
            self._on_property(event.property_name, event.data)
        elif event.name == 'playback-restart':
            self._finish_priming()
        elif event.name == 'end-file' and event.reason == 'eof':
            self._on_end()

    def _on_property(self, name: Optional[str], value: Any):
        handlers: Dict[str, Callable[[Any], None]] = {
            'time-pos': self._set_time_pos,
            'duration': self._set_duration,
            'pause': self._set_paused,
            'eof-reached': self._set_eof_reached,
        }
        handler = handlers.get(name)
        if handler is not None:
            handler(value)

    def _set_time_pos(self, value: Any):
        self._time_pos = float(value) if isinstance(value, (int, float)) else None

    def _set_duration(self, value: Any):
        self._duration = float(value) if isinstance(value, (int, float)) else None

    def _set_paused(self, value: Any):
        self._paused = bool(value)

    def _set_eof_reached(self, value: Any):
        # keep-open=yes parks mpv on the last frame instead of emitting end-file
        reached = bool(value)
        if reached and not self._eof_reached:
            self._on_end()
        self._eof_reached = reached

    def _on_end(self):
        self._rewind_on_prime = True
        self._notify_end()

    def _finish_priming(self):
        on_ready, self._on_ready = self._on_ready, None
        if on_ready is None:
            return
        self._send('set_property', 'pause', True)
        self._send('seek', self._prime_position, 'absolute')
        on_ready()
