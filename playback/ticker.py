"""
Schedule/cancel pair over a pyglet clock.

A TickingTask owns exactly one registration on a clock, identified by its
own bound method, so several tasks (and several clocks in tests) never
interfere with each other. Three modes are supported:

- every clock tick (interval=None): the display-refresh loop, one call per
  pass of the event loop
- fixed interval (interval=seconds)
- one-shot delay (repeat=False, interval=delay in seconds)

Example:
    task = TickingTask(check_drift, interval=0.1)
    task.start()     # check_drift(dt) every 100ms on the default clock
    ...
    task.cancel()
"""

import logging
from typing import Callable, Optional

import pyglet

logger = logging.getLogger(__name__)


class TickingTask:
    """Recurring (or one-shot) callback bound to a pyglet clock."""

    def __init__(
        self,
        callback: Callable[[float], None],
        interval: Optional[float] = None,
        clock: Optional[pyglet.clock.Clock] = None,
        repeat: bool = True,
        name: Optional[str] = None
    ):
        """
        Initialize task (does not schedule anything yet).

        Args:
            callback: Called with the elapsed time dt (seconds)
            interval: Seconds between calls; None means every clock tick.
                      For one-shot tasks this is the delay (None = next tick).
            clock: Clock to schedule on (default: pyglet's default clock)
            repeat: False for a one-shot task
            name: Label used in log messages
        """
        if interval is not None and interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")

        self._callback = callback
        self.interval = interval
        self.repeat = repeat
        self.name = name or getattr(callback, '__name__', 'task')
        self._clock = clock if clock is not None else pyglet.clock.get_default()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def clock(self) -> pyglet.clock.Clock:
        return self._clock

    def start(self):
        """Register on the clock. No-op if already registered."""
        if self._running:
            return

        self._running = True
        if not self.repeat:
            self._clock.schedule_once(self._run, self.interval or 0.0)
        elif self.interval is None:
            self._clock.schedule(self._run)
        else:
            self._clock.schedule_interval(self._run, self.interval)

        logger.debug(f"TickingTask[{self.name}]: started (interval={self.interval}, repeat={self.repeat})")

    def cancel(self):
        """Remove the registration. No-op if not registered."""
        if not self._running:
            return

        self._clock.unschedule(self._run)
        self._running = False
        logger.debug(f"TickingTask[{self.name}]: cancelled")

    def restart(self):
        """Cancel and start again (re-arms one-shot delays from now)."""
        self.cancel()
        self.start()

    def _run(self, dt: float):
        if not self.repeat:
            # One-shot: pyglet drops the registration after this call
            self._running = False
        self._callback(dt)

    def __repr__(self):
        return (
            f"TickingTask(name={self.name!r}, interval={self.interval}, "
            f"repeat={self.repeat}, running={self._running})"
        )
