"""
pyglet media player whose playback clock runs at an adjustable rate.

pyglet's Player keeps its position on a wall-clock timer and schedules video
frames against it; `pitch` only resamples audio. RatePlayer swaps in a timer
that scales elapsed time by `rate`, and keeps the audio pitch equal to it,
so frames, audio and `Player.time` all move at the same speed.
"""

import time
from typing import Callable

import pyglet


class ScaledPlaybackTimer:
    """
    Pausable elapsed-time counter advancing `rate` seconds per real second.

    Same surface as pyglet's PlaybackTimer (start, pause, reset, get_time,
    set_time). Changing the rate folds the time elapsed so far into the base,
    so the reading stays continuous.
    """

    def __init__(self, time_function: Callable[[], float] = time.perf_counter):
        self._time_function = time_function
        self._elapsed = 0.0
        self._started_at = None
        self.rate = 1.0

    def start(self):
        if self._started_at is None:
            self._started_at = self._time_function()

    def pause(self):
        self._elapsed = self.get_time()
        self._started_at = None

    def reset(self):
        self._elapsed = 0.0
        if self._started_at is not None:
            self._started_at = self._time_function()

    def get_time(self) -> float:
        if self._started_at is None:
            return self._elapsed
        return (self._time_function() - self._started_at) * self.rate + self._elapsed

    def set_time(self, value: float):
        self.reset()
        self._elapsed = value

    def set_rate(self, rate: float):
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self._elapsed = self.get_time()
        if self._started_at is not None:
            self._started_at = self._time_function()
        self.rate = rate


class RatePlayer(pyglet.media.Player):
    """pyglet.media.Player with a `rate` property that speeds up or slows down playback."""

    def __init__(self, time_function: Callable[[], float] = time.perf_counter):
        super().__init__()
        self._timer = ScaledPlaybackTimer(time_function)

    @property
    def rate(self) -> float:
        return self._timer.rate

    @rate.setter
    def rate(self, value: float):
        self._timer.set_rate(value)
        self.pitch = value
