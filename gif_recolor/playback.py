"""Headless frame-advance clock."""
from __future__ import annotations

import logging
from typing import List, Sequence


logger = logging.getLogger(__name__)


class PlaybackClock:
    """Advances a frame index from elapsed display time.

    Elapsed time accumulates until it reaches the current frame's delay; the
    index then moves on (wrapping) and the accumulator restarts at zero, so
    any overshoot is dropped rather than carried into the next frame.
    """

    def __init__(self, delays: Sequence[int] = (), *, playing: bool = False) -> None:
        self._delays: List[int] = [max(0, int(delay)) for delay in delays]
        self.index = 0
        self.accumulated = 0.0
        self.playing = playing and bool(self._delays)

    @property
    def frame_count(self) -> int:
        return len(self._delays)

    @property
    def current_delay(self) -> int:
        if not self._delays:
            return 0
        return self._delays[self.index]

    def reset(self, delays: Sequence[int] | None = None) -> None:
        if delays is not None:
            self._delays = [max(0, int(delay)) for delay in delays]
        self.index = 0
        self.accumulated = 0.0
        if not self._delays:
            self.playing = False

    def play(self) -> None:
        self.playing = bool(self._delays)

    def pause(self) -> None:
        self.playing = False

    def toggle(self) -> bool:
        if self.playing:
            self.pause()
        else:
            self.play()
        return self.playing

    def seek(self, index: int) -> None:
        if not self._delays:
            return
        self.index = index % len(self._delays)
        self.accumulated = 0.0

    def tick(self, elapsed_ms: float) -> bool:
        """Account ``elapsed_ms``; return ``True`` when the frame changed."""

        if not self.playing or not self._delays:
            return False
        self.accumulated += max(0.0, float(elapsed_ms))
        if self.accumulated < self._delays[self.index]:
            return False
        self.accumulated = 0.0
        self.index = (self.index + 1) % len(self._delays)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("playback advanced to frame %s delay=%s", self.index, self.current_delay)
        return True
