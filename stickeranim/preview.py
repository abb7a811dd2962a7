"""
Live preview driver.

The exporter samples the animation on a synthetic time axis; the preview
samples it on the wall clock.  Both go through the same pure
``transform_at`` / ``FrameRenderer.render`` pair, so what the user sees is
what gets exported.  The preview retains no frames; each rendered bitmap
is handed to a sink and forgotten.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from stickeranim.compositor import FrameRenderer
from stickeranim.motion import transform_at
from stickeranim.types import AnimationSpec, Bitmap, CanvasPreset

logger = logging.getLogger(__name__)

FrameSink = Callable[[Bitmap], None]


class PreviewLoop:
    """Render frames against a clock until told to stop."""

    def __init__(
        self,
        source: Bitmap,
        spec: AnimationSpec,
        sink: FrameSink,
        canvas: CanvasPreset = CanvasPreset.STICKER,
        fps: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if fps <= 0:
            raise ValueError(f"Preview fps must be > 0, got {fps}")
        self.spec = spec
        self.sink = sink
        self.fps = fps
        self._clock = clock
        self._sleep = sleep
        self._renderer = FrameRenderer(source, canvas.width, canvas.height)
        self._start: float | None = None

    def elapsed_ms(self) -> float:
        if self._start is None:
            self._start = self._clock()
        return (self._clock() - self._start) * 1000.0

    def step(self) -> Bitmap:
        """Render and emit the frame for the current clock reading."""
        transform = transform_at(self.spec.kind, self.spec.cycle_ms, self.elapsed_ms())
        frame = self._renderer.render(transform, self.spec.caption)
        self.sink(frame)
        return frame

    def run(self, stop: threading.Event) -> int:
        """Emit frames until *stop* is set.  Returns the number shown."""
        period = 1.0 / self.fps
        shown = 0
        self._start = self._clock()
        while not stop.is_set():
            tick = self._clock()
            self.step()
            shown += 1
            remaining = period - (self._clock() - tick)
            if remaining > 0:
                self._sleep(remaining)
        logger.debug("Preview stopped after %d frames", shown)
        return shown
