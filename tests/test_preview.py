"""
Tests for the live preview driver, using a fake clock.
"""

from __future__ import annotations

import threading

import pytest

from stickeranim.compositor import render_frame
from stickeranim.motion import transform_at
from stickeranim.preview import PreviewLoop
from stickeranim.types import AnimationSpec, CanvasPreset


class FakeClock:
    """Manual clock; ``sleep`` advances it and can stop the loop."""

    def __init__(self, stop: threading.Event | None = None, max_sleeps: int = 0):
        self.now = 100.0
        self.sleeps = []
        self.stop = stop
        self.max_sleeps = max_sleeps

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.stop is not None and len(self.sleeps) >= self.max_sleeps:
            self.stop.set()


class TestPreviewLoop:
    def test_bad_fps(self, sprite_bitmap):
        with pytest.raises(ValueError):
            PreviewLoop(sprite_bitmap, AnimationSpec("bounce"), lambda f: None, fps=0)

    def test_step_matches_export_render(self, sprite_bitmap):
        clock = FakeClock()
        shown = []
        spec = AnimationSpec("swing", cycle_ms=1000, caption="yo")
        loop = PreviewLoop(sprite_bitmap, spec, shown.append,
                           canvas=CanvasPreset.MAIN, clock=clock, sleep=clock.sleep)
        loop.step()                 # starts the clock at t=0
        clock.now += 0.25
        frame = loop.step()
        assert loop.elapsed_ms() == pytest.approx(250.0)
        expected = render_frame(sprite_bitmap, transform_at("swing", 1000, 250.0),
                                caption="yo", canvas_width=240, canvas_height=240)
        assert frame == expected
        assert len(shown) == 2

    def test_run_until_stopped(self, sprite_bitmap):
        stop = threading.Event()
        clock = FakeClock(stop=stop, max_sleeps=5)
        shown = []
        loop = PreviewLoop(sprite_bitmap, AnimationSpec("pulse"), shown.append,
                           fps=20, clock=clock, sleep=clock.sleep)
        count = loop.run(stop)
        assert count == 5
        assert len(shown) == 5
        assert clock.sleeps == [pytest.approx(0.05)] * 5

    def test_preset_stopped_event_renders_nothing(self, sprite_bitmap):
        stop = threading.Event()
        stop.set()
        shown = []
        loop = PreviewLoop(sprite_bitmap, AnimationSpec("shake"), shown.append)
        assert loop.run(stop) == 0
        assert shown == []
