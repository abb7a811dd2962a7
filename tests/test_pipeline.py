"""
Tests for the end-to-end export pipeline.
"""

from __future__ import annotations

import io

import pytest
from PIL import Image

from stickeranim.apng import PatchStatus, read_animation_control
from stickeranim.assembly import FrameEncoder
from stickeranim.exceptions import EncoderError, ExtractionError, InputError
from stickeranim.extraction import PassthroughExtractor
from stickeranim.pipeline import (
    CONTENT_TYPE,
    apply_loop_count,
    export_file_name,
    export_sticker,
)
from stickeranim.policy import LINE_POLICY
from stickeranim.types import AnimationKind, AnimationSpec, ExportJob


class BrokenEncoder(FrameEncoder):
    name = "broken"

    def encode(self, frames, width, height, color_hint=0):
        raise EncoderError("boom")


class NotPngEncoder(FrameEncoder):
    name = "not-png"

    def encode(self, frames, width, height, color_hint=0):
        return b"GIF89a-not-a-png"


class TestFileName:
    def test_format(self):
        assert export_file_name("bounce", 1000, now=1700000000.5) == \
            "sticker_bounce_1s_1700000000500.png"

    def test_fractional_seconds(self):
        name = export_file_name(AnimationKind.SWING, 1500, now=1.0)
        assert name == "sticker_swing_1.5s_1000.png"


class TestExportSticker:
    def test_loops_patched(self, green_screen_png):
        spec = AnimationSpec("bounce", cycle_ms=1000)
        job = ExportJob.for_preset("main", total_duration_ms=1000, loop_count=3)
        result = export_sticker(green_screen_png, spec, job, policy=LINE_POLICY)
        assert result.content_type == CONTENT_TYPE == "image/png"
        assert result.frame_count == 8
        assert result.patch.status is PatchStatus.PATCHED
        assert read_animation_control(result.data) == (8, 3)
        assert result.policy is not None and result.policy.ok
        assert result.file_name.startswith("sticker_bounce_1s_")

    def test_infinite_loop_not_patched(self, green_screen_png):
        spec = AnimationSpec("pulse", cycle_ms=1000)
        job = ExportJob.for_preset("main", total_duration_ms=1000)
        result = export_sticker(green_screen_png, spec, job,
                                extractor=PassthroughExtractor(), clean=False)
        assert result.patch.status is PatchStatus.NOT_REQUESTED
        assert read_animation_control(result.data) == (8, 0)
        assert result.policy is None

    def test_none_rejected(self, green_screen_png):
        with pytest.raises(InputError):
            export_sticker(green_screen_png, AnimationSpec("none"),
                           ExportJob(320, 270, 1000))

    def test_extraction_failure_propagates(self):
        with pytest.raises(ExtractionError):
            export_sticker(b"garbage", AnimationSpec("bounce"), ExportJob(320, 270, 1000))

    def test_encoder_failure_propagates(self, green_screen_png):
        with pytest.raises(EncoderError):
            export_sticker(green_screen_png, AnimationSpec("bounce"),
                           ExportJob(240, 240, 1000), encoder=BrokenEncoder())

    def test_unpatchable_container_degrades(self, green_screen_png):
        result = export_sticker(green_screen_png, AnimationSpec("bounce"),
                                ExportJob(240, 240, 1000, loop_count=2),
                                encoder=NotPngEncoder())
        assert result.data == b"GIF89a-not-a-png"
        assert result.patch.status is PatchStatus.BAD_SIGNATURE
        assert result.patch.lines() == [
            "Total size: 16 bytes",
            "Invalid PNG signature; stream left untouched.",
        ]

    def test_uniform_upload_rejected(self):
        img = Image.new("RGB", (40, 40), (0, 200, 0))
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        # Colour keying clears every pixel of a flat image.
        with pytest.raises(InputError, match="no opaque pixels"):
            export_sticker(buf.getvalue(), AnimationSpec("bounce"),
                           ExportJob(240, 240, 1000))


class TestApplyLoopCount:
    def test_static_png(self, static_png):
        data, report = apply_loop_count(static_png, 2)
        assert data == static_png
        assert not report.patched
        assert report.status is PatchStatus.CHUNK_NOT_FOUND

    def test_not_a_png(self):
        data, report = apply_loop_count(b"GIF89a", 2)
        assert data == b"GIF89a"
        assert report.status is PatchStatus.BAD_SIGNATURE
        assert "acTL chunk NOT found!" not in report.lines()

    def test_patches(self, sample_apng):
        data, report = apply_loop_count(sample_apng, 1)
        assert report.patched
        assert read_animation_control(data) == (3, 1)
