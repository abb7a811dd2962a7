"""
End-to-end sticker export.

    image bytes --> [extract] --> [clean alpha] --> [assemble] --> [patch loop count]

Extraction and encoding failures abort the export.  A loop-count patch
that cannot be applied degrades to the unpatched (infinitely looping)
container instead of losing the whole export.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from stickeranim.apng import PatchReport, PatchStatus, set_loop_count
from stickeranim.assembly import FrameEncoder, assemble_export
from stickeranim.exceptions import ContainerFormatError, InputError
from stickeranim.extraction import ColorKeyExtractor, ForegroundExtractor
from stickeranim.matte import DEFAULT_ALPHA_THRESHOLD, clean_alpha
from stickeranim.policy import PolicyReport, TargetPolicy, check_export
from stickeranim.types import AnimationKind, AnimationSpec, ExportJob

logger = logging.getLogger(__name__)

CONTENT_TYPE = "image/png"


@dataclass
class ExportResult:
    data: bytes
    frame_count: int
    patch: PatchReport
    file_name: str
    policy: PolicyReport | None = None
    content_type: str = CONTENT_TYPE


def export_file_name(kind: AnimationKind | str, cycle_ms: int, now: float | None = None) -> str:
    """``sticker_<kind>_<seconds>s_<epoch ms>.png``."""
    kind = AnimationKind.parse(kind)
    stamp = int((time.time() if now is None else now) * 1000)
    seconds = cycle_ms / 1000
    seconds_str = f"{seconds:g}"
    return f"sticker_{kind.value}_{seconds_str}s_{stamp}.png"


def apply_loop_count(data: bytes, loop_count: int) -> tuple[bytes, PatchReport]:
    """Patch the loop count, falling back to *data* unchanged on failure."""
    try:
        patched, report = set_loop_count(data, loop_count)
    except ContainerFormatError as exc:
        logger.warning("Loop-count patch skipped, exporting infinite loop: %s", exc)
        return data, PatchReport(
            status=PatchStatus.BAD_SIGNATURE,
            requested=loop_count,
            total_size=len(data),
        )
    for line in report.lines():
        logger.debug("APNG patch: %s", line)
    return patched, report


def export_sticker(
    image_bytes: bytes,
    spec: AnimationSpec,
    job: ExportJob,
    *,
    extractor: ForegroundExtractor | None = None,
    encoder: FrameEncoder | None = None,
    policy: TargetPolicy | None = None,
    clean: bool = True,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
    font_path: str | Path | None = None,
) -> ExportResult:
    """Turn one still image into an animated sticker container."""
    if spec.kind is AnimationKind.NONE:
        raise InputError("Animation kind 'none' cannot be exported; pick a motion")

    extractor = extractor or ColorKeyExtractor()
    bitmap = extractor.extract(image_bytes)
    logger.info("Extracted %dx%d foreground with %s",
                bitmap.width, bitmap.height, extractor.name)
    if clean:
        bitmap = clean_alpha(bitmap, alpha_threshold)

    data = assemble_export(bitmap, spec, job, encoder=encoder, font_path=font_path)

    report = PatchReport(status=PatchStatus.NOT_REQUESTED, total_size=len(data))
    if job.loop_count > 0:
        data, report = apply_loop_count(data, job.loop_count)
        if report.patched:
            logger.info("Loop count set to %d", job.loop_count)

    policy_report = None
    if policy is not None:
        policy_report = check_export(
            policy,
            loop_count=job.loop_count,
            cycle_ms=spec.cycle_ms,
            width=job.canvas_width,
            height=job.canvas_height,
            frame_count=job.frame_count,
            size_bytes=len(data),
        )
        for line in policy_report.lines():
            if policy_report.ok:
                logger.info(line)
            else:
                logger.warning(line)

    return ExportResult(
        data=data,
        frame_count=job.frame_count,
        patch=report,
        file_name=export_file_name(spec.kind, spec.cycle_ms),
        policy=policy_report,
    )
