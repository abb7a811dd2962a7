"""
Export-target policies.

A sticker platform constrains the exported file: canvas size, frame count,
total play time and byte size.  These limits are product policy, not
container rules, so they live in data: a ``TargetPolicy`` loaded from YAML
or the built-in ``LINE_POLICY``.  The core never enforces a policy; it only
reports on it, and callers decide whether to block an export.

Policy file format::

    name: line
    max_total_ms: 4000
    duration_multiple_ms: 1000
    max_width: 320
    max_height: 270
    min_frames: 5
    max_frames: 20
    max_bytes: 1048576
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from stickeranim.exceptions import PolicyError

logger = logging.getLogger(__name__)


def compute_total_duration(loop_count: int, cycle_ms: int) -> int:
    """Total play time in ms: one cycle when looping forever, else loops x cycle."""
    if loop_count == 0:
        return cycle_ms
    return cycle_ms * loop_count


@dataclass(frozen=True)
class TargetPolicy:
    """Limits imposed by an export target.  ``None`` disables a check."""
    name: str
    max_total_ms: int | None = 4000
    duration_multiple_ms: int | None = 1000
    max_width: int | None = None
    max_height: int | None = None
    min_frames: int | None = None
    max_frames: int | None = None
    max_bytes: int | None = None

    def is_compliant(self, loop_count: int, cycle_ms: int) -> bool:
        """True if a finite loop of *cycle_ms* fits the duration rule.

        Infinite looping (``loop_count == 0``) is always accepted.
        """
        if loop_count == 0:
            return True
        total = compute_total_duration(loop_count, cycle_ms)
        if self.max_total_ms is not None and total > self.max_total_ms:
            return False
        if self.duration_multiple_ms and total % self.duration_multiple_ms != 0:
            return False
        return True


LINE_POLICY = TargetPolicy(
    name="line",
    max_total_ms=4000,
    duration_multiple_ms=1000,
    max_width=320,
    max_height=270,
    min_frames=5,
    max_frames=20,
    max_bytes=1024 * 1024,
)


@dataclass(frozen=True)
class PolicyCheck:
    name: str
    ok: bool
    detail: str


@dataclass
class PolicyReport:
    policy: str
    checks: list[PolicyCheck] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(c.ok for c in self.checks)

    @property
    def failures(self) -> list[PolicyCheck]:
        return [c for c in self.checks if not c.ok]

    def lines(self) -> list[str]:
        status = "PASS" if self.ok else "FAIL"
        out = [f"{self.policy} validation [{status}]:"]
        for c in self.checks:
            out.append(f"  [{'OK' if c.ok else 'NG'}] {c.detail}")
        return out


def check_export(
    policy: TargetPolicy,
    *,
    loop_count: int,
    cycle_ms: int,
    width: int | None = None,
    height: int | None = None,
    frame_count: int | None = None,
    size_bytes: int | None = None,
) -> PolicyReport:
    """Evaluate an export against *policy*.  Checks with no input are skipped."""
    report = PolicyReport(policy=policy.name)
    total = compute_total_duration(loop_count, cycle_ms)

    limit = "no limit" if policy.max_total_ms is None else f"max {policy.max_total_ms}ms"
    detail = f"{total}ms total ({limit}"
    if policy.duration_multiple_ms:
        detail += f", multiple of {policy.duration_multiple_ms}ms"
    report.checks.append(PolicyCheck(
        "duration", policy.is_compliant(loop_count, cycle_ms), detail + ")",
    ))

    if width is not None and height is not None and (
        policy.max_width is not None or policy.max_height is not None
    ):
        ok = ((policy.max_width is None or width <= policy.max_width)
              and (policy.max_height is None or height <= policy.max_height))
        report.checks.append(PolicyCheck(
            "size", ok,
            f"{width}x{height} px (max {policy.max_width}x{policy.max_height})",
        ))

    if frame_count is not None and (
        policy.min_frames is not None or policy.max_frames is not None
    ):
        ok = ((policy.min_frames is None or frame_count >= policy.min_frames)
              and (policy.max_frames is None or frame_count <= policy.max_frames))
        report.checks.append(PolicyCheck(
            "frames", ok,
            f"{frame_count} frames (must be {policy.min_frames}-{policy.max_frames})",
        ))

    if size_bytes is not None and policy.max_bytes is not None:
        report.checks.append(PolicyCheck(
            "bytes", size_bytes <= policy.max_bytes,
            f"{size_bytes / 1024:.1f}KB (max {policy.max_bytes // 1024}KB)",
        ))

    return report


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

_FIELDS = {f.name for f in dataclasses.fields(TargetPolicy)}


def policy_from_dict(raw: dict[str, Any], default_name: str = "custom") -> TargetPolicy:
    unknown = set(raw) - _FIELDS
    if unknown:
        raise PolicyError(f"Unknown policy keys: {', '.join(sorted(unknown))}")
    values = dict(raw)
    values.setdefault("name", default_name)
    for key, value in values.items():
        if key == "name":
            values[key] = str(value)
        elif value is not None and (not isinstance(value, int) or isinstance(value, bool)
                                    or value < 0):
            raise PolicyError(f"Policy key {key!r} must be a non-negative integer, got {value!r}")
    return TargetPolicy(**values)


def load_policy(path: str | Path) -> TargetPolicy:
    """Load a TargetPolicy from a YAML file."""
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise PolicyError(f"Cannot read policy {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise PolicyError(f"Policy {path} must be a YAML mapping")
    policy = policy_from_dict(raw, default_name=path.stem)
    logger.debug("Loaded policy %s from %s", policy.name, path)
    return policy
