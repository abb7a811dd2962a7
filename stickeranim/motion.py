"""
Procedural animation parameters.

``transform_at`` maps an animation kind, a cycle duration and an elapsed
time to the sprite's Transform.  It is pure: the live preview (driven by a
wall clock) and the exporter (driven by a synthetic time axis) call it with
their own notion of time and get bit-identical results for equal inputs.
"""

from __future__ import annotations

import math

from stickeranim.exceptions import InputError
from stickeranim.types import AnimationKind, Pivot, Transform

BOUNCE_AMPLITUDE_PX = 20.0
SHAKE_AMPLITUDE_PX = 10.0
PULSE_AMPLITUDE = 0.1
SWING_AMPLITUDE_RAD = 0.2


def cycle_phase(cycle_ms: float, elapsed_ms: float) -> float:
    """Position within the current cycle, in [0, 1)."""
    if cycle_ms <= 0:
        raise InputError(f"Cycle duration must be > 0 ms, got {cycle_ms}")
    return (elapsed_ms % cycle_ms) / cycle_ms


def transform_at(
    kind: AnimationKind | str,
    cycle_ms: float,
    elapsed_ms: float,
) -> Transform:
    """Return the sprite transform for *kind* at *elapsed_ms*.

    With ``theta = 2*pi*phase``:

    * bounce -- dy = 20 sin(2 theta), two hops per cycle
    * shake  -- dx = 10 sin(4 theta), four wiggles per cycle
    * pulse  -- scale = 1 + 0.1 sin(theta)
    * swing  -- rotation = 0.2 sin(theta) about the sprite's bottom centre
    * none   -- identity
    """
    kind = AnimationKind.parse(kind)
    theta = cycle_phase(cycle_ms, elapsed_ms) * 2.0 * math.pi

    if kind is AnimationKind.BOUNCE:
        return Transform(dy=BOUNCE_AMPLITUDE_PX * math.sin(2.0 * theta))
    if kind is AnimationKind.SHAKE:
        return Transform(dx=SHAKE_AMPLITUDE_PX * math.sin(4.0 * theta))
    if kind is AnimationKind.PULSE:
        return Transform(scale=1.0 + PULSE_AMPLITUDE * math.sin(theta))
    if kind is AnimationKind.SWING:
        return Transform(
            rotation=SWING_AMPLITUDE_RAD * math.sin(theta),
            pivot=Pivot.BOTTOM_CENTER,
        )
    return Transform.identity()
