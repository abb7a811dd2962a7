"""
Alpha-matte cleanup for extracted foregrounds.

Background removal leaves two kinds of residue around a cut-out sprite:
faint translucent specks scattered over the cleared background, and a
light-coloured halo one pixel wide along the foreground boundary.  A single
pass of ``clean_alpha`` removes both:

    1. Any pixel with alpha below the threshold becomes fully transparent.
    2. Any remaining pixel whose left/right/up/down neighbour was below the
       threshold *in the original matte* becomes fully transparent too.

Neighbour tests read an unmodified snapshot, so the erosion is exactly one
ring deep regardless of traversal order.  Neighbours outside the buffer are
ignored rather than treated as transparent.
"""

from __future__ import annotations

import logging

import numpy as np

from stickeranim.types import Bitmap

logger = logging.getLogger(__name__)

DEFAULT_ALPHA_THRESHOLD = 60


def erosion_mask(alpha: np.ndarray, threshold: int = DEFAULT_ALPHA_THRESHOLD) -> np.ndarray:
    """Return a boolean (H, W) mask of pixels that must become transparent."""
    low = alpha < threshold
    clear = low.copy()
    # Shifted views of the snapshot; edge rows/columns simply have no
    # neighbour on that side.
    clear[:, 1:] |= low[:, :-1]     # left neighbour
    clear[:, :-1] |= low[:, 1:]     # right neighbour
    clear[1:, :] |= low[:-1, :]     # upper neighbour
    clear[:-1, :] |= low[1:, :]     # lower neighbour
    return clear


def clean_alpha(bitmap: Bitmap, threshold: int = DEFAULT_ALPHA_THRESHOLD) -> Bitmap:
    """Drop translucent noise and erode the foreground boundary by one pixel.

    Returns a new bitmap of identical size.  Alpha values only ever
    decrease and the RGB channels are copied through untouched.
    """
    pixels = bitmap.to_array()
    mask = erosion_mask(pixels[:, :, 3], threshold)
    pixels[:, :, 3][mask] = 0
    logger.debug(
        "Alpha cleanup (threshold=%d) cleared %d of %d pixels",
        threshold, int(mask.sum()), mask.size,
    )
    return Bitmap.from_array(pixels)
