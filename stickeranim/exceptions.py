"""
Custom exception hierarchy for stickeranim.

All stickeranim exceptions inherit from StickerAnimError so callers can
catch the entire family with a single except clause.  A missing
animation-control chunk is not an exception; the loop-count
patcher reports it through ``PatchReport.status`` instead.
"""

from __future__ import annotations


class StickerAnimError(Exception):
    """Base exception for all stickeranim errors."""


class InputError(StickerAnimError):
    """Raised for malformed or absent input (bad bitmap, zero frame count).

    Retrying without changing the input will fail the same way.
    """


class ContainerFormatError(StickerAnimError):
    """Raised when container bytes lack the PNG signature."""

    def __init__(self, message: str, size: int = 0) -> None:
        super().__init__(message)
        self.size = size


class ExtractionError(StickerAnimError):
    """Raised when foreground extraction fails."""


class EncoderError(StickerAnimError):
    """Raised when the multi-frame encoder fails."""


class PolicyError(StickerAnimError):
    """Raised when a target-policy file cannot be loaded."""
