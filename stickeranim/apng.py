"""
APNG chunk walking and in-place loop-count patching.

A PNG stream is the 8-byte signature followed by chunks laid out as::

    length:4 (big-endian)  type:4  data:length  crc:4

The CRC covers type + data and is the reflected CRC-32 (polynomial
0xEDB88320, all-ones initial value and final complement) -- exactly what
``zlib.crc32`` computes.  The animation-control chunk ``acTL`` carries::

    num_frames:4  num_plays:4

``set_loop_count`` rewrites ``num_plays`` and that chunk's CRC and leaves
every other byte of the stream untouched.  Everything here reads through
an explicit offset cursor over an immutable buffer; a chunk header or body
that would run past the end of the buffer ends the walk.
"""

from __future__ import annotations

import enum
import logging
import struct
import zlib
from dataclasses import dataclass, field
from typing import Iterator

from stickeranim.exceptions import ContainerFormatError, InputError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
ACTL = b"acTL"
MAX_PLAY_COUNT = 0xFFFFFFFF

_U32 = struct.Struct(">I")
_HEADER = struct.Struct(">I4s")


class PatchStatus(enum.Enum):
    """Outcome of a loop-count patch attempt."""
    PATCHED = "patched"
    NOT_REQUESTED = "not_requested"     # loop_count == 0, bytes untouched
    CHUNK_NOT_FOUND = "chunk_not_found"
    BAD_SIGNATURE = "bad_signature"     # not a PNG stream, bytes untouched


@dataclass(frozen=True)
class Chunk:
    """Location of one chunk inside a PNG byte stream."""
    tag: bytes
    offset: int         # offset of the length field
    length: int         # length of the data field

    @property
    def data_start(self) -> int:
        return self.offset + 8

    @property
    def crc_offset(self) -> int:
        return self.data_start + self.length

    @property
    def end(self) -> int:
        return self.crc_offset + 4

    @property
    def name(self) -> str:
        return self.tag.decode("latin-1")


@dataclass
class PatchReport:
    """What ``set_loop_count`` found and changed."""
    status: PatchStatus
    requested: int = 0
    total_size: int = 0
    offset: int | None = None
    old_play_count: int | None = None
    new_play_count: int | None = None
    old_crc: int | None = None
    new_crc: int | None = None
    truncated: bool = False
    chunks_seen: list[Chunk] = field(default_factory=list)

    @property
    def patched(self) -> bool:
        return self.status is PatchStatus.PATCHED

    def lines(self) -> list[str]:
        """Human-readable walk log, one entry per step."""
        out = [f"Total size: {self.total_size} bytes"]
        for chunk in self.chunks_seen:
            out.append(
                f"Found chunk '{chunk.name}' at offset {chunk.offset}. "
                f"Length: {chunk.length}"
            )
        if self.truncated:
            out.append("Unexpected end of file")
        if self.status is PatchStatus.PATCHED:
            out.append(
                f"Found acTL at offset {self.offset}. "
                f"Old num_plays: {self.old_play_count}. New: {self.new_play_count}"
            )
            out.append(f"Updated CRC. Old: {self.old_crc:x}, New: {self.new_crc:x}")
        elif self.status is PatchStatus.CHUNK_NOT_FOUND:
            out.append("acTL chunk NOT found!")
        elif self.status is PatchStatus.BAD_SIGNATURE:
            out.append("Invalid PNG signature; stream left untouched.")
        else:
            out.append("Loop count 0 requested; stream left untouched.")
        return out


# ---------------------------------------------------------------------------
# Chunk walking
# ---------------------------------------------------------------------------

def chunk_crc(tag: bytes, body: bytes) -> int:
    """CRC-32 of a chunk's type tag plus data, as stored in the stream."""
    return zlib.crc32(body, zlib.crc32(tag)) & 0xFFFFFFFF


def check_signature(data: bytes) -> None:
    if len(data) < len(PNG_SIGNATURE) or data[:8] != PNG_SIGNATURE:
        raise ContainerFormatError(
            f"Not a PNG stream: missing 8-byte signature ({len(data)} bytes given)",
            size=len(data),
        )


def _walk(data: bytes) -> Iterator[Chunk | None]:
    """Yield chunks in order, then ``None`` if the stream was truncated."""
    offset = len(PNG_SIGNATURE)
    total = len(data)
    while offset < total:
        if offset + _HEADER.size > total:
            yield None
            return
        length, tag = _HEADER.unpack_from(data, offset)
        chunk = Chunk(tag=tag, offset=offset, length=length)
        if chunk.end > total:
            yield None
            return
        yield chunk
        offset = chunk.end


def iter_chunks(data: bytes) -> Iterator[Chunk]:
    """Iterate over the complete chunks of a PNG stream.

    Raises ContainerFormatError if the signature is missing.  Iteration stops
    silently at a truncated chunk.
    """
    check_signature(data)
    for chunk in _walk(data):
        if chunk is None:
            return
        yield chunk


def read_animation_control(data: bytes) -> tuple[int, int] | None:
    """Return ``(num_frames, num_plays)`` from the first acTL, or None."""
    for chunk in iter_chunks(data):
        if chunk.tag == ACTL and chunk.length >= 8:
            num_frames = _U32.unpack_from(data, chunk.data_start)[0]
            num_plays = _U32.unpack_from(data, chunk.data_start + 4)[0]
            return num_frames, num_plays
    return None


def verify_chunk_crcs(data: bytes) -> list[Chunk]:
    """Return the chunks whose stored CRC does not match their contents."""
    bad = []
    for chunk in iter_chunks(data):
        stored = _U32.unpack_from(data, chunk.crc_offset)[0]
        body = data[chunk.data_start:chunk.crc_offset]
        if chunk_crc(chunk.tag, body) != stored:
            bad.append(chunk)
    return bad


# ---------------------------------------------------------------------------
# Loop-count patch
# ---------------------------------------------------------------------------

def set_loop_count(data: bytes, loop_count: int) -> tuple[bytes, PatchReport]:
    """Rewrite the acTL play count of an APNG stream.

    ``loop_count == 0`` leaves the stream as-is (APNG encoders default to
    infinite looping).  Otherwise the first acTL chunk has its ``num_plays``
    field and CRC rewritten; those 8 bytes are the only ones that change.
    A stream without acTL is returned unchanged with status
    CHUNK_NOT_FOUND.

    Raises InputError for a negative or out-of-range loop count and
    ContainerFormatError when *data* is not a PNG stream.
    """
    if loop_count < 0 or loop_count > MAX_PLAY_COUNT:
        raise InputError(f"Loop count must be in [0, {MAX_PLAY_COUNT}], got {loop_count}")

    data = bytes(data)
    report = PatchReport(
        status=PatchStatus.NOT_REQUESTED,
        requested=loop_count,
        total_size=len(data),
    )
    if loop_count == 0:
        return data, report

    check_signature(data)
    buf = bytearray(data)
    for chunk in _walk(data):
        if chunk is None:
            report.truncated = True
            break
        report.chunks_seen.append(chunk)
        logger.debug("Found chunk '%s' at offset %d. Length: %d",
                     chunk.name, chunk.offset, chunk.length)
        if chunk.tag != ACTL or chunk.length < 8:
            continue

        plays_at = chunk.data_start + 4
        report.offset = chunk.offset
        report.old_play_count = _U32.unpack_from(buf, plays_at)[0]
        report.old_crc = _U32.unpack_from(buf, chunk.crc_offset)[0]
        _U32.pack_into(buf, plays_at, loop_count)
        report.new_crc = chunk_crc(chunk.tag, bytes(buf[chunk.data_start:chunk.crc_offset]))
        _U32.pack_into(buf, chunk.crc_offset, report.new_crc)
        report.new_play_count = loop_count
        report.status = PatchStatus.PATCHED
        logger.debug(
            "Patched acTL at offset %d: num_plays %d -> %d, crc %08x -> %08x",
            chunk.offset, report.old_play_count, loop_count,
            report.old_crc, report.new_crc,
        )
        return bytes(buf), report

    report.status = PatchStatus.CHUNK_NOT_FOUND
    logger.warning(
        "Loop count %d requested but no acTL chunk found in %d-byte stream",
        loop_count, len(data),
    )
    return data, report
