# Frame framing: header, then length-prefixed frames of length-prefixed chunks

import logging
import struct
from typing import List

import attr

from aseflat.chunks import Chunk, parse_chunks
from aseflat.errors import (
    InvalidFrameMagicError,
    InvalidFrameSizeError,
    ParseError,
    TruncatedFileError,
)
from aseflat.header import HEADER_SIZE, Header, parse_header
from aseflat.scalars import Data, Result, dword, take

logger = logging.getLogger(__name__)

FRAME_MAGIC = 0xF1FA
FRAME_HEADER_SIZE = 16
LEGACY_COUNT_OVERFLOW = 0xFFFF

_frame_struct = struct.Struct("<IHHH2xI")
assert _frame_struct.size == FRAME_HEADER_SIZE


@attr.frozen
class RawFrame:
    duration: int  # milliseconds
    chunks: List[Chunk]


@attr.frozen
class RawFile:
    header: Header
    frames: List[RawFrame]


def chunk_count(legacy_count: int, count: int) -> int:
    """Pick the chunk count from the 16-bit and 32-bit frame header fields."""

    if count == 0:
        return legacy_count
    if legacy_count not in (count, LEGACY_COUNT_OVERFLOW):
        logger.warning(
            f"Frame chunk counts disagree (16-bit={legacy_count},"
            f" 32-bit={count}), using {count}"
        )
    return count


def parse_frame(data: Data, *, layer_uuids: bool = False) -> Result[RawFrame]:
    view = memoryview(data)
    size, _ = dword(view, "frame size")
    if size < FRAME_HEADER_SIZE or size > len(view):
        raise InvalidFrameSizeError(
            f"Frame size {size}b (minimum {FRAME_HEADER_SIZE}b,"
            f" {len(view)}b remaining)"
        )

    span, rest = view[:size], view[size:]
    raw, body = take(span, FRAME_HEADER_SIZE, "frame header")
    _, magic, legacy_count, duration, count = _frame_struct.unpack_from(raw)
    if magic != FRAME_MAGIC:
        raise InvalidFrameMagicError(
            f"Frame magic 0x{magic:04X} != 0x{FRAME_MAGIC:04X}"
        )

    chunks, leftover = parse_chunks(
        body, chunk_count(legacy_count, count), layer_uuids=layer_uuids
    )
    if leftover:
        logger.warning(f"Ignoring {len(leftover)}b after last chunk in frame")
    return RawFrame(duration=duration, chunks=chunks), rest


def parse_raw_file(data: Data) -> RawFile:
    view = memoryview(data)
    header, _ = parse_header(view)
    if header.file_size < HEADER_SIZE:
        raise TruncatedFileError(f"Declared file size {header.file_size}b")
    if len(view) < header.file_size:
        raise TruncatedFileError(
            f"File is {len(view)}b, header declares {header.file_size}b"
        )

    rest = view[HEADER_SIZE : header.file_size]
    frames = []
    for index in range(header.frames):
        try:
            frame, rest = parse_frame(rest, layer_uuids=header.has_layer_uuids)
        except ParseError as exc:
            raise type(exc)(f"Frame #{index}: {exc}") from exc
        frames.append(frame)

    if rest:
        logger.warning(f"Ignoring {len(rest)}b after frame #{header.frames - 1}")
    return RawFile(header=header, frames=frames)
