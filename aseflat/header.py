# The fixed 128-byte .aseprite file header

import struct

import attr

from aseflat.enums import ColorDepth
from aseflat.errors import InvalidMagicError
from aseflat.scalars import Data, Result, take

HEADER_MAGIC = 0xA5E0
HEADER_SIZE = 128

FLAG_OPACITY_VALID = 1
FLAG_GROUP_OPACITY_VALID = 2
FLAG_LAYER_UUIDS = 4

_header_struct = struct.Struct("<IHHHHHIH8xB3xHBBhhHH84x")
assert _header_struct.size == HEADER_SIZE


@attr.frozen
class Header:
    file_size: int
    frames: int
    width: int
    height: int
    color_depth: ColorDepth
    flags: int = 0
    speed: int = 0  # deprecated, frame durations are used instead
    transparent_index: int = 0  # only meaningful for indexed sprites
    num_colors: int = 0
    pixel_width: int = 0
    pixel_height: int = 0
    grid_x: int = 0
    grid_y: int = 0
    grid_width: int = 0
    grid_height: int = 0

    @property
    def has_layer_uuids(self) -> bool:
        return bool(self.flags & FLAG_LAYER_UUIDS)


def parse_header(data: Data) -> Result[Header]:
    raw, rest = take(data, HEADER_SIZE, "header")
    (
        file_size,
        magic,
        frames,
        width,
        height,
        color_depth,
        flags,
        speed,
        transparent_index,
        num_colors,
        pixel_width,
        pixel_height,
        grid_x,
        grid_y,
        grid_width,
        grid_height,
    ) = _header_struct.unpack_from(raw)

    if magic != HEADER_MAGIC:
        raise InvalidMagicError(
            f"Header magic 0x{magic:04X} != 0x{HEADER_MAGIC:04X}"
        )

    header = Header(
        file_size=file_size,
        frames=frames,
        width=width,
        height=height,
        color_depth=ColorDepth(color_depth),
        flags=flags,
        speed=speed,
        transparent_index=transparent_index,
        num_colors=num_colors,
        pixel_width=pixel_width,
        pixel_height=pixel_height,
        grid_x=grid_x,
        grid_y=grid_y,
        grid_width=grid_width,
        grid_height=grid_height,
    )
    return header, rest
