# Chunk framing and per-type chunk decoding
#
# Layout reference:
# https://github.com/aseprite/aseprite/blob/main/docs/ase-file-specs.md

import logging
from typing import Callable, Dict, List, Optional, Tuple, Union

import attr

from aseflat.enums import (
    AnimationDirection,
    BlendMode,
    ChunkType,
    LayerFlags,
    LayerType,
)
from aseflat.errors import (
    InvalidCelTypeError,
    InvalidChunkSizeError,
    InvalidFrameRangeError,
    InvalidPaletteRangeError,
    InvalidTilesetFlagsError,
    ParseError,
)
from aseflat.scalars import (
    Data,
    Result,
    byte,
    dword,
    fixed,
    long,
    rgb,
    rgba,
    short,
    skip,
    string,
    take,
    word,
)

logger = logging.getLogger(__name__)

CHUNK_HEADER_SIZE = 6  # DWORD size + WORD type

RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]


@attr.frozen
class OldPalettePacket:
    skip: int
    colors: List[RGB]


@attr.frozen
class OldPaletteChunk:
    chunk_type: ChunkType  # 0x0004 (0-255 levels) or 0x0011 (0-63 levels)
    packets: List[OldPalettePacket]


@attr.frozen
class PaletteEntry:
    color: RGBA
    name: Optional[str] = None


@attr.frozen
class PaletteChunk:
    size: int
    first_index: int
    last_index: int
    entries: List[PaletteEntry]


@attr.frozen
class LayerChunk:
    flags: LayerFlags
    layer_type: LayerType
    child_level: int
    blend_mode: BlendMode
    opacity: int
    name: str
    tileset_index: Optional[int] = None
    uuid: Optional[bytes] = None

    @property
    def visible(self) -> bool:
        return bool(self.flags & LayerFlags.VISIBLE)


@attr.frozen
class Image:
    width: int
    height: int
    data: bytes = attr.ib(repr=lambda d: f"<{len(d)}b>")
    compressed: bool = False

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@attr.frozen
class LinkedCel:
    frame_position: int


@attr.frozen
class CompressedTilemap:
    width: int  # in tiles
    height: int
    bits_per_tile: int
    tile_id_mask: int
    x_flip_mask: int
    y_flip_mask: int
    diagonal_flip_mask: int
    data: bytes = attr.ib(repr=lambda d: f"<{len(d)}b>")


CelContent = Union[Image, LinkedCel, CompressedTilemap]


@attr.frozen
class CelChunk:
    layer_index: int
    x: int
    y: int
    opacity: int
    z_index: int  # render order hint, not applied when compositing
    content: CelContent


@attr.frozen
class CelExtraChunk:
    flags: int
    x: float
    y: float
    width: float
    height: float


PROFILE_NONE = 0
PROFILE_SRGB = 1
PROFILE_ICC = 2


@attr.frozen
class ColorProfileChunk:
    profile_type: int
    flags: int
    gamma: float
    icc: Optional[bytes] = attr.ib(default=None, repr=False)


@attr.frozen
class ExternalFile:
    id: int
    file_type: int  # 0=palette 1=tileset 2=extension properties 3=tile mgmt
    name: str


@attr.frozen
class ExternalFilesChunk:
    files: List[ExternalFile]


@attr.frozen
class MaskChunk:
    x: int
    y: int
    width: int
    height: int
    name: str
    bitmap: bytes = attr.ib(repr=False)


@attr.frozen
class PathChunk:
    pass


@attr.frozen
class TagChunk:
    from_frame: int  # inclusive
    to_frame: int  # inclusive
    direction: AnimationDirection
    repeat: int  # 0 = unspecified
    name: str


@attr.frozen
class TagsChunk:
    tags: List[TagChunk]


@attr.frozen
class UserDataChunk:
    text: Optional[str] = None
    color: Optional[RGBA] = None
    properties: Optional[bytes] = attr.ib(default=None, repr=False)


@attr.frozen
class SliceKey:
    frame: int
    x: int
    y: int
    width: int
    height: int
    center: Optional[Tuple[int, int, int, int]] = None
    pivot: Optional[Tuple[int, int]] = None


@attr.frozen
class SliceChunk:
    name: str
    flags: int
    keys: List[SliceKey]


@attr.frozen
class CompressedTiles:
    data: bytes = attr.ib(repr=lambda d: f"<{len(d)}b>")


@attr.frozen
class ExternalTileset:
    external_file_id: int
    tileset_id: int


TILESET_EXTERNAL_FILE = 1
TILESET_TILES = 2


@attr.frozen
class TilesetChunk:
    id: int
    flags: int
    number_of_tiles: int
    width: int
    height: int
    base_index: int
    name: str
    tiles: Union[CompressedTiles, ExternalTileset]


@attr.frozen
class UnsupportedChunk:
    chunk_type: int
    data: bytes = attr.ib(repr=lambda d: f"<{len(d)}b>")


Chunk = Union[
    OldPaletteChunk,
    PaletteChunk,
    LayerChunk,
    CelChunk,
    CelExtraChunk,
    ColorProfileChunk,
    ExternalFilesChunk,
    MaskChunk,
    PathChunk,
    TagsChunk,
    UserDataChunk,
    SliceChunk,
    TilesetChunk,
    UnsupportedChunk,
]


def _parse_old_palette(data: Data, chunk_type: ChunkType) -> OldPaletteChunk:
    count, data = word(data, "packet count")
    packets = []
    for _ in range(count):
        skip_count, data = byte(data, "packet skip")
        color_count, data = byte(data, "packet colors")
        colors = []
        for _ in range(color_count or 256):
            color, data = rgb(data)
            colors.append(color)
        packets.append(OldPalettePacket(skip=skip_count, colors=colors))
    return OldPaletteChunk(chunk_type=chunk_type, packets=packets)


def parse_old_palette_0004_chunk(data: Data) -> OldPaletteChunk:
    return _parse_old_palette(data, ChunkType.OLD_PALETTE_0004)


def parse_old_palette_0011_chunk(data: Data) -> OldPaletteChunk:
    return _parse_old_palette(data, ChunkType.OLD_PALETTE_0011)


def parse_palette_chunk(data: Data) -> PaletteChunk:
    size, data = dword(data, "palette size")
    first, data = dword(data, "first color index")
    last, data = dword(data, "last color index")
    if not (
        first < size
        and first <= last <= size
        and last - first + 1 == size
    ):
        raise InvalidPaletteRangeError(
            f"Palette range [{first}-{last}] doesn't match size {size}"
        )

    data = skip(data, 8)
    entries = []
    for _ in range(size):
        flags, data = word(data, "palette entry flags")
        color, data = rgba(data, "palette entry color")
        name = None
        if flags & 1:
            name, data = string(data, "palette entry name")
        entries.append(PaletteEntry(color=color, name=name))

    return PaletteChunk(
        size=size, first_index=first, last_index=last, entries=entries
    )


def parse_layer_chunk(data: Data, *, has_uuid: bool = False) -> LayerChunk:
    flags, data = word(data, "layer flags")
    layer_type, data = word(data, "layer type")
    child_level, data = word(data, "layer child level")
    data = skip(data, 4)  # default width/height, ignored
    blend_mode, data = word(data, "layer blend mode")
    opacity, data = byte(data, "layer opacity")
    data = skip(data, 3)
    name, data = string(data, "layer name")

    tileset_index = None
    if layer_type == LayerType.TILEMAP:
        tileset_index, data = dword(data, "layer tileset index")

    uuid = None
    if has_uuid:
        uuid_bytes, data = take(data, 16, "layer UUID")
        uuid = bytes(uuid_bytes)

    return LayerChunk(
        flags=LayerFlags(flags),
        layer_type=LayerType(layer_type),
        child_level=child_level,
        blend_mode=BlendMode(blend_mode),
        opacity=opacity,
        name=name,
        tileset_index=tileset_index,
        uuid=uuid,
    )


def parse_cel_chunk(data: Data) -> CelChunk:
    layer_index, data = word(data, "cel layer index")
    x, data = short(data, "cel x")
    y, data = short(data, "cel y")
    opacity, data = byte(data, "cel opacity")
    cel_type, data = word(data, "cel type")
    z_index, data = short(data, "cel z-index")
    data = skip(data, 5)

    content: CelContent
    if cel_type in (0, 2):
        width, data = word(data, "cel width")
        height, data = word(data, "cel height")
        content = Image(
            width=width, height=height, data=bytes(data), compressed=cel_type == 2
        )
    elif cel_type == 1:
        frame_position, data = word(data, "linked cel frame")
        content = LinkedCel(frame_position=frame_position)
    elif cel_type == 3:
        width, data = word(data, "tilemap width")
        height, data = word(data, "tilemap height")
        bits_per_tile, data = word(data, "tilemap bits per tile")
        tile_id_mask, data = dword(data, "tilemap tile ID mask")
        x_flip_mask, data = dword(data, "tilemap X flip mask")
        y_flip_mask, data = dword(data, "tilemap Y flip mask")
        diagonal_flip_mask, data = dword(data, "tilemap diagonal flip mask")
        data = skip(data, 10)
        content = CompressedTilemap(
            width=width,
            height=height,
            bits_per_tile=bits_per_tile,
            tile_id_mask=tile_id_mask,
            x_flip_mask=x_flip_mask,
            y_flip_mask=y_flip_mask,
            diagonal_flip_mask=diagonal_flip_mask,
            data=bytes(data),
        )
    else:
        raise InvalidCelTypeError(f"Cel type {cel_type} (layer {layer_index})")

    return CelChunk(
        layer_index=layer_index,
        x=x,
        y=y,
        opacity=opacity,
        z_index=z_index,
        content=content,
    )


def parse_cel_extra_chunk(data: Data) -> CelExtraChunk:
    flags, data = dword(data, "cel extra flags")
    x, data = fixed(data, "cel extra x")
    y, data = fixed(data, "cel extra y")
    width, data = fixed(data, "cel extra width")
    height, data = fixed(data, "cel extra height")
    return CelExtraChunk(flags=flags, x=x, y=y, width=width, height=height)


def parse_color_profile_chunk(data: Data) -> ColorProfileChunk:
    profile_type, data = word(data, "color profile type")
    flags, data = word(data, "color profile flags")
    gamma, data = fixed(data, "color profile gamma")
    data = skip(data, 8)
    icc = None
    if profile_type == PROFILE_ICC:
        icc_size, data = dword(data, "ICC profile size")
        icc_data, data = take(data, icc_size, "ICC profile")
        icc = bytes(icc_data)
    return ColorProfileChunk(
        profile_type=profile_type, flags=flags, gamma=gamma, icc=icc
    )


def parse_external_files_chunk(data: Data) -> ExternalFilesChunk:
    count, data = dword(data, "external file count")
    data = skip(data, 8)
    files = []
    for _ in range(count):
        file_id, data = dword(data, "external file ID")
        file_type, data = byte(data, "external file type")
        data = skip(data, 7)
        name, data = string(data, "external file name")
        files.append(ExternalFile(id=file_id, file_type=file_type, name=name))
    return ExternalFilesChunk(files=files)


def parse_mask_chunk(data: Data) -> MaskChunk:
    x, data = short(data, "mask x")
    y, data = short(data, "mask y")
    width, data = word(data, "mask width")
    height, data = word(data, "mask height")
    data = skip(data, 8)
    name, data = string(data, "mask name")
    bitmap, data = take(data, height * ((width + 7) // 8), "mask bitmap")
    return MaskChunk(
        x=x, y=y, width=width, height=height, name=name, bitmap=bytes(bitmap)
    )


def parse_path_chunk(data: Data) -> PathChunk:
    return PathChunk()


def parse_tags_chunk(data: Data) -> TagsChunk:
    count, data = word(data, "tag count")
    data = skip(data, 8)
    tags = []
    for _ in range(count):
        from_frame, data = word(data, "tag from frame")
        to_frame, data = word(data, "tag to frame")
        if from_frame > to_frame:
            raise InvalidFrameRangeError(
                f"Tag #{len(tags)} frames {from_frame} > {to_frame}"
            )
        direction, data = byte(data, "tag direction")
        repeat, data = word(data, "tag repeat")
        data = skip(data, 6)
        _, data = rgb(data, "tag color")  # deprecated, user data color instead
        data = skip(data, 1)
        name, data = string(data, "tag name")
        tags.append(
            TagChunk(
                from_frame=from_frame,
                to_frame=to_frame,
                direction=AnimationDirection(direction),
                repeat=repeat,
                name=name,
            )
        )
    return TagsChunk(tags=tags)


def parse_user_data_chunk(data: Data) -> UserDataChunk:
    flags, data = dword(data, "user data flags")
    text = color = properties = None
    if flags & 1:
        text, data = string(data, "user data text")
    if flags & 2:
        color, data = rgba(data, "user data color")
    if flags & 4:
        properties = bytes(data)
    return UserDataChunk(text=text, color=color, properties=properties)


def parse_slice_chunk(data: Data) -> SliceChunk:
    count, data = dword(data, "slice key count")
    flags, data = dword(data, "slice flags")
    data = skip(data, 4)
    name, data = string(data, "slice name")
    keys = []
    for _ in range(count):
        frame, data = dword(data, "slice key frame")
        x, data = long(data, "slice key x")
        y, data = long(data, "slice key y")
        width, data = dword(data, "slice key width")
        height, data = dword(data, "slice key height")
        center = pivot = None
        if flags & 1:
            cx, data = long(data, "slice center x")
            cy, data = long(data, "slice center y")
            cw, data = dword(data, "slice center width")
            ch, data = dword(data, "slice center height")
            center = (cx, cy, cw, ch)
        if flags & 2:
            px, data = long(data, "slice pivot x")
            py, data = long(data, "slice pivot y")
            pivot = (px, py)
        keys.append(
            SliceKey(
                frame=frame,
                x=x,
                y=y,
                width=width,
                height=height,
                center=center,
                pivot=pivot,
            )
        )
    return SliceChunk(name=name, flags=flags, keys=keys)


def parse_tileset_chunk(data: Data) -> TilesetChunk:
    tileset_id, data = dword(data, "tileset ID")
    flags, data = dword(data, "tileset flags")
    external, embedded = flags & TILESET_EXTERNAL_FILE, flags & TILESET_TILES
    if bool(external) == bool(embedded):
        raise InvalidTilesetFlagsError(
            f"Tileset {tileset_id} flags 0x{flags:x} need exactly one of"
            " external file / embedded tiles"
        )

    number_of_tiles, data = dword(data, "tileset tile count")
    width, data = word(data, "tileset tile width")
    height, data = word(data, "tileset tile height")
    base_index, data = short(data, "tileset base index")
    data = skip(data, 14)
    name, data = string(data, "tileset name")

    tiles: Union[CompressedTiles, ExternalTileset]
    if embedded:
        size, data = dword(data, "tileset data length")
        tile_data, data = take(data, size, "tileset data")
        tiles = CompressedTiles(data=bytes(tile_data))
    else:
        file_id, data = dword(data, "tileset external file ID")
        external_id, data = dword(data, "tileset external tileset ID")
        tiles = ExternalTileset(external_file_id=file_id, tileset_id=external_id)

    return TilesetChunk(
        id=tileset_id,
        flags=flags,
        number_of_tiles=number_of_tiles,
        width=width,
        height=height,
        base_index=base_index,
        name=name,
        tiles=tiles,
    )


_decoders: Dict[ChunkType, Callable[[Data], Chunk]] = {
    ChunkType.OLD_PALETTE_0004: parse_old_palette_0004_chunk,
    ChunkType.OLD_PALETTE_0011: parse_old_palette_0011_chunk,
    ChunkType.CEL: parse_cel_chunk,
    ChunkType.CEL_EXTRA: parse_cel_extra_chunk,
    ChunkType.COLOR_PROFILE: parse_color_profile_chunk,
    ChunkType.EXTERNAL_FILES: parse_external_files_chunk,
    ChunkType.MASK: parse_mask_chunk,
    ChunkType.PATH: parse_path_chunk,
    ChunkType.TAGS: parse_tags_chunk,
    ChunkType.PALETTE: parse_palette_chunk,
    ChunkType.USER_DATA: parse_user_data_chunk,
    ChunkType.SLICE: parse_slice_chunk,
    ChunkType.TILESET: parse_tileset_chunk,
}


def parse_chunk(data: Data, *, layer_uuids: bool = False) -> Result[Chunk]:
    """Slice one length-prefixed chunk off the input and decode it."""

    view = memoryview(data)
    size, _ = dword(view, "chunk size")
    if size < CHUNK_HEADER_SIZE or size > len(view):
        raise InvalidChunkSizeError(
            f"Chunk size {size}b (minimum {CHUNK_HEADER_SIZE}b,"
            f" {len(view)}b remaining)"
        )

    span, rest = view[:size], view[size:]
    raw_type, body = word(skip(span, 4), "chunk type")
    chunk_type = ChunkType(raw_type)

    try:
        if chunk_type == ChunkType.LAYER:
            return parse_layer_chunk(body, has_uuid=layer_uuids), rest
        decoder = _decoders.get(chunk_type)
        if decoder:
            return decoder(body), rest
    except ParseError as exc:
        raise type(exc)(f"{chunk_type.name} chunk: {exc}") from exc

    logger.debug(f"Unsupported chunk 0x{raw_type:04X} ({size}b)")
    return UnsupportedChunk(chunk_type=raw_type, data=bytes(body)), rest


def parse_chunks(
    data: Data, count: int, *, layer_uuids: bool = False
) -> Result[List[Chunk]]:
    chunks: List[Chunk] = []
    rest = memoryview(data)
    for index in range(count):
        try:
            chunk, rest = parse_chunk(rest, layer_uuids=layer_uuids)
        except ParseError as exc:
            raise type(exc)(f"Chunk #{index}/{count}: {exc}") from exc
        chunks.append(chunk)
    return chunks, rest
