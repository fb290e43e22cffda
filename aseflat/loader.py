# Folding decoded frame chunks into a Sprite model

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from aseflat.chunks import (
    CelChunk,
    Chunk,
    ColorProfileChunk,
    CompressedTilemap,
    ExternalFile,
    ExternalFilesChunk,
    Image,
    LayerChunk,
    LinkedCel,
    PaletteChunk,
    SliceChunk,
    TagsChunk,
    TilesetChunk,
    UserDataChunk,
)
from aseflat.enums import ColorDepth, LayerType
from aseflat.errors import (
    DuplicateChunkError,
    ImageError,
    MissingChunkError,
    SpriteError,
    UnresolvedLinkError,
    UnsupportedFeatureError,
)
from aseflat.model import (
    LAYER_KEYWORDS,
    Cel,
    Frame,
    Layer,
    Palette,
    Sprite,
    Tag,
    parse_parameters,
)
from aseflat.pixels import resolve_image
from aseflat.raw_file import RawFile, parse_raw_file
from aseflat.scalars import Data

logger = logging.getLogger(__name__)


class _ChunkStream:
    """Iterates one frame's chunks with one chunk of lookahead.

    User data chunks have no owner field; one directly following a
    layer, cel or tag belongs to it.
    """

    def __init__(self, chunks: Sequence[Chunk]):
        self._chunks = chunks
        self._next = 0

    def __iter__(self):
        return self

    def __next__(self) -> Chunk:
        if self._next >= len(self._chunks):
            raise StopIteration
        chunk = self._chunks[self._next]
        self._next += 1
        return chunk

    def take_user_data(self) -> UserDataChunk:
        if self._next < len(self._chunks):
            chunk = self._chunks[self._next]
            if isinstance(chunk, UserDataChunk):
                self._next += 1
                return chunk
        return UserDataChunk()


class _Assembler:
    def __init__(self, raw: RawFile):
        self.raw = raw
        self.palette = Palette()
        self.palette_found = False
        self.color_profile: Optional[ColorProfileChunk] = None
        self.layers: List[Layer] = []
        self.frames: List[Frame] = []
        self.tags: List[Tag] = []
        self.images: List[Image] = []
        self.tilesets: List[TilesetChunk] = []
        self.slices: List[SliceChunk] = []
        self.external_files: List[ExternalFile] = []

        # (frame index, layer index) => image index, for linked cels
        self.image_map: Dict[Tuple[int, int], int] = {}

    def run(self):
        for frame_index, raw_frame in enumerate(self.raw.frames):
            frame = Frame(duration=raw_frame.duration)
            self.frames.append(frame)
            self.add_frame(frame_index, frame, _ChunkStream(raw_frame.chunks))
            frame.cels.sort(key=lambda c: c.layer_index)

    def add_frame(self, frame_index: int, frame: Frame, stream: _ChunkStream):
        frame_palette = False
        for chunk in stream:
            if isinstance(chunk, LayerChunk):
                self.add_layer(chunk, stream.take_user_data())

            elif isinstance(chunk, CelChunk):
                cel = self.make_cel(frame_index, chunk, stream.take_user_data())
                frame.cels.append(cel)

            elif isinstance(chunk, TagsChunk):
                for tag_chunk in chunk.tags:
                    user_data = stream.take_user_data()
                    parameters = parse_parameters(user_data.text)
                    tag = Tag(tag_chunk, user_data=user_data, parameters=parameters)
                    self.tags.append(tag)

            elif isinstance(chunk, PaletteChunk):
                if frame_palette:
                    raise DuplicateChunkError(
                        f"Second palette chunk in frame #{frame_index}"
                    )
                frame_palette = self.palette_found = True
                self.palette = self.palette.merge(chunk)

            elif isinstance(chunk, ColorProfileChunk):
                if self.color_profile:
                    raise DuplicateChunkError(
                        f"Second color profile chunk in frame #{frame_index}"
                    )
                self.color_profile = chunk

            elif isinstance(chunk, TilesetChunk):
                self.tilesets.append(chunk)

            elif isinstance(chunk, SliceChunk):
                self.slices.append(chunk)

            elif isinstance(chunk, ExternalFilesChunk):
                self.external_files.extend(chunk.files)

            elif isinstance(chunk, UserDataChunk):
                logger.debug(f"Frame #{frame_index}: unowned user data {chunk}")

    def add_layer(self, chunk: LayerChunk, user_data: UserDataChunk):
        if chunk.layer_type == LayerType.GROUP:
            raise UnsupportedFeatureError(f'Layer group "{chunk.name}"')

        parameters = parse_parameters(user_data.text)
        for key in parameters.keys() - set(LAYER_KEYWORDS):
            logger.debug(f'Layer "{chunk.name}": unknown keyword "{key}"')
        layer = Layer(chunk, user_data=user_data, parameters=parameters)
        self.layers.append(layer)

    def make_cel(
        self, frame_index: int, chunk: CelChunk, user_data: UserDataChunk
    ) -> Cel:
        key = (frame_index, chunk.layer_index)
        if chunk.layer_index >= len(self.layers):
            raise SpriteError(
                f"Frame #{frame_index} cel on layer {chunk.layer_index}"
                f" ({len(self.layers)} layers)"
            )

        content = chunk.content
        if isinstance(content, Image):
            image_index = len(self.images)
            self.images.append(content)
        elif isinstance(content, LinkedCel):
            link = (content.frame_position, chunk.layer_index)
            if content.frame_position >= frame_index or link not in self.image_map:
                raise UnresolvedLinkError(
                    f"Frame #{frame_index} layer {chunk.layer_index} cel"
                    f" links to frame #{content.frame_position}"
                )
            image_index = self.image_map[link]
        elif isinstance(content, CompressedTilemap):
            layer = self.layers[chunk.layer_index]
            raise UnsupportedFeatureError(
                f'Tilemap cel (frame #{frame_index}, layer "{layer.name}")'
            )

        self.image_map[key] = image_index
        return Cel(chunk, image_index=image_index, user_data=user_data)

    def build(self, *, strict: bool) -> Sprite:
        header = self.raw.header
        if header.color_depth == ColorDepth.INDEXED:
            if not self.palette_found:
                raise MissingChunkError("Indexed sprite has no palette chunk")
            self.palette = self.palette.clear_alpha(header.transparent_index)

        if strict and not self.color_profile:
            raise MissingChunkError("No color profile chunk")

        images_rgba = []
        for index, image in enumerate(self.images):
            try:
                rgba = resolve_image(image, header.color_depth, self.palette)
            except ImageError as exc:
                raise type(exc)(f"Image #{index}: {exc}") from exc
            images_rgba.append(rgba)

        return Sprite(
            header=header,
            palette=self.palette,
            layers=self.layers,
            frames=self.frames,
            tags=self.tags,
            images=self.images,
            images_rgba=images_rgba,
            tilesets=self.tilesets,
            slices=self.slices,
            external_files=self.external_files,
            color_profile=self.color_profile,
        )


def sprite_from_raw(raw: RawFile, *, strict: bool = False) -> Sprite:
    assembler = _Assembler(raw)
    assembler.run()
    return assembler.build(strict=strict)


def load_sprite(data: Data, *, strict: bool = False) -> Sprite:
    """Decode a complete .aseprite file held in memory."""

    raw = parse_raw_file(data)
    sprite = sprite_from_raw(raw, strict=strict)
    logger.debug(
        f"Loaded {sprite.width}x{sprite.height} {raw.header.color_depth.name}"
        f" sprite: {len(sprite.layers)} layers, {len(sprite.frames)} frames,"
        f" {len(sprite.tags)} tags, {len(sprite.images)} images"
    )
    return sprite


def load_sprite_file(path, *, strict: bool = False) -> Sprite:
    with open(path, "rb") as file:
        return load_sprite(file.read(), strict=strict)
