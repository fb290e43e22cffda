# Decoded sprite model: layers, frames of cels, tags, palette and images

import bisect
from typing import Dict, List, Optional, Tuple

import attr
import PIL.Image  # type: ignore

from aseflat.chunks import (
    RGBA,
    CelChunk,
    ColorProfileChunk,
    ExternalFile,
    Image,
    LayerChunk,
    LinkedCel,
    PaletteChunk,
    SliceChunk,
    TagChunk,
    TilesetChunk,
    UserDataChunk,
)
from aseflat.enums import AnimationDirection, BlendMode
from aseflat.header import Header

# Layer keywords (in layer user data text) with compositing behavior
HITBOX = "hitbox"
INVISIBLE = "invisible"
LAYER_KEYWORDS = (HITBOX, INVISIBLE)

Parameters = Dict[str, str]


def parse_parameters(text: Optional[str]) -> Parameters:
    """Parse "keyword, keyword=value, ..." user data text into a dict."""

    parameters = {}
    for item in (text or "").split(","):
        key, _, value = item.partition("=")
        key = key.strip().lower()
        if key:
            parameters[key] = value.strip()
    return parameters


@attr.frozen
class Palette:
    # None marks a slot below some chunk's first index that no chunk set
    colors: Tuple[Optional[RGBA], ...] = attr.ib(default=(), converter=tuple)

    def __len__(self):
        return len(self.colors)

    def __getitem__(self, index: int) -> Optional[RGBA]:
        return self.colors[index]

    def merge(self, chunk: PaletteChunk) -> "Palette":
        colors = list(self.colors)
        end = chunk.first_index + len(chunk.entries)
        colors.extend([None] * (end - len(colors)))
        for offset, entry in enumerate(chunk.entries):
            colors[chunk.first_index + offset] = entry.color
        return Palette(colors)

    def clear_alpha(self, index: int) -> "Palette":
        color = self.colors[index] if 0 <= index < len(self.colors) else None
        if color is None:
            return self
        colors = list(self.colors)
        r, g, b, _ = color
        colors[index] = (r, g, b, 0)
        return Palette(colors)


@attr.frozen
class Layer:
    chunk: LayerChunk
    user_data: UserDataChunk = UserDataChunk()
    parameters: Parameters = attr.Factory(dict)

    @property
    def name(self) -> str:
        return self.chunk.name

    @property
    def visible(self) -> bool:
        return self.chunk.visible

    @property
    def opacity(self) -> int:
        return self.chunk.opacity

    @property
    def blend_mode(self) -> BlendMode:
        return self.chunk.blend_mode

    @property
    def is_hitbox(self) -> bool:
        return HITBOX in self.parameters

    @property
    def is_composited(self) -> bool:
        return self.visible and INVISIBLE not in self.parameters


@attr.frozen
class Cel:
    chunk: CelChunk
    image_index: int
    user_data: UserDataChunk = UserDataChunk()

    @property
    def layer_index(self) -> int:
        return self.chunk.layer_index

    @property
    def x(self) -> int:
        return self.chunk.x

    @property
    def y(self) -> int:
        return self.chunk.y

    @property
    def z_index(self) -> int:
        return self.chunk.z_index

    @property
    def linked(self) -> bool:
        return isinstance(self.chunk.content, LinkedCel)


@attr.define
class Frame:
    duration: int  # milliseconds
    cels: List[Cel] = attr.Factory(list)  # ordered by layer index

    def cel_at_layer(self, layer_index: int) -> Optional[Cel]:
        i = bisect.bisect_left(self.cels, layer_index, key=lambda c: c.layer_index)
        if i < len(self.cels) and self.cels[i].layer_index == layer_index:
            return self.cels[i]
        return None


@attr.frozen
class Tag:
    chunk: TagChunk
    user_data: UserDataChunk = UserDataChunk()
    parameters: Parameters = attr.Factory(dict)

    @property
    def name(self) -> str:
        return self.chunk.name

    @property
    def frame_range(self) -> range:
        return range(self.chunk.from_frame, self.chunk.to_frame + 1)

    @property
    def direction(self) -> AnimationDirection:
        return self.chunk.direction

    @property
    def repeat(self) -> int:
        return self.chunk.repeat


@attr.frozen
class Sprite:
    header: Header
    palette: Palette
    layers: List[Layer]
    frames: List[Frame]
    tags: List[Tag]
    images: List[Image]
    images_rgba: List[PIL.Image.Image] = attr.ib(repr=False)
    tilesets: List[TilesetChunk] = attr.Factory(list)
    slices: List[SliceChunk] = attr.Factory(list)
    external_files: List[ExternalFile] = attr.Factory(list)
    color_profile: Optional[ColorProfileChunk] = None

    @property
    def width(self) -> int:
        return self.header.width

    @property
    def height(self) -> int:
        return self.header.height

    @property
    def size(self) -> Tuple[int, int]:
        return (self.header.width, self.header.height)

    @property
    def pixel_count(self) -> int:
        return self.header.width * self.header.height

    def tag(self, name: str) -> Optional[Tag]:
        return next((t for t in self.tags if t.name == name), None)

    def layer(self, name: str) -> Optional[Layer]:
        return next((l for l in self.layers if l.name == name), None)

    def cel_image(self, cel: Cel) -> PIL.Image.Image:
        return self.images_rgba[cel.image_index]
