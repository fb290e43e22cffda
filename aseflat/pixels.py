# Turning cel image bytes (raw or zlib, indexed/grayscale/RGBA) into RGBA

import zlib

import PIL.Image  # type: ignore

from aseflat.chunks import Image
from aseflat.enums import ColorDepth
from aseflat.errors import (
    DecompressError,
    InvalidImageDataError,
    UnsupportedColorDepthError,
)
from aseflat.model import Palette


def image_bytes(image: Image, color_depth: ColorDepth) -> bytes:
    """Return the uncompressed pixel bytes of an image, checking the size."""

    if not color_depth.known:
        raise UnsupportedColorDepthError(f"Color depth {color_depth.value}")

    expected = image.pixel_count * color_depth.bytes_per_pixel
    if not image.compressed:
        if len(image.data) != expected:
            raise InvalidImageDataError(
                f"{image.width}x{image.height} {color_depth.name} image"
                f" needs {expected}b, has {len(image.data)}b"
            )
        return image.data

    decompressor = zlib.decompressobj()
    try:
        data = decompressor.decompress(image.data, expected + 1)
    except zlib.error as exc:
        raise DecompressError(f"{image.width}x{image.height}: {exc}") from exc

    if len(data) != expected or not decompressor.eof:
        more = " or more" if len(data) > expected else ""
        raise DecompressError(
            f"{image.width}x{image.height} {color_depth.name} image"
            f" needs {expected}b, inflated to {len(data)}b{more}"
            f"{'' if decompressor.eof else ' (stream incomplete)'}"
        )
    return data


def indexed_to_rgba(data: bytes, palette: Palette) -> bytes:
    for index in sorted(set(data)):
        if index >= len(palette):
            raise InvalidImageDataError(
                f"Palette index {index} out of range ({len(palette)} colors)"
            )
        if palette[index] is None:
            raise InvalidImageDataError(f"Palette index {index} was never set")
    colors = [bytes(c) if c else b"" for c in palette.colors]
    return b"".join(colors[index] for index in data)


def resolve_image(
    image: Image, color_depth: ColorDepth, palette: Palette
) -> PIL.Image.Image:
    """Decode an image into a fresh RGBA PIL image."""

    data = image_bytes(image, color_depth)
    size = (image.width, image.height)
    if color_depth == ColorDepth.RGBA:
        return PIL.Image.frombytes("RGBA", size, data)
    if color_depth == ColorDepth.GRAYSCALE:
        return PIL.Image.frombytes("LA", size, data).convert("RGBA")
    if color_depth == ColorDepth.INDEXED:
        return PIL.Image.frombytes("RGBA", size, indexed_to_rgba(data, palette))
    raise UnsupportedColorDepthError(f"Color depth {color_depth.value}")
