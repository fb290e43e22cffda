# Compositing a frame's cels into RGBA images, plus hitbox extraction

from typing import Callable, Dict, List, Optional, Tuple

import attr
import PIL.Image  # type: ignore

from aseflat.enums import BlendMode
from aseflat.model import Cel, Layer, Sprite


@attr.frozen
class CroppedImage:
    """Frame image trimmed to its cels; paste at (x, y) on the canvas."""

    image: PIL.Image.Image
    x: int
    y: int

    @property
    def offset(self) -> Tuple[int, int]:
        return (self.x, self.y)


@attr.frozen
class Hitbox:
    offset: Tuple[int, int]
    size: Tuple[int, int]
    layer_index: int


_blend_functions: Dict[BlendMode, Callable[[float, float], float]] = {
    BlendMode.NORMAL: lambda first, second: second,
    BlendMode.MULTIPLY: lambda first, second: first * second,
    BlendMode.SCREEN: lambda first, second: 1.0 - (1.0 - first) * (1.0 - second),
    BlendMode.DARKEN: min,
    BlendMode.LIGHTEN: max,
    BlendMode.ADDITION: lambda first, second: min(first + second, 1.0),
    BlendMode.SUBTRACT: lambda first, second: max(first - second, 0.0),
    BlendMode.DIFFERENCE: lambda first, second: abs(first - second),
    BlendMode.OVERLAY: lambda first, second: (
        2.0 * first * second
        if first < 0.5
        else 1.0 - 2.0 * (1.0 - first) * (1.0 - second)
    ),
}


def _channel_blender(mode: BlendMode) -> Callable[[int, int, int], int]:
    blend = _blend_functions.get(mode)

    def blender(first: int, second: int, alpha: int) -> int:
        a, f, s = alpha / 255.0, first / 255.0, second / 255.0
        result = blend(f, s) if blend else f
        blended = f * (1.0 - a) + result * a
        return int(min(max(blended, 0.0), 1.0) * 255.0 + 0.5)

    return blender


def blend_channel(first: int, second: int, alpha: int, mode: BlendMode) -> int:
    """Blend one 0-255 channel of a cel (second) over the canvas (first).

    Modes without a blend function leave the canvas as is.
    """

    return _channel_blender(mode)(first, second, alpha)


def _paint(
    canvas: bytearray,
    canvas_size: Tuple[int, int],
    image: PIL.Image.Image,
    origin: Tuple[int, int],
    layer: Layer,
):
    canvas_w, canvas_h = canvas_size
    image_w, image_h = image.size
    pixels = image.tobytes()
    opacity, blend = layer.opacity, _channel_blender(layer.blend_mode)

    for row in range(image_h):
        y = origin[1] + row
        if not 0 <= y < canvas_h:
            continue
        for col in range(image_w):
            x = origin[0] + col
            if not 0 <= x < canvas_w:
                continue
            src = (row * image_w + col) * 4
            alpha = pixels[src + 3] * opacity // 255
            if alpha == 0:
                continue
            dst = (y * canvas_w + x) * 4
            for c in range(4):
                canvas[dst + c] = blend(canvas[dst + c], pixels[src + c], alpha)


def _composited_cels(sprite: Sprite, frame_index: int) -> List[Tuple[Cel, Layer]]:
    out = []
    for cel in sprite.frames[frame_index].cels:
        layer = sprite.layers[cel.layer_index]
        if layer.is_composited:
            out.append((cel, layer))
    return out


def frame_image(sprite: Sprite, frame_index: int) -> PIL.Image.Image:
    """Flatten one frame's visible layers onto a transparent canvas."""

    canvas = bytearray(sprite.pixel_count * 4)
    for cel, layer in _composited_cels(sprite, frame_index):
        image = sprite.cel_image(cel)
        _paint(canvas, sprite.size, image, (cel.x, cel.y), layer)
    return PIL.Image.frombytes("RGBA", sprite.size, bytes(canvas))


def frame_image_cropped(sprite: Sprite, frame_index: int) -> Optional[CroppedImage]:
    """Flatten one frame into an image just big enough for its cels.

    Returns None for an empty frame (no cels on composited layers).
    """

    cels = _composited_cels(sprite, frame_index)
    if not cels:
        return None

    boxes = []
    for cel, _ in cels:
        w, h = sprite.cel_image(cel).size
        boxes.append((cel.x, cel.y, cel.x + w, cel.y + h))
    left = min(b[0] for b in boxes)
    top = min(b[1] for b in boxes)
    size = (max(b[2] for b in boxes) - left, max(b[3] for b in boxes) - top)

    canvas = bytearray(size[0] * size[1] * 4)
    for cel, layer in cels:
        image = sprite.cel_image(cel)
        _paint(canvas, size, image, (cel.x - left, cel.y - top), layer)

    image = PIL.Image.frombytes("RGBA", size, bytes(canvas))
    return CroppedImage(image=image, x=left, y=top)


def frame_hitboxes(sprite: Sprite, frame_index: int) -> List[Hitbox]:
    # One box per cel on a hitbox layer, the cel's full image bounds
    hitboxes = []
    for cel in sprite.frames[frame_index].cels:
        if sprite.layers[cel.layer_index].is_hitbox:
            hitboxes.append(
                Hitbox(
                    offset=(cel.x, cel.y),
                    size=sprite.cel_image(cel).size,
                    layer_index=cel.layer_index,
                )
            )
    return hitboxes
