# Grouping composited frames into named animations for an atlas packer

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

import attr
import PIL.Image  # type: ignore

from aseflat.compose import Hitbox, frame_hitboxes, frame_image_cropped
from aseflat.enums import AnimationDirection
from aseflat.errors import PackerError
from aseflat.model import Parameters, Sprite

logger = logging.getLogger(__name__)


class Packer(Protocol):
    """Texture atlas packer; returns where it placed the named image."""

    def pack(self, name: str, image: PIL.Image.Image) -> Any:
        ...


@attr.frozen
class ImageId:
    image_ref: str
    offset: Tuple[int, int]  # top-left displacement on the canvas


@attr.frozen
class AnimFrame:
    duration: int  # milliseconds
    image_id: Optional[ImageId]  # None for an empty frame
    hitboxes: List[Hitbox]


@attr.define
class Animation:
    name: str
    frames: List[AnimFrame]
    parameters: Parameters
    direction: AnimationDirection = AnimationDirection.FORWARD
    repeat: int = 0


@attr.define
class AnimationSet:
    canvas_size: Tuple[int, int]
    layer_parameters: List[Parameters]
    animations: Dict[str, Animation]
    placements: Dict[str, Any] = attr.Factory(dict)  # image_ref => packer result

    @staticmethod
    def from_sprite(sprite: Sprite, base_name: str, packer: Packer) -> "AnimationSet":
        placements: Dict[str, Any] = {}
        refs: Dict[Tuple[Tuple[int, int], bytes], str] = {}
        anim_frames = []
        for index, frame in enumerate(sprite.frames):
            image_id = None
            cropped = frame_image_cropped(sprite, index)
            if cropped:
                key = (cropped.image.size, cropped.image.tobytes())
                ref = refs.get(key)
                if not ref:
                    ref = refs[key] = f"{base_name}{index}"
                    try:
                        placements[ref] = packer.pack(ref, cropped.image)
                    except Exception as exc:
                        raise PackerError(f'Packing "{ref}"', exc) from exc
                image_id = ImageId(image_ref=ref, offset=cropped.offset)

            anim_frames.append(
                AnimFrame(
                    duration=frame.duration,
                    image_id=image_id,
                    hitboxes=frame_hitboxes(sprite, index),
                )
            )

        animations = {}
        for tag in sprite.tags:
            if tag.name in animations:
                logger.warning(f'Duplicate tag "{tag.name}", using the last one')
            animations[tag.name] = Animation(
                name=tag.name,
                frames=[
                    anim_frames[i] for i in tag.frame_range if i < len(anim_frames)
                ],
                parameters=tag.parameters,
                direction=tag.direction,
                repeat=tag.repeat,
            )

        logger.debug(
            f'"{base_name}": {len(refs)} unique images for'
            f" {len(anim_frames)} frames, {len(animations)} animations"
        )
        return AnimationSet(
            canvas_size=sprite.size,
            layer_parameters=[layer.parameters for layer in sprite.layers],
            animations=animations,
            placements=placements,
        )


def tl_offset_to_centered(
    offset: Tuple[int, int],
    sprite_size: Tuple[int, int],
    canvas_size: Tuple[int, int],
) -> Tuple[float, float]:
    """Convert a top-left canvas offset into an offset from canvas center.

    Odd canvas dimensions round the center up a pixel, so a centered
    sprite never lands on a half-pixel boundary.
    """

    center_x = (canvas_size[0] + canvas_size[0] % 2) / 2
    center_y = (canvas_size[1] + canvas_size[1] % 2) / 2
    sprite_x = offset[0] + sprite_size[0] / 2
    sprite_y = offset[1] + sprite_size[1] / 2
    return (center_x - sprite_x, center_y - sprite_y)
