# Pillow plugin so PIL.Image.open() reads .ase/.aseprite files (first frame)

from typing import IO, Optional

import PIL.Image  # type: ignore

from aseflat import compose, loader


def image_from_ase(data: bytes, frame_index: int = 0) -> PIL.Image.Image:
    sprite = loader.load_sprite(data)
    return compose.frame_image(sprite, frame_index)


def _accept(prefix: bytes) -> bool:
    return prefix[4:6] == b"\xe0\xa5"  # header magic 0xA5E0


def open_factory(fp: Optional[IO], filename: Optional[str]):
    if fp:
        return image_from_ase(fp.read())
    else:
        assert filename is not None
        with open(filename, "rb") as fp:
            return image_from_ase(fp.read())


PIL.Image.register_open("ASE", open_factory, _accept)
PIL.Image.register_extension("ASE", ".ase")
PIL.Image.register_extension("ASE", ".aseprite")
