#!/usr/bin/env python3

import argparse
import logging
from pathlib import Path

import PIL.Image  # type: ignore

from aseflat import compose, config, loader, logging_setup

parser = argparse.ArgumentParser()
parser.add_argument("ase_file", help="File to convert")
parser.add_argument("out_dir", nargs="?", help="Directory for PNG frames")
parser.add_argument("--config", help="TOML file with an [export] table")
parser.add_argument("--crop", action="store_true", help="Trim frames to cels")
parser.add_argument("--scale", type=int, help="Upscale factor")
parser.add_argument("--debug", action="store_true", help="Enable debug logging")
args = parser.parse_args()

export = config.load_config(args.config)
export.crop = export.crop or args.crop
export.scale = args.scale or export.scale
if args.debug or export.debug:
    logging_setup.enable_debug()

ase_path = Path(args.ase_file)
out_dir = Path(args.out_dir) if args.out_dir else ase_path.parent
out_dir.mkdir(parents=True, exist_ok=True)

print(f"Reading: {ase_path}")
sprite = loader.load_sprite_file(ase_path, strict=export.strict)

for index in range(len(sprite.frames)):
    if export.crop:
        cropped = compose.frame_image_cropped(sprite, index)
        if not cropped:
            if export.skip_empty:
                logging.info(f"Frame #{index} is empty, skipping")
                continue
            image = compose.frame_image(sprite, index)
        else:
            image = cropped.image
            logging.info(f"Frame #{index} offset {cropped.offset}")
    else:
        image = compose.frame_image(sprite, index)

    if export.scale > 1:
        w, h = image.size
        size = (w * export.scale, h * export.scale)
        image = image.resize(size, resample=PIL.Image.NEAREST)

    out_file = out_dir / f"{ase_path.stem}_{index}.png"
    print(f"Writing: {out_file}")
    image.save(out_file)
