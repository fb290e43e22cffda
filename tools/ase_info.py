#!/usr/bin/env python3

import argparse
from typing import Dict, Iterable

from aseflat import chunks, loader, logging_setup, raw_file
from aseflat.enums import LayerFlags

parser = argparse.ArgumentParser()
parser.add_argument("ase_file", help="File to describe")
parser.add_argument("--frame", type=int, help="Only dump this frame (0-based)")
parser.add_argument("--sprite", action="store_true", help="Also dump the model")
parser.add_argument("--debug", action="store_true", help="Enable debug logging")
args = parser.parse_args()
if args.debug:
    logging_setup.enable_debug()


def decode_flags(flags: int, names: Dict[int, str]):
    found = [name for f, name in names.items() if flags & f]
    leftover = flags & ~sum(names.keys())
    return ",".join(found + ([f"0x{leftover:x}"] if leftover else []))


def flag_names(flags: Iterable[LayerFlags]):
    return {int(f): (f.name or "?").lower() for f in flags}


def describe(chunk: chunks.Chunk) -> Iterable[str]:
    if isinstance(chunk, chunks.PaletteChunk):
        named = sum(1 for e in chunk.entries if e.name)
        span = f"#{chunk.first_index}-#{chunk.last_index}"
        yield f"{span} of {chunk.size} ({named} named)"

    elif isinstance(chunk, chunks.OldPaletteChunk):
        yield f"{sum(len(p.colors) for p in chunk.packets)} legacy colors"

    elif isinstance(chunk, chunks.LayerChunk):
        yield (
            f"{'  ' * chunk.child_level}\"{chunk.name}\" {chunk.layer_type.name}"
            f" {chunk.blend_mode.name}@{chunk.opacity}"
            f" [{decode_flags(chunk.flags, flag_names(LayerFlags))}]"
        )
        if chunk.tileset_index is not None:
            yield f"tileset #{chunk.tileset_index}"

    elif isinstance(chunk, chunks.CelChunk):
        content = chunk.content
        place = f"L{chunk.layer_index} @({chunk.x},{chunk.y}) z={chunk.z_index}"
        if isinstance(content, chunks.Image):
            kind = "zlib" if content.compressed else "raw"
            size = f"{content.width}x{content.height}"
            yield f"{place} {size} {kind} {len(content.data)}b"
        elif isinstance(content, chunks.LinkedCel):
            yield f"{place} -> frame #{content.frame_position}"
        elif isinstance(content, chunks.CompressedTilemap):
            yield (
                f"{place} tilemap {content.width}x{content.height}"
                f" {content.bits_per_tile}bpt {len(content.data)}b"
            )

    elif isinstance(chunk, chunks.CelExtraChunk):
        yield (
            f"bounds {chunk.width:.2f}x{chunk.height:.2f}"
            f" @({chunk.x:.2f},{chunk.y:.2f}) flags=0x{chunk.flags:x}"
        )

    elif isinstance(chunk, chunks.ColorProfileChunk):
        kind = {0: "none", 1: "sRGB", 2: "ICC"}.get(chunk.profile_type, "?")
        icc = f" {len(chunk.icc)}b" if chunk.icc else ""
        yield f"{kind} gamma={chunk.gamma:.3f}{icc}"

    elif isinstance(chunk, chunks.TagsChunk):
        for tag in chunk.tags:
            repeat = f"x{tag.repeat}" if tag.repeat else "loop"
            yield (
                f"\"{tag.name}\" #{tag.from_frame}-#{tag.to_frame}"
                f" {tag.direction.name} {repeat}"
            )

    elif isinstance(chunk, chunks.UserDataChunk):
        if chunk.text is not None:
            yield f"text={chunk.text!r}"
        if chunk.color is not None:
            yield f"color={chunk.color}"
        if chunk.properties is not None:
            yield f"properties {len(chunk.properties)}b"

    elif isinstance(chunk, chunks.SliceChunk):
        yield f"\"{chunk.name}\" {len(chunk.keys)} keys"

    elif isinstance(chunk, chunks.ExternalFilesChunk):
        for file in chunk.files:
            yield f"#{file.id} type={file.file_type} \"{file.name}\""

    elif isinstance(chunk, chunks.TilesetChunk):
        yield (
            f"#{chunk.id} \"{chunk.name}\" {chunk.number_of_tiles} tiles"
            f" {chunk.width}x{chunk.height} base={chunk.base_index}"
        )

    elif isinstance(chunk, chunks.UnsupportedChunk):
        yield f"type 0x{chunk.chunk_type:04X} {len(chunk.data)}b"


with open(args.ase_file, "rb") as ase_file:
    data = ase_file.read()

raw = raw_file.parse_raw_file(data)
header = raw.header
print(
    f"=== {args.ase_file}: {header.width}x{header.height}"
    f" {header.color_depth.name} {header.frames} frames"
    f" (pixel {header.pixel_width}:{header.pixel_height},"
    f" transparent #{header.transparent_index},"
    f" flags 0x{header.flags:x}, {header.file_size}b)"
)

for fi, frame in enumerate(raw.frames):
    if args.frame is not None and fi != args.frame:
        continue
    print(f"--- Frame #{fi}: {frame.duration}ms, {len(frame.chunks)} chunks")
    for ci, chunk in enumerate(frame.chunks):
        print(f"  {ci:3d} {type(chunk).__name__}")
        for line in describe(chunk):
            print(f"        {line}")

if args.sprite:
    sprite = loader.load_sprite(data)
    print("=== Sprite")
    for li, layer in enumerate(sprite.layers):
        shown = "shown" if layer.is_composited else "hidden"
        print(f"  L{li} \"{layer.name}\" {shown} {layer.parameters or ''}")
    for tag in sprite.tags:
        frames = list(tag.frame_range)
        print(f"  Tag \"{tag.name}\" frames {frames} {tag.parameters or ''}")
    cel_count = sum(len(f.cels) for f in sprite.frames)
    print(f"  {len(sprite.images)} images for {cel_count} cels")
