"""Tests for frame compositing, blend modes and hitboxes."""

import pytest

import ase_bytes as ab
from ase_bytes import BLUE, CLEAR, GREEN, RED
from aseflat.compose import (
    Hitbox,
    blend_channel,
    frame_hitboxes,
    frame_image,
    frame_image_cropped,
)
from aseflat.enums import BlendMode
from aseflat.loader import load_sprite


def one_frame_sprite(chunks, width=2, height=2):
    return load_sprite(ab.ase_file([ab.frame(chunks)], width=width, height=height))


class TestBlendChannel:
    """Tests for per-channel blend arithmetic."""

    @pytest.mark.parametrize(
        "mode,first,second,expected",
        [
            (BlendMode.NORMAL, 10, 200, 200),
            (BlendMode.MULTIPLY, 255, 128, 128),
            (BlendMode.MULTIPLY, 0, 128, 0),
            (BlendMode.SCREEN, 0, 128, 128),
            (BlendMode.SCREEN, 255, 0, 255),
            (BlendMode.DARKEN, 100, 50, 50),
            (BlendMode.LIGHTEN, 100, 50, 100),
            (BlendMode.ADDITION, 200, 100, 255),
            (BlendMode.SUBTRACT, 100, 200, 0),
            (BlendMode.DIFFERENCE, 50, 200, 150),
            (BlendMode.OVERLAY, 64, 128, 64),
            (BlendMode.OVERLAY, 255, 0, 255),
            (BlendMode.HUE, 77, 200, 77),
            (BlendMode(99), 77, 200, 77),
        ],
    )
    def test_opaque(self, mode, first, second, expected):
        assert blend_channel(first, second, 255, mode) == expected

    def test_zero_alpha_keeps_canvas(self):
        assert blend_channel(42, 200, 0, BlendMode.NORMAL) == 42

    def test_half_alpha(self):
        assert blend_channel(0, 255, 128, BlendMode.NORMAL) == 128

    def test_clamped_to_byte(self):
        for first in (0, 128, 255):
            for second in (0, 128, 255):
                for mode in BlendMode:
                    assert 0 <= blend_channel(first, second, 255, mode) <= 255


class TestFrameImage:
    """Tests for full-canvas compositing."""

    def test_normal_opaque_cel_wins(self, two_layer_sprite):
        image = frame_image(two_layer_sprite, 0)
        assert image.size == (2, 2)
        assert image.getpixel((0, 0)) == RED
        assert image.getpixel((1, 1)) == GREEN

    def test_idempotent(self, two_layer_sprite):
        first = frame_image(two_layer_sprite, 0).tobytes()
        second = frame_image(two_layer_sprite, 0).tobytes()
        assert first == second

    def test_layer_opacity(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("Bottom"),
                ab.layer_chunk("Top", opacity=128),
                ab.cel_chunk(0, 1, 1, ab.pixels(RED)),
                ab.cel_chunk(1, 1, 1, ab.pixels(GREEN)),
            ]
        )
        assert frame_image(sprite, 0).getpixel((0, 0)) == (127, 128, 0, 255)

    def test_cel_opacity_not_applied(self):
        sprite = one_frame_sprite(
            [ab.layer_chunk("A"), ab.cel_chunk(0, 1, 1, ab.pixels(RED), opacity=10)]
        )
        assert frame_image(sprite, 0).getpixel((0, 0)) == RED

    def test_multiply_layer(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("Bottom"),
                ab.layer_chunk("Top", blend_mode=BlendMode.MULTIPLY),
                ab.cel_chunk(0, 1, 1, ab.pixels((255, 255, 0, 255))),
                ab.cel_chunk(1, 1, 1, ab.pixels((0, 255, 255, 255))),
            ]
        )
        assert frame_image(sprite, 0).getpixel((0, 0)) == (0, 255, 0, 255)

    def test_transparent_pixels_skipped(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("Bottom"),
                ab.layer_chunk("Top", blend_mode=BlendMode.ADDITION),
                ab.cel_chunk(0, 1, 1, ab.pixels(RED)),
                ab.cel_chunk(1, 1, 1, ab.pixels((0, 255, 0, 0))),
            ]
        )
        assert frame_image(sprite, 0).getpixel((0, 0)) == RED

    def test_hidden_layers_skipped(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("Shown"),
                ab.layer_chunk("Hidden", flags=0),
                ab.layer_chunk("Tagged"),
                ab.user_data_chunk("invisible"),
                ab.cel_chunk(0, 1, 1, ab.pixels(RED)),
                ab.cel_chunk(1, 1, 1, ab.pixels(GREEN)),
                ab.cel_chunk(2, 1, 1, ab.pixels(BLUE)),
            ]
        )
        assert frame_image(sprite, 0).getpixel((0, 0)) == RED

    def test_clipped_to_canvas(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("A"),
                ab.cel_chunk(0, 2, 2, ab.pixels(RED, RED, RED, GREEN), x=-1, y=-1),
            ]
        )
        image = frame_image(sprite, 0)
        assert image.getpixel((0, 0)) == GREEN
        assert image.getpixel((1, 1)) == CLEAR

    def test_every_pixel_matches_blend_channel(self):
        grid = [(x, y) for y in range(16) for x in range(16)]
        bottom = [(x * 16, y * 16, 128, 255) for x, y in grid]
        top = [(255 - x * 8, 200, y * 16, x * 16) for x, y in grid]
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("Bottom"),
                ab.layer_chunk("Top", blend_mode=BlendMode.SCREEN, opacity=200),
                ab.cel_chunk(0, 16, 16, ab.pixels(*bottom)),
                ab.cel_chunk(1, 16, 16, ab.pixels(*top)),
            ],
            width=16,
            height=16,
        )
        pixels = list(frame_image(sprite, 0).getdata())
        for first, second, out in zip(bottom, top, pixels):
            alpha = second[3] * 200 // 255
            if alpha == 0:
                assert out == first
                continue
            expected = tuple(
                blend_channel(f, s, alpha, BlendMode.SCREEN)
                for f, s in zip(first, second)
            )
            assert out == expected

    def test_empty_frame_is_transparent_canvas(self):
        sprite = one_frame_sprite(
            [ab.layer_chunk("Hidden", flags=0), ab.cel_chunk(0, 1, 1, ab.pixels(RED))]
        )
        image = frame_image(sprite, 0)
        assert image.size == (2, 2)
        assert image.tobytes() == bytes(16)


class TestFrameImageCropped:
    """Tests for compositing trimmed to the cels' bounding box."""

    def test_bounding_box(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("A"),
                ab.layer_chunk("B"),
                ab.cel_chunk(0, 2, 2, ab.pixels(RED, RED, RED, RED), x=1, y=1),
                ab.cel_chunk(1, 1, 1, ab.pixels(GREEN), x=2, y=3),
            ],
            width=4,
            height=4,
        )
        cropped = frame_image_cropped(sprite, 0)
        assert cropped.offset == (1, 1)
        assert cropped.image.size == (2, 3)
        assert cropped.image.getpixel((0, 0)) == RED
        assert cropped.image.getpixel((1, 2)) == GREEN
        assert cropped.image.getpixel((0, 2)) == CLEAR

    def test_negative_offset(self):
        sprite = one_frame_sprite(
            [ab.layer_chunk("A"), ab.cel_chunk(0, 1, 1, ab.pixels(RED), x=-1, y=-2)]
        )
        cropped = frame_image_cropped(sprite, 0)
        assert (cropped.x, cropped.y) == (-1, -2)
        assert cropped.image.getpixel((0, 0)) == RED

    def test_empty_frame(self):
        sprite = one_frame_sprite(
            [ab.layer_chunk("Hidden", flags=0), ab.cel_chunk(0, 1, 1, ab.pixels(RED))]
        )
        assert frame_image_cropped(sprite, 0) is None

    def test_no_cels(self):
        assert frame_image_cropped(one_frame_sprite([ab.layer_chunk("A")]), 0) is None


class TestHitboxes:
    """Tests for hitboxes taken from hitbox layers."""

    def test_hitbox_per_cel(self):
        sprite = one_frame_sprite(
            [
                ab.layer_chunk("Art"),
                ab.layer_chunk("Box"),
                ab.user_data_chunk("hitbox"),
                ab.cel_chunk(0, 1, 1, ab.pixels(RED)),
                ab.cel_chunk(1, 2, 3, ab.pixels(*[GREEN] * 6), x=1, y=2),
            ],
            width=4,
            height=8,
        )
        assert frame_hitboxes(sprite, 0) == [
            Hitbox(offset=(1, 2), size=(2, 3), layer_index=1)
        ]

    def test_no_hitbox_layers(self, two_layer_sprite):
        assert frame_hitboxes(two_layer_sprite, 0) == []
