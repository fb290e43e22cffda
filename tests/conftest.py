"""Pytest configuration and fixtures."""

import pytest

import ase_bytes as ab
from ase_bytes import GREEN, RED
from aseflat.loader import load_sprite
from aseflat.model import Sprite


@pytest.fixture
def two_layer_bytes() -> bytes:
    """2x2 RGBA sprite, one frame: red background, green cel on top."""
    return ab.ase_file(
        [
            ab.frame(
                [
                    ab.layer_chunk("Background"),
                    ab.layer_chunk("Top"),
                    ab.cel_chunk(0, 2, 2, ab.pixels(RED, RED, RED, RED)),
                    ab.cel_chunk(1, 1, 1, ab.pixels(GREEN), x=1, y=1),
                ]
            )
        ],
        width=2,
        height=2,
    )


@pytest.fixture
def two_layer_sprite(two_layer_bytes) -> Sprite:
    return load_sprite(two_layer_bytes)
