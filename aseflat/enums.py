# Enumerations from the .aseprite format that must tolerate unknown values

import enum


class OpenEnum(enum.IntEnum):
    """IntEnum that maps unlisted raw values to an UNKNOWN_<n> pseudo-member.

    Newer editor versions add values; a reader must carry them through
    instead of refusing the file.
    """

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        member = int.__new__(cls, value)
        member._name_ = f"UNKNOWN_{value}"
        member._value_ = value
        return member

    @property
    def known(self) -> bool:
        return self._name_ in type(self).__members__


class ColorDepth(OpenEnum):
    INDEXED = 8
    GRAYSCALE = 16
    RGBA = 32

    @property
    def bytes_per_pixel(self) -> int:
        if not self.known:
            raise ValueError(f"No pixel size for color depth {self.value}")
        return self.value // 8


class BlendMode(OpenEnum):
    NORMAL = 0
    MULTIPLY = 1
    SCREEN = 2
    OVERLAY = 3
    DARKEN = 4
    LIGHTEN = 5
    COLOR_DODGE = 6
    COLOR_BURN = 7
    HARD_LIGHT = 8
    SOFT_LIGHT = 9
    DIFFERENCE = 10
    EXCLUSION = 11
    HUE = 12
    SATURATION = 13
    COLOR = 14
    LUMINOSITY = 15
    ADDITION = 16
    SUBTRACT = 17
    DIVIDE = 18


class AnimationDirection(OpenEnum):
    FORWARD = 0
    REVERSE = 1
    PING_PONG = 2
    PING_PONG_REVERSE = 3


class LayerType(OpenEnum):
    NORMAL = 0
    GROUP = 1
    TILEMAP = 2


class ChunkType(OpenEnum):
    OLD_PALETTE_0004 = 0x0004
    OLD_PALETTE_0011 = 0x0011
    LAYER = 0x2004
    CEL = 0x2005
    CEL_EXTRA = 0x2006
    COLOR_PROFILE = 0x2007
    EXTERNAL_FILES = 0x2008
    MASK = 0x2016
    PATH = 0x2017
    TAGS = 0x2018
    PALETTE = 0x2019
    USER_DATA = 0x2020
    SLICE = 0x2022
    TILESET = 0x2023


class LayerFlags(enum.IntFlag):
    VISIBLE = 1
    EDITABLE = 2
    LOCK_MOVEMENT = 4
    BACKGROUND = 8
    PREFER_LINKED_CELS = 16
    COLLAPSED = 32
    REFERENCE = 64
