# Little-endian scalar decoding for the .aseprite binary layout
#
# Every reader takes the remaining input and returns (value, rest), so
# decoders thread the cursor explicitly: "width, data = word(data)".

import struct
from typing import Tuple, TypeVar, Union

from aseflat.errors import ParseError, TruncatedDataError

Data = Union[bytes, bytearray, memoryview]
T = TypeVar("T")
Result = Tuple[T, memoryview]

_BYTE = struct.Struct("<B")
_WORD = struct.Struct("<H")
_SHORT = struct.Struct("<h")
_DWORD = struct.Struct("<I")
_LONG = struct.Struct("<i")
_RGB = struct.Struct("<BBB")
_RGBA = struct.Struct("<BBBB")


def _unpack(fmt: struct.Struct, data: Data, what: str):
    view = memoryview(data)
    if len(view) < fmt.size:
        raise TruncatedDataError(f"{what}: need {fmt.size}b, have {len(view)}b")
    return fmt.unpack_from(view), view[fmt.size :]


def byte(data: Data, what: str = "BYTE") -> Result[int]:
    (value,), rest = _unpack(_BYTE, data, what)
    return value, rest


def word(data: Data, what: str = "WORD") -> Result[int]:
    (value,), rest = _unpack(_WORD, data, what)
    return value, rest


def short(data: Data, what: str = "SHORT") -> Result[int]:
    (value,), rest = _unpack(_SHORT, data, what)
    return value, rest


def dword(data: Data, what: str = "DWORD") -> Result[int]:
    (value,), rest = _unpack(_DWORD, data, what)
    return value, rest


def long(data: Data, what: str = "LONG") -> Result[int]:
    (value,), rest = _unpack(_LONG, data, what)
    return value, rest


def fixed(data: Data, what: str = "FIXED") -> Result[float]:
    """16.16 fixed point, returned as a float."""
    value, rest = long(data, what)
    return value / 65536, rest


def take(data: Data, size: int, what: str = "bytes") -> Result[memoryview]:
    view = memoryview(data)
    if size < 0 or len(view) < size:
        raise TruncatedDataError(f"{what}: need {size}b, have {len(view)}b")
    return view[:size], view[size:]


def skip(data: Data, size: int, what: str = "reserved") -> memoryview:
    _, rest = take(data, size, what)
    return rest


def string(data: Data, what: str = "STRING") -> Result[str]:
    length, rest = word(data, f"{what} length")
    raw, rest = take(rest, length, what)
    try:
        return str(raw, "utf-8"), rest
    except UnicodeDecodeError as exc:
        raise ParseError(f"{what}: invalid UTF-8 ({exc})") from exc


def rgb(data: Data, what: str = "RGB") -> Result[Tuple[int, int, int]]:
    return _unpack(_RGB, data, what)


def rgba(data: Data, what: str = "RGBA") -> Result[Tuple[int, int, int, int]]:
    return _unpack(_RGBA, data, what)
