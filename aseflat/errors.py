# Exception hierarchy for .aseprite decoding and compositing


class AsepriteError(Exception):
    pass


# Structural errors: the bytes are not a valid .aseprite file


class ParseError(AsepriteError):
    pass


class TruncatedDataError(ParseError):
    pass


class TruncatedFileError(ParseError):
    pass


class InvalidMagicError(ParseError):
    pass


class InvalidFrameMagicError(ParseError):
    pass


class InvalidFrameSizeError(ParseError):
    pass


class InvalidChunkSizeError(ParseError):
    pass


class InvalidPaletteRangeError(ParseError):
    pass


class InvalidFrameRangeError(ParseError):
    pass


class InvalidCelTypeError(ParseError):
    pass


class InvalidTilesetFlagsError(ParseError):
    pass


# Semantic errors: valid bytes, but an unusable or unsupported sprite


class SpriteError(AsepriteError):
    pass


class MissingChunkError(SpriteError):
    pass


class DuplicateChunkError(SpriteError):
    pass


class UnresolvedLinkError(SpriteError):
    pass


class UnsupportedFeatureError(SpriteError):
    pass


# Image resolution errors: pixel data can't be turned into RGBA


class ImageError(AsepriteError):
    pass


class InvalidImageDataError(ImageError):
    pass


class DecompressError(ImageError):
    pass


class UnsupportedColorDepthError(ImageError):
    pass


class PackerError(AsepriteError):
    def __init__(self, message, exc=None):
        message += ": " + (str(exc) or type(exc).__qualname__) if exc else ""
        Exception.__init__(self, message)
