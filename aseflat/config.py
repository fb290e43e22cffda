# Export settings for the command line tools (the library reads no config)

from pathlib import Path
from typing import Optional, Union

import attr
import cattr
import cattr.preconf.tomlkit
import tomlkit


@attr.define
class ExportConfig:
    strict: bool = False  # require a color profile chunk
    crop: bool = False  # trim frames to their cels
    scale: int = 1  # nearest-neighbor upscale factor
    skip_empty: bool = True  # don't write frames with nothing visible
    debug: bool = False


def load_config(filename: Optional[Union[str, Path]] = None) -> ExportConfig:
    """Read the [export] table of a TOML file (defaults if no file given)."""

    if filename is None:
        return ExportConfig()
    toml_converter = cattr.preconf.tomlkit.make_converter()
    with open(filename) as file:
        toml_data = tomlkit.load(file)
    return toml_converter.structure({**toml_data.get("export", {})}, ExportConfig)
