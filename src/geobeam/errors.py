"""Error types raised by the generation pipeline.

Each fatal error carries the stage it was raised from so front-ends can
report which part of the run failed. Unresolved node references are not
errors and never raise.
"""

from typing import Optional


class GenerationError(Exception):
    """Base class for all pipeline failures."""

    stage = "generate"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class TileFetchFailure(GenerationError):
    """An elevation tile could not be downloaded.

    Recoverable per tile when placeholder substitution is enabled.
    """

    stage = "fetch_tiles"

    def __init__(self, message: str, tile=None, stage: Optional[str] = None):
        super().__init__(message, stage)
        self.tile = tile


class RasterDecodeFailure(GenerationError):
    """Elevation tile bytes are not a decodable raster."""

    stage = "decode"


class ElementFetchFailure(GenerationError):
    """The Overpass request failed or returned a non-JSON body."""

    stage = "fetch_osm"


class ElementParseFailure(GenerationError):
    """The element collection is malformed."""

    stage = "parse"


class PackagingFailure(GenerationError):
    """Writing the output tree or archive failed."""

    stage = "package"
