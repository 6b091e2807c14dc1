from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List

PixelValue = Dict[str, int]

DEFAULT_CHANNELS = ["r", "g", "b", "a"]


@dataclass
class ImageMetadata:
    """
    Bookkeeping that travels with decoded pixels.
    `size` is the raw byte count of the decoded buffer (0 when unknown).
    """
    format: str = "png"
    size: int = 0
    channels: List[str] = field(default_factory=lambda: list(DEFAULT_CHANNELS))


@dataclass
class ImageSnapshot:
    """
    Plain hand-off object between the image loaders and the pixel stores.
    pixels: row-major list (index = y * width + x) of channel -> 0..255 mappings.
    """
    width: int
    height: int
    pixels: List[PixelValue]
    metadata: ImageMetadata = field(default_factory=ImageMetadata)

    @property
    def channels(self) -> List[str]:
        return self.metadata.channels
