from __future__ import annotations
import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List

from .errors import EmptyRegionError, InvalidArgumentError, OutOfBoundsError
from .image_snapshot import ImageMetadata, ImageSnapshot, PixelValue
from .pixel_store import PixelStore

RGB_CHANNELS = ("r", "g", "b")

# ITU-R BT.601 luma weights.
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def round_half_away(value: float) -> int:
    """round() that sends .5 away from zero instead of to the even neighbour."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def quantize(value: float, sensitivity: float):
    return round_half_away(value / sensitivity) * sensitivity


def shannon_entropy(keys: Iterable[Hashable]) -> float:
    """-sum(p * log2 p) over the frequency of each distinct key; 0.0 when empty."""
    counts = Counter(keys)
    total = sum(counts.values())
    if total == 0:
        return 0.0
    entropy = 0.0
    for count in counts.values():
        p = count / total
        entropy -= p * math.log2(p)
    return entropy


@dataclass
class Rectangle:
    x_min: int
    x_max: int
    y_min: int
    y_max: int
    width: int
    height: int


@dataclass(frozen=True, eq=False, repr=False)
class Cell:
    """
    Rectangular window onto a PixelStore.

    The cell borrows the store; it never copies pixels and never caches
    statistics, so every call re-reads the store's current contents.
    Equality is identity: two cells over the same rectangle are distinct.
    """
    x: int
    y: int
    width: int
    height: int
    store: PixelStore

    def __post_init__(self):
        if min(self.x, self.y, self.width, self.height) < 0:
            raise InvalidArgumentError(
                f"Cell geometry must be non-negative: ({self.x}, {self.y}, {self.width}, {self.height})")
        if self.x + self.width > self.store.width or self.y + self.height > self.store.height:
            raise OutOfBoundsError(
                f"Cell at ({self.x}, {self.y}) sized {self.width}x{self.height} does not fit "
                f"a {self.store.width}x{self.store.height} image")

    @property
    def area(self) -> int:
        return self.width * self.height

    # ---------- private helpers ----------
    def _pixels(self) -> List[PixelValue]:
        if self.area == 0:
            return []
        return self.store.get_channel_values_for_region(
            self.x, self.x + self.width, self.y, self.y + self.height)

    def _require_channels(self, channels: Iterable[str]) -> None:
        missing = [c for c in channels if c not in self.store.channels]
        if missing:
            raise InvalidArgumentError(
                f"Colour statistics need channels {missing}; store has {self.store.channels}")

    @staticmethod
    def _check_sensitivity(color_sensitivity: float) -> None:
        if color_sensitivity <= 0:
            raise InvalidArgumentError(f"color_sensitivity must be > 0, got {color_sensitivity}")

    # ---------- statistics ----------
    def has_pixels(self) -> bool:
        """True as soon as one pixel of the cell has a red channel."""
        if "r" not in self.store.channels:
            return False
        for y in range(self.y, self.y + self.height):
            for x in range(self.x, self.x + self.width):
                if self.store.get_channel_values(x, y).get("r") is not None:
                    return True
        return False

    def get_average_color(self) -> Dict[str, int]:
        """
        Mean red, green and blue over the cell, each rounded to the nearest integer.

        Raises:
            EmptyRegionError: the cell has zero area.
        """
        self._require_channels(RGB_CHANNELS)
        pixels = self._pixels()
        if not pixels:
            raise EmptyRegionError(f"Cannot average an empty cell at ({self.x}, {self.y})")
        count = len(pixels)
        return {
            c: round_half_away(sum(p[c] for p in pixels) / count)
            for c in RGB_CHANNELS
        }

    def get_entropy_with_color(self, color_sensitivity: float = 1) -> float:
        """
        Shannon entropy (bits) of the quantized (r, g, b) colours in the cell.
        Larger sensitivities merge neighbouring colours into one bucket.
        """
        self._check_sensitivity(color_sensitivity)
        self._require_channels(RGB_CHANNELS)
        return shannon_entropy(
            tuple(quantize(p[c], color_sensitivity) for c in RGB_CHANNELS)
            for p in self._pixels()
        )

    def get_entropy_greyscale(self, color_sensitivity: float = 1) -> float:
        """Shannon entropy (bits) of the quantized BT.601 luma values in the cell."""
        self._check_sensitivity(color_sensitivity)
        self._require_channels(RGB_CHANNELS)
        wr, wg, wb = LUMA_WEIGHTS
        return shannon_entropy(
            quantize(wr * p["r"] + wg * p["g"] + wb * p["b"], color_sensitivity)
            for p in self._pixels()
        )

    def get_min_color(self, channel: str) -> int:
        return self._channel_extreme(channel, min)

    def get_max_color(self, channel: str) -> int:
        return self._channel_extreme(channel, max)

    def _channel_extreme(self, channel: str, pick) -> int:
        if channel not in RGB_CHANNELS:
            raise InvalidArgumentError(f"channel must be one of {RGB_CHANNELS}, got {channel!r}")
        self._require_channels([channel])
        pixels = self._pixels()
        if not pixels:
            raise EmptyRegionError(f"Cell at ({self.x}, {self.y}) has no pixels")
        return pick(p[channel] for p in pixels)

    # ---------- geometry / raw access ----------
    def get_rgb_values_for_coordinates(self, x: int, y: int) -> PixelValue:
        """
        Channel values at (x, y). NOTE: x and y are image coordinates, not
        offsets inside the cell; add the cell origin yourself.
        """
        return self.store.get_channel_values(x, y)

    def get_rectangle(self) -> Rectangle:
        return Rectangle(
            x_min=self.x,
            x_max=self.x + self.width,
            y_min=self.y,
            y_max=self.y + self.height,
            width=self.width,
            height=self.height,
        )

    def get_image_data(self) -> ImageSnapshot:
        """The cell's pixels as a standalone image, e.g. for writing a tile to disk."""
        channels = self.store.channels
        return ImageSnapshot(
            width=self.width,
            height=self.height,
            pixels=self._pixels(),
            metadata=ImageMetadata(format="png", size=self.area * len(channels), channels=channels),
        )

    def __repr__(self) -> str:
        return f"Cell(x={self.x}, y={self.y}, width={self.width}, height={self.height})"
