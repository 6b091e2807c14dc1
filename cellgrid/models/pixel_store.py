from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Sequence

from .errors import InvalidArgumentError, OutOfBoundsError
from .image_snapshot import ImageMetadata, ImageSnapshot, PixelValue

# Value reported for a channel the pixel entry does not carry (opaque / full intensity).
MISSING_CHANNEL_VALUE = 255


class PixelStore(ABC):
    """
    Decoded pixels of one image behind a uniform, bounds-checked API.

    Subclasses only decide where the pixels live (`_read_pixel` / `_write_pixel`);
    every statistic in `Cell` is written against the public methods below.
    Width, height and channel list are fixed at construction.
    No locking: callers must not run `set_channel_values_for_pixel` while
    another thread is reading the same store.
    """

    def __init__(self, width: int, height: int, channels: Sequence[str], fmt: str = "png"):
        if width < 0 or height < 0:
            raise InvalidArgumentError(f"Image dimensions must be >= 0, got {width}x{height}")
        if not channels:
            raise InvalidArgumentError("A pixel store needs at least one channel")
        self._width = int(width)
        self._height = int(height)
        self._channels = tuple(channels)
        self._format = fmt

    @staticmethod
    def _check_pixel_count(width: int, height: int, count: int) -> None:
        """Shorter pixel lists are allowed (the rest reads as missing); longer ones are not."""
        if count > width * height:
            raise InvalidArgumentError(f"{count} pixels do not fit a {width}x{height} image")

    # ---------- backend hooks ----------
    @abstractmethod
    def _read_pixel(self, x: int, y: int) -> Mapping[str, int | None]:
        """Raw entry for an in-bounds pixel; channels may be missing."""

    @abstractmethod
    def _write_pixel(self, x: int, y: int, values: Mapping[str, int]) -> None:
        """Merge already-validated channel values into an in-bounds pixel."""

    # ---------- metadata ----------
    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    def get_metadata(self) -> ImageMetadata:
        return ImageMetadata(format=self._format,
                             size=self._width * self._height * len(self._channels),
                             channels=self.channels)

    # ---------- bounds ----------
    def _check_bounds(self, x: int, y: int) -> None:
        if x < 0 or x >= self._width or y < 0 or y >= self._height:
            raise OutOfBoundsError(
                f"Pixel ({x}, {y}) is outside a {self._width}x{self._height} image")

    def _check_region(self, x_start: int, x_end: int, y_start: int, y_end: int) -> None:
        if x_start >= x_end or y_start >= y_end:
            raise OutOfBoundsError(
                f"Empty or inverted region x=[{x_start},{x_end}) y=[{y_start},{y_end})")
        if x_start < 0 or y_start < 0 or x_end > self._width or y_end > self._height:
            raise OutOfBoundsError(
                f"Region x=[{x_start},{x_end}) y=[{y_start},{y_end}) exceeds "
                f"a {self._width}x{self._height} image")

    def _fill(self, raw: Mapping[str, int | None]) -> PixelValue:
        out = {}
        for channel in self._channels:
            value = raw.get(channel)
            out[channel] = MISSING_CHANNEL_VALUE if value is None else int(value)
        return out

    # ---------- reads ----------
    def get_channel_values(self, x: int, y: int) -> PixelValue:
        """
        Returns {channel: value} for every channel of the store.
        Raises OutOfBoundsError for coordinates outside the image.
        """
        self._check_bounds(x, y)
        return self._fill(self._read_pixel(x, y))

    def get_channel_value(self, x: int, y: int, channel: str) -> int:
        if channel not in self._channels:
            raise InvalidArgumentError(f"Unknown channel {channel!r}; store has {self.channels}")
        return self.get_channel_values(x, y)[channel]

    def get_channel_values_for_region(
        self, x_start: int, x_end: int, y_start: int, y_end: int
    ) -> List[PixelValue]:
        """
        Row-major (y outer, x inner) pixel values of the half-open rectangle
        [x_start, x_end) x [y_start, y_end). The whole rectangle must lie inside
        the image; nothing is clamped.
        """
        self._check_region(x_start, x_end, y_start, y_end)
        return [
            self._fill(self._read_pixel(x, y))
            for y in range(y_start, y_end)
            for x in range(x_start, x_end)
        ]

    # ---------- writes ----------
    def _validate_values(self, values: Mapping[str, int]) -> Dict[str, int]:
        clean = {}
        for channel, value in values.items():
            if channel not in self._channels:
                raise InvalidArgumentError(
                    f"Unknown channel {channel!r}; store has {self.channels}")
            if value is None:
                continue
            if not 0 <= int(value) <= 255:
                raise InvalidArgumentError(f"Channel {channel!r} value {value} is not 8-bit")
            clean[channel] = int(value)
        return clean

    def set_channel_values_for_pixel(self, x: int, y: int, values: Mapping[str, int]) -> "PixelStore":
        """
        Merge `values` into pixel (x, y); channels not mentioned keep their value.
        Returns the store itself so calls can be chained.
        """
        self._check_bounds(x, y)
        self._write_pixel(x, y, self._validate_values(values))
        return self

    # ---------- snapshots ----------
    def to_snapshot(self) -> ImageSnapshot:
        pixels = (
            self.get_channel_values_for_region(0, self._width, 0, self._height)
            if self._width and self._height else []
        )
        return ImageSnapshot(self._width, self._height, pixels, self.get_metadata())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._width}x{self._height}, channels={self.channels})"


class InMemoryPixelStore(PixelStore):
    """Pixels kept as {linear index: {channel: value}}, index = y * width + x."""

    def __init__(self, width: int, height: int, channels: Sequence[str],
                 pixels: Sequence[Mapping[str, int]] | None = None, fmt: str = "png"):
        super().__init__(width, height, channels, fmt)
        pixels = pixels or []
        self._check_pixel_count(self._width, self._height, len(pixels))
        self._pixels: Dict[int, Dict[str, int]] = {i: dict(p) for i, p in enumerate(pixels)}

    @classmethod
    def from_snapshot(cls, snapshot: ImageSnapshot) -> "InMemoryPixelStore":
        return cls(snapshot.width, snapshot.height, snapshot.channels,
                   snapshot.pixels, snapshot.metadata.format)

    def _read_pixel(self, x, y):
        # Entries not populated yet read as fully opaque white.
        return self._pixels.get(y * self._width + x, {})

    def _write_pixel(self, x, y, values):
        self._pixels.setdefault(y * self._width + x, {}).update(values)
