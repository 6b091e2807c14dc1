from __future__ import annotations
from typing import List, Sequence

import numpy as np

from .errors import InvalidArgumentError
from .image_snapshot import ImageSnapshot
from .pixel_store import MISSING_CHANNEL_VALUE, PixelStore


class ArrayPixelStore(PixelStore):
    """
    Pixel store over a decoded image buffer.
    pixels: np.ndarray of shape (H, W, C) or (H, W), dtype uint8, channel order = `channels`.
    The array is used in place, not copied.
    """

    def __init__(self, pixels: np.ndarray, channels: Sequence[str] | None = None, fmt: str = "png"):
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3:
            raise InvalidArgumentError(f"Expected an (H, W, C) array, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise InvalidArgumentError(f"Expected uint8 pixels, got {pixels.dtype}")

        n_channels = pixels.shape[2]
        if channels is None:
            channels = {1: ["l"], 3: ["r", "g", "b"], 4: ["r", "g", "b", "a"]}.get(n_channels)
            if channels is None:
                raise InvalidArgumentError(f"Cannot guess channel names for {n_channels} channels")
        if len(channels) != n_channels:
            raise InvalidArgumentError(
                f"{len(channels)} channel names given for a {n_channels}-channel array")

        height, width = pixels.shape[:2]
        super().__init__(width, height, channels, fmt)
        self.pixels = pixels

    @classmethod
    def from_snapshot(cls, snapshot: ImageSnapshot) -> "ArrayPixelStore":
        cls._check_pixel_count(snapshot.width, snapshot.height, len(snapshot.pixels))
        channels = snapshot.channels
        arr = np.full((snapshot.height, snapshot.width, len(channels)),
                      MISSING_CHANNEL_VALUE, dtype=np.uint8)
        flat = arr.reshape(-1, len(channels))
        for i, pixel in enumerate(snapshot.pixels):
            for c, channel in enumerate(channels):
                value = pixel.get(channel)
                if value is not None:
                    flat[i, c] = value
        return cls(arr, channels, snapshot.metadata.format)

    def _read_pixel(self, x, y):
        return dict(zip(self._channels, self.pixels[y, x].tolist()))

    def _write_pixel(self, x, y, values):
        for channel, value in values.items():
            self.pixels[y, x, self._channels.index(channel)] = value

    def get_channel_values_for_region(self, x_start, x_end, y_start, y_end) -> List[dict]:
        # Slice once instead of reading pixel by pixel; order stays row-major.
        self._check_region(x_start, x_end, y_start, y_end)
        block = self.pixels[y_start:y_end, x_start:x_end].reshape(-1, len(self._channels))
        return [dict(zip(self._channels, row)) for row in block.tolist()]
