from __future__ import annotations

from PIL import Image as PILImage

from .errors import InvalidArgumentError
from .image_snapshot import ImageSnapshot
from .pixel_store import MISSING_CHANNEL_VALUE, PixelStore

SUPPORTED_MODES = {"RGBA", "RGB", "L", "LA"}


class PILPixelStore(PixelStore):
    """
    Pixel store drawing straight on a Pillow image through its pixel-access object.
    Channel names are the lower-cased PIL bands ("r", "g", "b", "a", "l").
    """

    def __init__(self, image: PILImage.Image, fmt: str | None = None):
        if image.mode not in SUPPORTED_MODES:
            raise InvalidArgumentError(
                f"Unsupported PIL mode {image.mode!r}; convert to one of {sorted(SUPPORTED_MODES)}")
        width, height = image.size
        channels = [band.lower() for band in image.getbands()]
        super().__init__(width, height, channels, (fmt or image.format or "png").lower())
        self.image = image
        self._access = image.load()

    @classmethod
    def from_snapshot(cls, snapshot: ImageSnapshot) -> "PILPixelStore":
        mode = "".join(c.upper() for c in snapshot.channels)
        if mode not in SUPPORTED_MODES:
            raise InvalidArgumentError(f"Channels {snapshot.channels} have no PIL mode")
        cls._check_pixel_count(snapshot.width, snapshot.height, len(snapshot.pixels))
        image = PILImage.new(mode, (snapshot.width, snapshot.height))
        data = []
        for i in range(snapshot.width * snapshot.height):
            pixel = snapshot.pixels[i] if i < len(snapshot.pixels) else {}
            row = tuple(
                MISSING_CHANNEL_VALUE if pixel.get(c) is None else int(pixel[c])
                for c in snapshot.channels
            )
            data.append(row if len(row) > 1 else row[0])
        image.putdata(data)
        return cls(image, snapshot.metadata.format)

    def _read_pixel(self, x, y):
        value = self._access[x, y]
        if not isinstance(value, tuple):
            value = (value,)
        return dict(zip(self._channels, value))

    def _write_pixel(self, x, y, values):
        merged = self._read_pixel(x, y)
        merged.update(values)
        row = tuple(merged[c] for c in self._channels)
        self._access[x, y] = row if len(row) > 1 else row[0]
