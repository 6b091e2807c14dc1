from pathlib import Path
from typing import Union, Iterable, List, Iterator
import logging
import os
import signal
import threading

import cv2
import numpy as np
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..models.array_pixel_store import ArrayPixelStore
from ..models.errors import InvalidArgumentError
from ..models.image_snapshot import ImageSnapshot
from ..models.pil_pixel_store import PILPixelStore
from ..models.pixel_store import PixelStore

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

_PIL_MODES = {("r", "g", "b", "a"): "RGBA", ("r", "g", "b"): "RGB", ("l",): "L", ("l", "a"): "LA"}


class ImageRepository:
    """
    Handles file I/O between image files on disk and pixel stores.
    No statistics here.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp,.webp")
        self.VALID_EXTS = {ext.strip() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def load(path: Union[str, Path], timeout: int = 5) -> ArrayPixelStore:
        """
        Decode an image file into an ArrayPixelStore with RGB(A) channel order.
        Greyscale files keep a single "l" channel.
        """
        path = Path(path)

        # ─── timeout wrapper (5 s default, POSIX only) ─────────────────────
        def _handler(signum, frame):
            raise TimeoutError(f"cv2.imread timed-out after {timeout}s: {path}")

        # signal handlers can only be installed from the main thread
        use_alarm = (hasattr(signal, "SIGALRM")
                     and threading.current_thread() is threading.main_thread())
        if use_alarm:
            signal.signal(signal.SIGALRM, _handler)
            signal.alarm(timeout)
        try:
            arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        finally:
            if use_alarm:
                signal.alarm(0)  # always disarm
        # ──────────────────────────────────────────────────────────────────

        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        if arr.dtype == np.uint16:
            # 16-bit PNG/TIFF: keep the high byte
            arr = (arr >> 8).astype(np.uint8)
        elif arr.dtype != np.uint8:
            raise InvalidArgumentError(f"Unsupported pixel type {arr.dtype} in {path}")

        if arr.ndim == 2:
            channels = ["l"]
        elif arr.shape[2] == 4:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
            channels = ["r", "g", "b", "a"]
        else:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)
            channels = ["r", "g", "b"]

        fmt = path.suffix.lstrip(".").lower() or "png"
        logger.debug(f"Loaded {path} ({arr.shape[1]}x{arr.shape[0]}, channels={channels})")
        return ArrayPixelStore(np.ascontiguousarray(arr), channels, fmt)

    @staticmethod
    def load_pil(path: Union[str, Path]) -> PILPixelStore:
        """Open a file with Pillow and keep the PIL image as pixel storage."""
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        with PILImage.open(path) as pil_img:
            fmt = pil_img.format
            if pil_img.mode not in ("RGBA", "RGB", "L", "LA"):
                pil_img = pil_img.convert("RGBA")
            else:
                pil_img = pil_img.copy()
        return PILPixelStore(pil_img, fmt)

    @staticmethod
    def to_pil_image(image: Union[PixelStore, ImageSnapshot]) -> PILImage.Image:
        if isinstance(image, PILPixelStore):
            return image.image
        if isinstance(image, ArrayPixelStore):
            arr = image.pixels
            if arr.shape[2] == 1:
                arr = arr[:, :, 0]
            return PILImage.fromarray(np.ascontiguousarray(arr))

        snapshot = image.to_snapshot() if isinstance(image, PixelStore) else image
        mode = _PIL_MODES.get(tuple(snapshot.channels))
        if mode is None:
            raise InvalidArgumentError(f"Channels {snapshot.channels} cannot be written as an image")
        return PILPixelStore.from_snapshot(snapshot).image

    def save(self, image: Union[PixelStore, ImageSnapshot], path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_pil_image(image).save(path)
        return path

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[ArrayPixelStore]:
        """
        Yield pixel stores one at a time.  Nothing accumulates in memory.
        Unreadable files are logged and skipped.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed or not p.is_file():
                logger.debug(f"Skipping {p}")
                continue
            try:
                yield self.load(p)
            except (FileNotFoundError, TimeoutError, InvalidArgumentError) as err:
                logger.warning(f"Skipping {p.name}: {err}")

    def load_dir(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[ArrayPixelStore]:
        return list(self.iter_dir(folder, recursive=recursive, exts=exts))
