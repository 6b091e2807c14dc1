import pytest

from cellgrid.models.array_pixel_store import ArrayPixelStore
from cellgrid.models.image_snapshot import ImageMetadata, ImageSnapshot
from cellgrid.models.pil_pixel_store import PILPixelStore
from cellgrid.models.pixel_store import InMemoryPixelStore

RED = {"r": 255, "g": 0, "b": 0, "a": 255}
GREEN = {"r": 0, "g": 255, "b": 0, "a": 255}
BLUE = {"r": 0, "g": 0, "b": 255, "a": 255}
YELLOW = {"r": 255, "g": 255, "b": 0, "a": 255}

BACKENDS = {
    "memory": InMemoryPixelStore.from_snapshot,
    "array": ArrayPixelStore.from_snapshot,
    "pil": PILPixelStore.from_snapshot,
}


def make_snapshot(width, height, pixels):
    return ImageSnapshot(width, height, [dict(p) for p in pixels],
                         ImageMetadata(size=width * height * 4, channels=["r", "g", "b", "a"]))


def uniform_snapshot(width, height, color):
    return make_snapshot(width, height, [color] * (width * height))


@pytest.fixture
def four_by_four():
    """Row 0 red, row 1 red + 3 green, row 2 blue, row 3 yellow."""
    return make_snapshot(4, 4, [RED] * 5 + [GREEN] * 3 + [BLUE] * 4 + [YELLOW] * 4)


@pytest.fixture(params=sorted(BACKENDS))
def backend(request):
    """Factory turning an ImageSnapshot into a store of each backend."""
    return BACKENDS[request.param]
