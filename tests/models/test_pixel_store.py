import numpy as np
import pytest
from PIL import Image as PILImage

from cellgrid.models.array_pixel_store import ArrayPixelStore
from cellgrid.models.errors import InvalidArgumentError, OutOfBoundsError
from cellgrid.models.pil_pixel_store import PILPixelStore
from cellgrid.models.pixel_store import InMemoryPixelStore
from conftest import BLUE, GREEN, RED, YELLOW, make_snapshot


def test_dimensions_and_channels(backend, four_by_four):
    store = backend(four_by_four)
    assert (store.width, store.height) == (4, 4)
    assert store.channels == ["r", "g", "b", "a"]


def test_get_channel_values(backend, four_by_four):
    store = backend(four_by_four)
    assert store.get_channel_values(0, 0) == RED
    assert store.get_channel_values(1, 1) == GREEN
    assert store.get_channel_values(3, 2) == BLUE
    assert store.get_channel_values(0, 3) == YELLOW


def test_get_channel_value(backend, four_by_four):
    store = backend(four_by_four)
    assert store.get_channel_value(1, 1, "g") == 255
    assert store.get_channel_value(1, 1, "r") == 0
    with pytest.raises(InvalidArgumentError):
        store.get_channel_value(1, 1, "z")


@pytest.mark.parametrize("x", [0, 3])
@pytest.mark.parametrize("y", [0, 3])
def test_edges_are_readable(backend, four_by_four, x, y):
    backend(four_by_four).get_channel_values(x, y)


@pytest.mark.parametrize("x, y", [(-1, 0), (4, 0), (5, 0), (0, -1), (0, 4), (0, 5)])
def test_out_of_bounds_pixel(backend, four_by_four, x, y):
    with pytest.raises(OutOfBoundsError):
        backend(four_by_four).get_channel_values(x, y)


def test_out_of_bounds_is_an_index_error(four_by_four):
    with pytest.raises(IndexError):
        InMemoryPixelStore.from_snapshot(four_by_four).get_channel_values(4, 4)


def test_region_matches_single_pixel_reads(backend, four_by_four):
    store = backend(four_by_four)
    region = store.get_channel_values_for_region(1, 4, 0, 3)
    expected = [store.get_channel_values(x, y) for y in range(0, 3) for x in range(1, 4)]
    assert region == expected
    assert len(region) == 9


@pytest.mark.parametrize("bounds", [
    (0, 5, 0, 4),   # x_end past width
    (-1, 2, 0, 2),  # negative start
    (0, 2, 2, 5),   # y_end past height
    (2, 2, 0, 2),   # empty
    (3, 1, 0, 2),   # inverted
])
def test_region_out_of_bounds_is_not_clamped(backend, four_by_four, bounds):
    with pytest.raises(OutOfBoundsError):
        backend(four_by_four).get_channel_values_for_region(*bounds)


def test_set_channel_values_merges(backend, four_by_four):
    store = backend(four_by_four)
    result = store.set_channel_values_for_pixel(2, 2, {"r": 10, "a": 128})
    assert result is store
    assert store.get_channel_values(2, 2) == {"r": 10, "g": 0, "b": 255, "a": 128}
    # neighbours untouched
    assert store.get_channel_values(1, 2) == BLUE


def test_set_channel_values_rejects_bad_input(backend, four_by_four):
    store = backend(four_by_four)
    with pytest.raises(OutOfBoundsError):
        store.set_channel_values_for_pixel(4, 0, {"r": 1})
    with pytest.raises(InvalidArgumentError):
        store.set_channel_values_for_pixel(0, 0, {"r": 256})
    with pytest.raises(InvalidArgumentError):
        store.set_channel_values_for_pixel(0, 0, {"x": 1})


def test_snapshot_round_trip(backend, four_by_four):
    store = backend(four_by_four)
    store.set_channel_values_for_pixel(0, 0, {"g": 7})
    snap = store.to_snapshot()
    assert (snap.width, snap.height) == (4, 4)
    assert snap.pixels[0] == {"r": 255, "g": 7, "b": 0, "a": 255}
    assert snap.pixels[1:] == four_by_four.pixels[1:]


def test_missing_channel_reads_as_255():
    store = InMemoryPixelStore(2, 1, ["r", "g", "b", "a"], [{"r": 1, "g": 2, "b": 3}])
    assert store.get_channel_values(0, 0) == {"r": 1, "g": 2, "b": 3, "a": 255}
    # pixel entry that was never populated
    assert store.get_channel_values(1, 0) == {"r": 255, "g": 255, "b": 255, "a": 255}


def test_missing_channel_in_snapshot_for_buffer_backends(four_by_four):
    four_by_four.pixels[0] = {"r": 1, "g": 2, "b": 3}
    assert ArrayPixelStore.from_snapshot(four_by_four).get_channel_values(0, 0)["a"] == 255
    assert PILPixelStore.from_snapshot(four_by_four).get_channel_values(0, 0)["a"] == 255


def test_in_memory_rejects_too_many_pixels():
    with pytest.raises(InvalidArgumentError):
        InMemoryPixelStore(1, 1, ["r"], [{"r": 0}, {"r": 1}])


def test_array_store_works_in_place():
    arr = np.zeros((2, 3, 3), dtype=np.uint8)
    store = ArrayPixelStore(arr)
    assert store.channels == ["r", "g", "b"]
    assert (store.width, store.height) == (3, 2)
    store.set_channel_values_for_pixel(2, 1, {"b": 99})
    assert arr[1, 2, 2] == 99


def test_array_store_greyscale_and_validation():
    store = ArrayPixelStore(np.full((2, 2), 9, dtype=np.uint8))
    assert store.channels == ["l"]
    assert store.get_channel_values(1, 1) == {"l": 9}
    with pytest.raises(InvalidArgumentError):
        ArrayPixelStore(np.zeros((2, 2, 3), dtype=np.float32))
    with pytest.raises(InvalidArgumentError):
        ArrayPixelStore(np.zeros((2, 2, 3), dtype=np.uint8), ["r", "g"])


def test_pil_store_uses_image_bands():
    img = PILImage.new("RGB", (3, 2), (1, 2, 3))
    store = PILPixelStore(img)
    assert store.channels == ["r", "g", "b"]
    store.set_channel_values_for_pixel(0, 1, {"r": 200})
    assert img.getpixel((0, 1)) == (200, 2, 3)
    with pytest.raises(InvalidArgumentError):
        PILPixelStore(PILImage.new("CMYK", (1, 1)))


def test_pil_store_single_band():
    store = PILPixelStore(PILImage.new("L", (2, 2), 42))
    assert store.get_channel_values(1, 0) == {"l": 42}
    store.set_channel_values_for_pixel(1, 0, {"l": 7})
    assert store.get_channel_value(1, 0, "l") == 7


def test_empty_store_snapshot():
    store = InMemoryPixelStore(0, 0, ["r", "g", "b", "a"])
    snap = store.to_snapshot()
    assert snap.pixels == [] and snap.width == 0


def test_from_snapshot_rejects_too_many_pixels(backend):
    with pytest.raises(InvalidArgumentError):
        backend(make_snapshot(2, 1, [RED, GREEN, BLUE]))


def test_from_snapshot_accepts_short_pixel_list(backend):
    store = backend(make_snapshot(2, 1, [RED]))
    assert store.get_channel_values(0, 0) == RED
    assert store.get_channel_values(1, 0) == {"r": 255, "g": 255, "b": 255, "a": 255}
