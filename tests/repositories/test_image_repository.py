import threading

import cv2
import numpy as np
import pytest
from PIL import Image as PILImage

from cellgrid.models.array_pixel_store import ArrayPixelStore
from cellgrid.models.errors import InvalidArgumentError
from cellgrid.models.pil_pixel_store import PILPixelStore
from cellgrid.repositories.image_repository import ImageRepository


@pytest.fixture
def repo():
    return ImageRepository()


def test_load_converts_to_rgb(repo, tmp_path):
    path = tmp_path / "red.png"
    PILImage.new("RGB", (3, 2), (255, 10, 20)).save(path)
    store = repo.load(path)
    assert isinstance(store, ArrayPixelStore)
    assert store.channels == ["r", "g", "b"]
    assert store.get_channel_values(2, 1) == {"r": 255, "g": 10, "b": 20}


def test_load_keeps_alpha(repo, tmp_path):
    path = tmp_path / "alpha.png"
    PILImage.new("RGBA", (2, 2), (1, 2, 3, 4)).save(path)
    store = repo.load(path)
    assert store.channels == ["r", "g", "b", "a"]
    assert store.get_channel_values(0, 0) == {"r": 1, "g": 2, "b": 3, "a": 4}


def test_load_greyscale(repo, tmp_path):
    path = tmp_path / "grey.png"
    PILImage.new("L", (2, 2), 90).save(path)
    store = repo.load(path)
    assert store.channels == ["l"]
    assert store.get_channel_value(1, 1, "l") == 90


def test_load_16_bit(repo, tmp_path):
    path = tmp_path / "deep.png"
    cv2.imwrite(str(path), np.full((2, 2, 3), 0x8000, dtype=np.uint16))
    store = repo.load(path)
    assert store.get_channel_values(0, 0) == {"r": 128, "g": 128, "b": 128}


def test_load_missing(repo, tmp_path):
    with pytest.raises(FileNotFoundError):
        repo.load(tmp_path / "nope.png")
    with pytest.raises(FileNotFoundError):
        repo.load_pil(tmp_path / "nope.png")


def test_load_pil(repo, tmp_path):
    path = tmp_path / "p.png"
    PILImage.new("P", (2, 2)).save(path)
    store = repo.load_pil(path)
    assert isinstance(store, PILPixelStore)
    assert store.channels == ["r", "g", "b", "a"]


def test_save_creates_folders(repo, tmp_path):
    store = ArrayPixelStore(np.zeros((2, 2, 3), dtype=np.uint8))
    path = repo.save(store, tmp_path / "a" / "b" / "out.png")
    assert path.is_file()


def test_iter_dir_filters_and_skips(repo, tmp_path):
    PILImage.new("RGB", (1, 1)).save(tmp_path / "a.png")
    PILImage.new("RGB", (2, 2)).save(tmp_path / "b.jpg")
    (tmp_path / "c.txt").write_text("not an image")
    (tmp_path / "broken.png").write_bytes(b"garbage")
    (tmp_path / "sub").mkdir()
    PILImage.new("RGB", (3, 3)).save(tmp_path / "sub" / "d.png")

    assert [s.width for s in repo.load_dir(tmp_path)] == [1, 2]
    assert sorted(s.width for s in repo.load_dir(tmp_path, recursive=True)) == [1, 2, 3]
    assert [s.width for s in repo.load_dir(tmp_path, exts=[".jpg"])] == [2]


def test_iter_dir_requires_directory(repo, tmp_path):
    with pytest.raises(NotADirectoryError):
        list(repo.iter_dir(tmp_path / "missing"))


def test_load_rejects_float_pixels(repo, tmp_path):
    path = tmp_path / "float.tiff"
    assert cv2.imwrite(str(path), np.full((2, 2, 3), 0.5, dtype=np.float32))
    with pytest.raises(InvalidArgumentError):
        repo.load(path)


def test_iter_dir_skips_unsupported_pixel_types(repo, tmp_path):
    cv2.imwrite(str(tmp_path / "a_float.tiff"), np.full((2, 2, 3), 0.5, dtype=np.float32))
    PILImage.new("RGB", (4, 1)).save(tmp_path / "b.tiff")
    assert [s.width for s in repo.load_dir(tmp_path, exts=[".tiff"])] == [4]


def test_load_from_worker_thread(repo, tmp_path):
    path = tmp_path / "red.png"
    PILImage.new("RGB", (3, 2), (255, 0, 0)).save(path)
    results = []

    def worker():
        try:
            results.append(repo.load(path))
        except Exception as err:
            results.append(err)

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()
    assert isinstance(results[0], ArrayPixelStore)
    assert results[0].get_channel_values(0, 0) == {"r": 255, "g": 0, "b": 0}
