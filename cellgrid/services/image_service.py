from pathlib import Path
from typing import Dict, List, Tuple, Union
import logging
import os
import re

from PIL import Image as PILImage
from dotenv import load_dotenv
from tqdm import tqdm

from ..models.array_pixel_store import ArrayPixelStore
from ..models.cell import Cell
from ..models.errors import InvalidArgumentError
from ..models.image_snapshot import ImageSnapshot
from ..models.pil_pixel_store import PILPixelStore
from ..models.pixel_store import PixelStore
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

CELLS_OUTPUT_DIR = os.getenv("CELLS_OUTPUT_DIR", "output")
CELL_FILENAME_PREFIX = os.getenv("CELL_FILENAME_PREFIX", "cell_")
OUTPUT_EXT = os.getenv("OUTPUT_IMG_EXT", ".png")
STITCHED_IMAGE_PATH = os.getenv("STITCHED_IMAGE_PATH", "stitched.png")


class ImageService:
    """I/O helpers around pixel stores: loading, saving, tiling, stitching.  No statistics."""
    def __init__(self, image_repository: ImageRepository | None = None):
        self.image_repository = image_repository or ImageRepository()

    def load(self, path: Union[str, Path]) -> ArrayPixelStore:
        """Load a single image from disk into a buffer-backed pixel store."""
        return self.image_repository.load(path)

    def load_pil(self, path: Union[str, Path]) -> PILPixelStore:
        return self.image_repository.load_pil(path)

    def save(self, image: Union[PixelStore, ImageSnapshot], path: Union[str, Path]) -> Path:
        return self.image_repository.save(image, path)

    # ─── tiles ────────────────────────────────────────────────────────
    @staticmethod
    def cell_filename(row: int, col: int,
                      prefix: str = CELL_FILENAME_PREFIX, ext: str = OUTPUT_EXT) -> str:
        return f"{prefix}{row}_{col}{ext}"

    @staticmethod
    def grid_position(cell: Cell, grid_cell_width: int, grid_cell_height: int) -> Tuple[int, int]:
        """(row, col) of a cell in a grid whose regular cells are grid_cell_width x grid_cell_height."""
        return cell.y // grid_cell_height, cell.x // grid_cell_width

    def save_cells_to_images(
        self,
        cells: List[Cell],
        output_dir: Union[str, Path] = CELLS_OUTPUT_DIR,
        *,
        prefix: str = CELL_FILENAME_PREFIX,
        ext: str = OUTPUT_EXT,
    ) -> List[Path]:
        """
        Write every cell as its own image named <prefix><row>_<col><ext>.

        Row and column come from the grid step, which is the size of the first
        (top-left, never clamped) cell. Cells off that grid, or two cells that
        map to the same tile name, raise InvalidArgumentError before any file
        is written.

        Returns:
            Paths written, in the order of `cells`.
        """
        if not cells:
            logger.info("No cells to save.")
            return []

        output_dir = Path(output_dir)
        grid_w, grid_h = cells[0].width, cells[0].height
        if grid_w <= 0 or grid_h <= 0:
            raise InvalidArgumentError("Cannot derive a grid from a zero-area cell")

        # Resolve every name before writing anything so a bad grid leaves no partial output.
        positions = []
        seen = {}
        for cell in cells:
            if cell.x % grid_w or cell.y % grid_h:
                raise InvalidArgumentError(
                    f"{cell!r} is not aligned to the {grid_w}x{grid_h} grid of the first cell")
            position = self.grid_position(cell, grid_w, grid_h)
            if position in seen:
                raise InvalidArgumentError(
                    f"{cell!r} and {seen[position]!r} would both be saved as "
                    f"{self.cell_filename(*position, prefix, ext)}")
            seen[position] = cell
            positions.append(position)

        output_dir.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []
        for cell, (row, col) in tqdm(zip(cells, positions), total=len(cells),
                                     desc="Saving cells", unit="cell", disable=len(cells) < 2):
            path = output_dir / self.cell_filename(row, col, prefix, ext)
            self.save(cell.get_image_data(), path)
            written.append(path)

        logger.info(f"Saved {len(written)} cells to {output_dir}")
        return written

    def find_cell_images(
        self,
        directory: Union[str, Path],
        *,
        prefix: str = CELL_FILENAME_PREFIX,
        ext: str = OUTPUT_EXT,
    ) -> Dict[Tuple[int, int], Path]:
        """{(row, col): path} for every tile file in `directory`."""
        directory = Path(directory)
        if not directory.is_dir():
            raise NotADirectoryError(directory)
        pattern = re.compile(rf"^{re.escape(prefix)}(\d+)_(\d+){re.escape(ext)}$")
        tiles = {}
        for p in directory.iterdir():
            match = pattern.match(p.name)
            if match and p.is_file():
                tiles[(int(match.group(1)), int(match.group(2)))] = p
        return tiles

    def stitch_cells(
        self,
        directory: Union[str, Path] = CELLS_OUTPUT_DIR,
        output_path: Union[str, Path, None] = STITCHED_IMAGE_PATH,
        *,
        prefix: str = CELL_FILENAME_PREFIX,
        ext: str = OUTPUT_EXT,
    ) -> PILPixelStore:
        """
        Reassemble tiles written by `save_cells_to_images` into one image.

        The grid step is the size of tile (0, 0); tile (row, col) is pasted at
        (col * step_w, row * step_h). Missing tiles leave zero-filled holes.
        When `output_path` is None nothing is written.
        """
        tiles = self.find_cell_images(directory, prefix=prefix, ext=ext)
        if not tiles:
            raise FileNotFoundError(f"No {prefix}<row>_<col>{ext} tiles in {directory}")
        if (0, 0) not in tiles:
            raise FileNotFoundError(f"Top-left tile {self.cell_filename(0, 0, prefix, ext)} is missing")

        with PILImage.open(tiles[(0, 0)]) as first:
            step_w, step_h = first.size
            mode = first.mode if first.mode in ("RGBA", "RGB", "L", "LA") else "RGBA"

        loaded = {}
        canvas_w = canvas_h = 0
        for (row, col), path in sorted(tiles.items()):
            with PILImage.open(path) as tile:
                tile = tile.convert(mode)
            loaded[(row, col)] = tile
            canvas_w = max(canvas_w, col * step_w + tile.width)
            canvas_h = max(canvas_h, row * step_h + tile.height)

        stitched = PILImage.new(mode, (canvas_w, canvas_h))
        for (row, col), tile in loaded.items():
            logger.debug(f"Placing tile ({row}, {col}) at ({col * step_w}, {row * step_h})")
            stitched.paste(tile, (col * step_w, row * step_h))

        store = PILPixelStore(stitched)
        if output_path is not None:
            self.save(store, output_path)
            logger.info(f"Stitched {len(loaded)} tiles into {output_path}")
        return store
