import logging
import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from ..models.cell import Cell
from ..models.errors import InvalidArgumentError
from ..models.pixel_store import PixelStore

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Default number of cells per axis when no cell size is given (5 -> roughly a 5x5 grid).
GRID_DIVISIONS = int(os.getenv("CELLGRID_GRID_DIVISIONS", "5"))


class PartitionService:
    """
    Cuts an image into a row-major grid of cells.
    Edge cells are clamped to what is left of the image; cells with no
    visible content are dropped.
    """
    def __init__(self, grid_divisions: int = GRID_DIVISIONS):
        if grid_divisions <= 0:
            raise InvalidArgumentError(f"grid_divisions must be > 0, got {grid_divisions}")
        self.grid_divisions = grid_divisions

    def default_cell_size(self, width: int, height: int) -> Tuple[int, int]:
        """
        floor(dimension / grid_divisions) per axis, but never 0 so that an image
        smaller than the grid still partitions (one pixel per cell).
        """
        return (max(1, width // self.grid_divisions),
                max(1, height // self.grid_divisions))

    def resolve_cell_size(
        self, width: int, height: int,
        cell_width: Optional[int] = None, cell_height: Optional[int] = None,
    ) -> Tuple[int, int]:
        default_w, default_h = self.default_cell_size(width, height)
        cell_width = default_w if cell_width is None else cell_width
        cell_height = default_h if cell_height is None else cell_height
        if cell_width <= 0 or cell_height <= 0:
            raise InvalidArgumentError(
                f"Cell size must be positive, got {cell_width}x{cell_height}")
        return cell_width, cell_height

    def partition_image_into_cells(
        self,
        store: PixelStore,
        cell_width: Optional[int] = None,
        cell_height: Optional[int] = None,
    ) -> List[Cell]:
        """
        Args:
            store: pixels to partition
            cell_width / cell_height: cell size; None means width // 5 and height // 5

        Returns:
            Cells in row-major order (y outer, x inner).

        Raises:
            InvalidArgumentError: a non-positive cell size was given.
        """
        width, height = store.width, store.height
        # A 0 step would never advance.
        if (cell_width is not None and cell_width <= 0) or (cell_height is not None and cell_height <= 0):
            raise InvalidArgumentError(
                f"Cell size must be positive, got {cell_width}x{cell_height}")
        if not width or not height:
            logger.debug("Empty image, nothing to partition")
            return []

        cell_width, cell_height = self.resolve_cell_size(width, height, cell_width, cell_height)

        cells: List[Cell] = []
        skipped = 0
        for y in range(0, height, cell_height):
            for x in range(0, width, cell_width):
                cell = Cell(x, y, min(cell_width, width - x), min(cell_height, height - y), store)
                if cell.has_pixels():
                    cells.append(cell)
                else:
                    skipped += 1

        logger.debug(f"Partitioned {width}x{height} image into {len(cells)} cells "
                     f"of {cell_width}x{cell_height} ({skipped} empty skipped)")
        return cells


_default_service = PartitionService()


def partition_image_into_cells(
    store: PixelStore,
    cell_width: Optional[int] = None,
    cell_height: Optional[int] = None,
) -> List[Cell]:
    """Module-level shortcut using the env-configured grid size."""
    return _default_service.partition_image_into_cells(store, cell_width, cell_height)
