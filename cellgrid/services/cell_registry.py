from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..models.cell import Cell
from ..models.pixel_store import PixelStore
from ..repositories.cell_repository import CellRepository
from .image_service import CELLS_OUTPUT_DIR, ImageService
from .partition_service import PartitionService

logger = logging.getLogger(__name__)


class CellRegistry:
    """
    Collection of cells for one partitioning session.

    Build one per session and pass it around; there is no global instance.
    Partitioning is additive: call `clear_cells` between images.
    """
    def __init__(
        self,
        partition_service: PartitionService | None = None,
        image_service: ImageService | None = None,
        cell_repository: CellRepository | None = None,
    ):
        self.partition_service = partition_service or PartitionService()
        self.image_service = image_service
        self.cell_repository = cell_repository or CellRepository()

    def add_cell(self, cell: Cell) -> None:
        self.cell_repository.add(cell)

    def get_cell(self, x: int, y: int) -> Optional[Cell]:
        """First cell (insertion order) whose origin is (x, y), else None."""
        return self.cell_repository.find_by_origin(x, y)

    def remove_cell(self, cell: Cell) -> None:
        """Remove this exact instance; other cells at the same origin are kept."""
        self.cell_repository.remove(cell)

    def clear_cells(self) -> None:
        self.cell_repository.clear()

    def get_cells(self) -> List[Cell]:
        return self.cell_repository.all()

    def partition_cells_from_image(
        self,
        store: PixelStore,
        cell_width: Optional[int] = None,
        cell_height: Optional[int] = None,
    ) -> List[Cell]:
        """
        Partition `store` and append the resulting cells.

        Returns:
            Every cell in the registry, including ones from earlier calls.
        """
        cells = self.partition_service.partition_image_into_cells(store, cell_width, cell_height)
        self.cell_repository.extend(cells)
        logger.info(f"Registered {len(cells)} cells ({len(self.cell_repository)} total)")
        return self.get_cells()

    def save_cells_to_images(self, output_dir: Union[str, Path] = CELLS_OUTPUT_DIR) -> List[Path]:
        """Write every registered cell as a cell_<row>_<col> tile."""
        if self.image_service is None:
            self.image_service = ImageService()
        return self.image_service.save_cells_to_images(self.get_cells(), output_dir)

    def __len__(self) -> int:
        return len(self.cell_repository)
