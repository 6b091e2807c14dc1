"""
Partition pipeline
Load an image, cut it into cells, report per-cell statistics and optionally
write every cell out as a cell_<row>_<col> tile.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..models.cell_report import CellReport
from ..models.pixel_store import PixelStore
from ..services.cell_analysis_service import CellAnalysisService
from ..services.cell_registry import CellRegistry
from ..services.image_service import CELLS_OUTPUT_DIR, ImageService

logger = logging.getLogger(__name__)


def partition_image(
    image: Union[str, Path, PixelStore],
    *,
    cell_width: Optional[int] = None,
    cell_height: Optional[int] = None,
    save: bool = False,
    output_dir: Union[str, Path] = CELLS_OUTPUT_DIR,
    registry: CellRegistry | None = None,
    image_service: ImageService | None = None,
    analysis_service: CellAnalysisService | None = None,
) -> Tuple[CellRegistry, List[CellReport]]:
    """
    Args:
        image: path of an image file, or an already loaded pixel store
        cell_width / cell_height: cell size, None for the default 5x5 grid
        save: also write each cell as a tile in `output_dir`
        registry: session registry to fill; a fresh one is made when omitted

    Returns:
        (registry holding the cells, one CellReport per cell in grid order)
    """
    image_service = image_service or ImageService()
    analysis_service = analysis_service or CellAnalysisService()
    if registry is None:
        registry = CellRegistry(image_service=image_service)

    store = image if isinstance(image, PixelStore) else image_service.load(image)
    logger.info(f"Partitioning {store}")

    # The registry is additive; only this image's cells are reported and saved.
    before = len(registry)
    cells = registry.partition_cells_from_image(store, cell_width, cell_height)[before:]
    reports = analysis_service.analyse_cells(cells)

    if save:
        image_service.save_cells_to_images(cells, output_dir)

    return registry, reports
