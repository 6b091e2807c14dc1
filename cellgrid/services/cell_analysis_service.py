from typing import List
import logging
import os

from dotenv import load_dotenv

from ..models.cell import Cell
from ..models.cell_report import CellReport

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

COLOR_SENSITIVITY = float(os.getenv("CELLGRID_COLOR_SENSITIVITY", "1"))


class CellAnalysisService:
    """
    Turns cells into CellReport objects.
    *   No I/O here, works only with Cell objects.
    *   Each report triggers fresh scans of the underlying store.
    """
    def __init__(self, color_sensitivity: float = COLOR_SENSITIVITY):
        self.color_sensitivity = color_sensitivity

    def analyse_cell(self, cell: Cell) -> CellReport:
        return CellReport(
            x=cell.x,
            y=cell.y,
            width=cell.width,
            height=cell.height,
            average_color=cell.get_average_color(),
            color_entropy=cell.get_entropy_with_color(self.color_sensitivity),
            greyscale_entropy=cell.get_entropy_greyscale(self.color_sensitivity),
        )

    def analyse_cells(self, cells: List[Cell]) -> List[CellReport]:
        return [self.analyse_cell(cell) for cell in cells]

    @staticmethod
    def most_detailed(reports: List[CellReport], n: int = 5) -> List[CellReport]:
        """Top `n` reports by colour entropy, ties broken by grid order."""
        return sorted(reports, key=lambda r: -r.color_entropy)[:n]

    def log_reports(self, reports: List[CellReport]) -> None:
        if not reports:
            logger.info("No cells were analysed.")
            return
        for r in reports:
            avg = r.average_color
            logger.info(f"Cell ({r.x:4d},{r.y:4d}) {r.width}x{r.height} | "
                        f"avg rgb({avg['r']:3d},{avg['g']:3d},{avg['b']:3d}) | "
                        f"H color: {r.color_entropy:5.2f} | H grey: {r.greyscale_entropy:5.2f}")
