from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict


@dataclass
class CellReport:
    """
    Data object holding the statistics computed for one cell.
    Values are a point-in-time copy; the Cell itself caches nothing.
    """
    x: int
    y: int
    width: int
    height: int
    average_color: Dict[str, int]
    color_entropy: float      # bits, quantized (r, g, b)
    greyscale_entropy: float  # bits, quantized BT.601 luma

    def as_dict(self) -> dict:
        return asdict(self)
