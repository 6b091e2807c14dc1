from typing import List, Optional
from ..models.cell import Cell


class CellRepository:
    """
    Insertion-ordered storage for Cell objects.
    Duplicate origins are allowed; lookups see the first one inserted.
    """
    def __init__(self) -> None:
        self._cells: List[Cell] = []

    def add(self, cell: Cell) -> None:
        self._cells.append(cell)

    def extend(self, cells: List[Cell]) -> None:
        self._cells.extend(cells)

    def find_by_origin(self, x: int, y: int) -> Optional[Cell]:
        return next((c for c in self._cells if c.x == x and c.y == y), None)

    def remove(self, cell: Cell) -> None:
        # Identity, not coordinates: a same-origin duplicate stays put.
        self._cells = [c for c in self._cells if c is not cell]

    def clear(self) -> None:
        self._cells = []

    def all(self) -> List[Cell]:
        return list(self._cells)

    def __len__(self) -> int:
        return len(self._cells)
