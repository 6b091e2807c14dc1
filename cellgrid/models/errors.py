class CellGridError(Exception):
    """Base class for every error raised by the pixel/cell core."""


class OutOfBoundsError(CellGridError, IndexError):
    """Pixel or region coordinates fall outside the store dimensions."""


class InvalidArgumentError(CellGridError, ValueError):
    """A caller passed an argument the operation cannot work with (e.g. a 0-wide cell)."""


class EmptyRegionError(CellGridError, ValueError):
    """A statistic was requested over a zero-area region."""
