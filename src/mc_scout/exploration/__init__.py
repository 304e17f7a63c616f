"""Cell scanning, danger scoring and frontier scheduling."""

from .danger import DangerScorer
from .scanner import BLOCK_TABLE, CellScanner
from .scheduler import FrontierScheduler, area_cells, frontier_cells
from .store import ExplorationStore

__all__ = [
    "BLOCK_TABLE",
    "CellScanner",
    "DangerScorer",
    "ExplorationStore",
    "FrontierScheduler",
    "area_cells",
    "frontier_cells",
]
