"""
Cell Detection Module
Splits configured regions into grid cells and measures how filled each cell is
"""
import math
import numpy as np
from typing import List, Tuple, Dict, Any
from dataclasses import dataclass, field
import logging

from ..core.constants import CELL_MARGIN_RATIO
from ..core.exceptions import ConfigurationError
from .image_processing import ink_mask

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Region:
    """Rectangular area of a page in buffer pixel coordinates"""
    x: float
    y: float
    w: float
    h: float

    def __post_init__(self):
        if self.w <= 0 or self.h <= 0:
            raise ConfigurationError(
                f"Region must have positive size, got w={self.w}, h={self.h}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Region":
        return cls(x=data["x"], y=data["y"], w=data["w"], h=data["h"])

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class Grid:
    """Row/column partition of a region"""
    rows: int
    cols: int

    def __post_init__(self):
        if self.rows <= 0 or self.cols <= 0:
            raise ConfigurationError(
                f"Grid must have at least one row and column, got {self.rows}x{self.cols}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "Grid":
        return cls(rows=int(data["rows"]), cols=int(data["cols"]))

    def to_dict(self) -> Dict[str, int]:
        return {"rows": self.rows, "cols": self.cols}


@dataclass
class Cell:
    """One grid cell with its measured fill ratio"""
    row: int
    col: int
    x: int
    y: int
    w: int
    h: int
    ratio: float = 0.0
    marked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
            "ratio": self.ratio,
            "marked": self.marked,
        }


@dataclass
class DetectionResult:
    """
    Cells of one region.

    ``matrix`` is indexed [row][col] and is what the decoders read.
    ``debug_cells`` holds the same cells flattened in row-major order
    for overlay drawing.
    """
    matrix: List[List[Cell]] = field(default_factory=list)
    debug_cells: List[Cell] = field(default_factory=list)

    def marked_cells(self) -> List[Cell]:
        return [cell for cell in self.debug_cells if cell.marked]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": len(self.matrix),
            "cols": len(self.matrix[0]) if self.matrix else 0,
            "cells": [cell.to_dict() for cell in self.debug_cells],
        }


def cell_bounds(region: Region, grid: Grid, row: int, col: int) -> Tuple[int, int, int, int]:
    """
    Integer rectangle of a cell by linear subdivision of the region.

    Origins and sizes are floored, so neighbouring cells may differ in
    size by one pixel.

    Args:
        region: Region being partitioned
        grid: Grid applied to the region
        row: Row index
        col: Column index

    Returns:
        Tuple of (x, y, w, h)
    """
    cell_w = region.w / grid.cols
    cell_h = region.h / grid.rows

    x = math.floor(region.x + col * cell_w)
    y = math.floor(region.y + row * cell_h)
    return x, y, math.floor(cell_w), math.floor(cell_h)


def sample_window(
    x: int, y: int, w: int, h: int,
    buffer_w: int, buffer_h: int
) -> Tuple[int, int, int, int]:
    """
    Inner sampling window of a cell, clipped to the buffer.

    A margin of 10% of the cell size is dropped on every side so the
    printed cell border is not counted. Pixels outside the buffer are
    skipped rather than counted as background.

    Returns:
        Tuple of (x0, y0, x1, y1), half-open; may be empty
    """
    margin_x = math.floor(w * CELL_MARGIN_RATIO)
    margin_y = math.floor(h * CELL_MARGIN_RATIO)

    x0 = max(0, x + margin_x)
    y0 = max(0, y + margin_y)
    x1 = min(buffer_w, x + w - margin_x)
    y1 = min(buffer_h, y + h - margin_y)
    return x0, y0, x1, y1


def detect_marks(
    buffer: np.ndarray,
    region: Region,
    grid: Grid,
    sensitivity: float = 0.3
) -> DetectionResult:
    """
    Measure the fill ratio of every cell in a region.

    Args:
        buffer: Binarized page (see ``binarize``)
        region: Region to partition
        grid: Number of rows and columns
        sensitivity: Fill ratio a cell must exceed to count as marked

    Returns:
        DetectionResult with the cell matrix and the flat debug list

    Raises:
        ConfigurationError: If sensitivity is outside [0, 1]
    """
    if not 0.0 <= sensitivity <= 1.0:
        raise ConfigurationError(f"Sensitivity must be within [0, 1], got {sensitivity}")

    ink = ink_mask(buffer)
    buffer_h, buffer_w = ink.shape[:2]

    result = DetectionResult()

    for r in range(grid.rows):
        row_cells = []
        for c in range(grid.cols):
            x, y, w, h = cell_bounds(region, grid, r, c)
            x0, y0, x1, y1 = sample_window(x, y, w, h, buffer_w, buffer_h)

            sampled = max(0, x1 - x0) * max(0, y1 - y0)
            if sampled > 0:
                ink_count = int(np.count_nonzero(ink[y0:y1, x0:x1]))
                ratio = ink_count / sampled
            else:
                ratio = 0.0

            cell = Cell(
                row=r, col=c, x=x, y=y, w=w, h=h,
                ratio=ratio,
                marked=ratio > sensitivity
            )
            row_cells.append(cell)
            result.debug_cells.append(cell)
        result.matrix.append(row_cells)

    logger.debug(
        f"Detected {len(result.marked_cells())} marked cells "
        f"in {grid.rows}x{grid.cols} region at ({region.x}, {region.y})"
    )

    return result
