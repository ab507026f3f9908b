"""
Shared fixtures: synthetic answer sheets drawn with numpy
"""
import numpy as np
import pytest

from marksheet.grader import Grid, Region, SheetConfig, cell_bounds

PAGE_W = 200
PAGE_H = 130

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
PINK = (240, 160, 150, 255)


def blank_page(w: int = PAGE_W, h: int = PAGE_H, color=WHITE) -> np.ndarray:
    page = np.empty((h, w, 4), dtype=np.uint8)
    page[:, :] = color
    return page


def fill_cell(page: np.ndarray, region: Region, grid: Grid, row: int, col: int, color=BLACK) -> None:
    x, y, w, h = cell_bounds(region, grid, row, col)
    page[y:y + h, x:x + w] = color


def option_column(value: int) -> int:
    return 9 if value == 0 else value - 1


@pytest.fixture
def sheet_config() -> SheetConfig:
    """
    7-digit ID box on the left (10x10 px cells) and two answer blocks
    of 5 questions x 10 options on the right.
    """
    return SheetConfig(
        threshold=128,
        sensitivity=0.3,
        student_id_region=Region(x=10, y=10, w=70, h=100),
        student_id_grid=Grid(rows=10, cols=7),
        answer_blocks=(
            Region(x=90, y=10, w=100, h=50),
            Region(x=90, y=70, w=100, h=50),
        ),
        questions_per_block=5,
        num_blocks=2,
    )


@pytest.fixture
def make_sheet(sheet_config):
    """Return a function drawing a filled-in sheet for ``sheet_config``"""

    def _make(student_id: str = "", answers=(), guide_lines: bool = False) -> np.ndarray:
        cfg = sheet_config
        page = blank_page()

        if guide_lines:
            # Pink printed grid over every region
            for region in (cfg.student_id_region,) + cfg.answer_blocks:
                x0, y0 = int(region.x), int(region.y)
                x1, y1 = int(region.x + region.w), int(region.y + region.h)
                page[y0:y1:5, x0:x1] = PINK
                page[y0:y1, x0:x1:5] = PINK

        for col, digit in enumerate(student_id):
            if digit.isdigit():
                fill_cell(page, cfg.student_id_region, cfg.student_id_grid, int(digit), col)

        grid = cfg.block_grid
        for q, answer in enumerate(answers):
            if answer is None:
                continue
            region = cfg.answer_blocks[q // cfg.questions_per_block]
            row = q % cfg.questions_per_block
            values = answer if isinstance(answer, (list, tuple)) else [answer]
            for value in values:
                fill_cell(page, region, grid, row, option_column(value))

        return page

    return _make


@pytest.fixture
def key_answers():
    return [1, 2, 3, 4, 0, 5, 6, 7, 8, 9]
