"""
Answer Analysis Module
Turns detected cell matrices into a student ID and answer values
"""
from typing import List, Optional, Sequence, Union
import logging

from ..core.constants import ID_DIGITS, MULTIPLE, OPTION_COLUMNS, AnswerFlag
from .cell_detection import Cell

logger = logging.getLogger(__name__)

# int 0-9, None (no mark) or MULTIPLE
AnswerValue = Optional[Union[int, str]]


def option_value(col: int) -> int:
    """
    Map a grid column to the option it represents.

    Options are printed in the order 1, 2, ..., 9, 0, so column 9 is
    option 0 and columns 0-8 are options 1-9.
    """
    return 0 if col == OPTION_COLUMNS - 1 else col + 1


def decode_id(matrix: List[List[Cell]], placeholder: str = "?") -> str:
    """
    Read a vertically encoded identifier.

    Each column is one digit; the row index is the digit value. The
    topmost marked row wins, so extra marks in a column are ignored.
    A mark below the tenth row is not a digit and yields the placeholder.

    Args:
        matrix: Cells from ``detect_marks`` [row][col]
        placeholder: Character emitted for a column with no mark

    Returns:
        Identifier string with one character per column
    """
    if not matrix:
        return ""

    n_rows = len(matrix)
    n_cols = len(matrix[0])
    digits = []

    for c in range(n_cols):
        digit = placeholder
        for r in range(n_rows):
            if matrix[r][c].marked:
                digit = str(r) if r < ID_DIGITS else placeholder
                break
        digits.append(digit)

    return "".join(digits)


def decode_row(row: Sequence[Cell]) -> AnswerValue:
    """Decode one question row: None, a single option, or MULTIPLE"""
    values = [option_value(cell.col) for cell in row if cell.marked]

    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return MULTIPLE


def decode_answers(matrix: List[List[Cell]]) -> List[AnswerValue]:
    """
    Read horizontally encoded multiple-choice answers.

    Each row is one question and each column one option. Whether an
    option is allowed for the question is not considered here; see
    ``classify_answer``.

    Args:
        matrix: Cells from ``detect_marks`` [row][col]

    Returns:
        One AnswerValue per row
    """
    return [decode_row(row) for row in matrix]


def decode_blocks(
    matrices: Sequence[List[List[Cell]]],
    questions_per_block: int
) -> List[AnswerValue]:
    """
    Decode several answer blocks into one answer sequence.

    Blocks are concatenated in order. Each block contributes exactly
    ``questions_per_block`` answers: missing rows are blank, extra rows
    are dropped.

    Args:
        matrices: Cell matrices, one per active block
        questions_per_block: Questions in each block

    Returns:
        Answers indexed by global question number (0-based)
    """
    answers: List[AnswerValue] = []

    for block_idx, matrix in enumerate(matrices):
        block_answers = decode_answers(matrix)[:questions_per_block]
        if len(block_answers) < questions_per_block:
            logger.debug(
                f"Block {block_idx + 1} has {len(block_answers)} rows, "
                f"padding to {questions_per_block}"
            )
            block_answers += [None] * (questions_per_block - len(block_answers))
        answers.extend(block_answers)

    return answers


def is_option_allowed(value: int, max_option: int) -> bool:
    """Option 0 is always allowed; others must not exceed max_option"""
    return value == 0 or value <= max_option


def classify_answer(value: AnswerValue, max_option: int = OPTION_COLUMNS) -> AnswerFlag:
    """
    Categorize a decoded answer for display.

    Args:
        value: Decoded answer
        max_option: Highest option the question offers

    Returns:
        AnswerFlag
    """
    if value is None:
        return AnswerFlag.BLANK
    if value == MULTIPLE:
        return AnswerFlag.MULTIPLE
    if is_option_allowed(value, max_option):
        return AnswerFlag.VALID
    return AnswerFlag.OUT_OF_RANGE


def classify_cell(cell: Cell, max_option: int = OPTION_COLUMNS) -> AnswerFlag:
    """Categorize a single cell: blank, or valid/out of range if marked"""
    if not cell.marked:
        return AnswerFlag.BLANK
    if is_option_allowed(option_value(cell.col), max_option):
        return AnswerFlag.VALID
    return AnswerFlag.OUT_OF_RANGE


def parse_answer_value(text: Optional[str]) -> AnswerValue:
    """
    Parse a manually entered answer.

    Blank means no answer, a single digit is that option, and a comma
    separated list (e.g. "1,2") or the word MULTIPLE means several marks.

    Raises:
        ValueError: If the text is none of the above
    """
    if text is None:
        return None

    cleaned = str(text).strip()
    if not cleaned:
        return None
    if cleaned.upper() == MULTIPLE or "," in cleaned:
        return MULTIPLE
    if len(cleaned) == 1 and cleaned.isdigit():
        return int(cleaned)

    raise ValueError(f"Not an answer value: {text!r}")
