"""
Unit tests for answer_analysis module
"""
import pytest

from marksheet.core import MULTIPLE, AnswerFlag
from marksheet.grader import (
    Cell,
    Grid,
    Region,
    binarize,
    classify_answer,
    classify_cell,
    decode_answers,
    decode_blocks,
    decode_id,
    detect_marks,
    option_value,
    parse_answer_value,
)

from conftest import blank_page, fill_cell


def make_matrix(rows, cols, marked=()):
    """Cell matrix with the given (row, col) pairs marked"""
    marked = set(marked)
    return [
        [
            Cell(row=r, col=c, x=c * 10, y=r * 10, w=10, h=10,
                 ratio=1.0 if (r, c) in marked else 0.0,
                 marked=(r, c) in marked)
            for c in range(cols)
        ]
        for r in range(rows)
    ]


class TestOptionValue:
    """Test cases for the 1..9, 0 column order"""

    def test_mapping(self):
        """Test columns 0-8 are options 1-9 and column 9 is option 0"""
        assert [option_value(c) for c in range(10)] == [1, 2, 3, 4, 5, 6, 7, 8, 9, 0]


class TestDecodeId:
    """Test cases for vertical ID decoding"""

    def test_reads_digit_per_column(self):
        """Test each column's marked row is its digit"""
        matrix = make_matrix(10, 4, [(2, 0), (0, 1), (9, 2), (5, 3)])
        assert decode_id(matrix) == "2095"

    def test_unmarked_column_uses_placeholder(self):
        """Test a column without marks emits the placeholder"""
        matrix = make_matrix(10, 3, [(1, 0), (4, 2)])
        assert decode_id(matrix) == "1?4"
        assert decode_id(matrix, placeholder="_") == "1_4"

    def test_topmost_mark_wins(self):
        """Test multiple marks in a column report the first from the top"""
        matrix = make_matrix(10, 2, [(7, 0), (3, 0), (8, 1)])
        assert decode_id(matrix) == "38"

    def test_rows_past_nine_use_placeholder(self):
        """Test a mark in a row with no digit value is not read as a digit"""
        matrix = make_matrix(12, 2, [(11, 0), (10, 1), (3, 1)])
        assert decode_id(matrix) == "?3"

    def test_length_equals_columns(self):
        """Test the ID always has one character per column"""
        assert len(decode_id(make_matrix(10, 7))) == 7

    def test_empty_matrix(self):
        """Test an empty matrix yields an empty ID"""
        assert decode_id([]) == ""


class TestDecodeAnswers:
    """Test cases for horizontal answer decoding"""

    def test_all_blank(self):
        """Test a region without ink yields one None per row"""
        assert decode_answers(make_matrix(25, 10)) == [None] * 25

    def test_single_marks(self):
        """Test single marks decode to their option values"""
        matrix = make_matrix(3, 10, [(0, 0), (1, 4), (2, 9)])
        assert decode_answers(matrix) == [1, 5, 0]

    def test_multiple_marks_isolated_to_row(self):
        """Test two marks give MULTIPLE for that row only"""
        matrix = make_matrix(4, 10, [(0, 2), (1, 0), (1, 3), (2, 6)])
        assert decode_answers(matrix) == [3, MULTIPLE, 7, None]

    def test_column_nine_is_zero(self):
        """Test a fully inked last column reads as option 0"""
        region = Region(x=0, y=0, w=100, h=100)
        grid = Grid(rows=1, cols=10)
        page = blank_page(100, 100)
        fill_cell(page, region, grid, 0, 9)

        result = detect_marks(binarize(page), region, grid, 0.3)
        assert decode_answers(result.matrix) == [0]


class TestDecodeBlocks:
    """Test cases for combining answer blocks"""

    def test_block_major_order(self):
        """Test blocks are concatenated in order"""
        first = make_matrix(2, 10, [(0, 0), (1, 1)])
        second = make_matrix(2, 10, [(0, 2)])
        assert decode_blocks([first, second], 2) == [1, 2, 3, None]

    def test_exact_length(self):
        """Test each block contributes exactly questions_per_block answers"""
        short = make_matrix(1, 10, [(0, 4)])
        long = make_matrix(4, 10, [(3, 4)])
        answers = decode_blocks([short, long], 3)

        assert len(answers) == 6
        assert answers == [5, None, None, None, None, None]


class TestClassification:
    """Test cases for display classification"""

    def test_classify_answer(self):
        """Test categories relative to the block's highest option"""
        assert classify_answer(None, 4) == AnswerFlag.BLANK
        assert classify_answer(MULTIPLE, 4) == AnswerFlag.MULTIPLE
        assert classify_answer(4, 4) == AnswerFlag.VALID
        assert classify_answer(5, 4) == AnswerFlag.OUT_OF_RANGE
        assert classify_answer(0, 4) == AnswerFlag.VALID

    def test_classification_leaves_decode_unchanged(self):
        """Test out-of-range values are still decoded as given"""
        matrix = make_matrix(1, 10, [(0, 6)])
        answers = decode_answers(matrix)
        flags = [classify_answer(a, 4) for a in answers]

        assert answers == [7]
        assert flags == [AnswerFlag.OUT_OF_RANGE]

    def test_classify_cell(self):
        """Test marked cells beyond the highest option are flagged"""
        row = make_matrix(1, 10, [(0, 1), (0, 5), (0, 9)])[0]
        flags = [classify_cell(c, 4) for c in row]

        assert flags[0] == AnswerFlag.BLANK
        assert flags[1] == AnswerFlag.VALID
        assert flags[5] == AnswerFlag.OUT_OF_RANGE
        assert flags[9] == AnswerFlag.VALID


class TestParseAnswerValue:
    """Test cases for manual corrections"""

    @pytest.mark.parametrize("text,expected", [
        (None, None),
        ("", None),
        ("   ", None),
        ("3", 3),
        (" 0 ", 0),
        ("1,2", MULTIPLE),
        ("multiple", MULTIPLE),
    ])
    def test_valid(self, text, expected):
        """Test accepted inputs"""
        assert parse_answer_value(text) == expected

    @pytest.mark.parametrize("text", ["10", "a", "-1"])
    def test_invalid(self, text):
        """Test rejected inputs"""
        with pytest.raises(ValueError):
            parse_answer_value(text)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
