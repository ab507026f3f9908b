"""
Application constants
"""
from enum import Enum


# Decoded state for a question with more than one marked option
MULTIPLE = "MULTIPLE"

# Guide-line cast (pink/red printing) that must never read as ink
PINK_MIN_RED = 180
PINK_MIN_GREEN = 120
PINK_MAX_BLUE = 160
PINK_MIN_RED_BLUE_GAP = 30

# ITU-R BT.601 luma weights in thousandths (0.299, 0.587, 0.114)
LUMA_WEIGHTS = (299, 587, 114)

# Red channel level below which a binarized pixel counts as ink
INK_LEVEL = 128

# Fraction trimmed from each side of a cell before sampling
CELL_MARGIN_RATIO = 0.1

# Physical option order on the sheet: 1, 2, ..., 9, 0
OPTION_COLUMNS = 10

# Rows of the student ID box: digits 0-9
ID_DIGITS = 10

MAX_ANSWER_BLOCKS = 4

# Key cell written for questions without a gradable answer
UNDEFINED_KEY_MARK = "-"


class AnswerFlag(str, Enum):
    """Presentation category of a decoded answer or a marked cell"""
    BLANK = "blank"
    VALID = "valid"
    OUT_OF_RANGE = "out_of_range"
    MULTIPLE = "multiple"


class Messages:
    """API response messages"""

    # Success messages
    KEY_SET = "Answer key set from the key page"
    KEY_UPDATED = "Answer key updated. Re-grade to apply it to graded pages"
    PAGE_GRADED = "Page graded"
    RESULTS_CLEARED = "All results cleared"
    CONFIG_UPDATED = "Sheet configuration updated"

    # Error messages
    NO_ANSWER_KEY = "Answer key has not been set"
    INVALID_IMAGE = "Uploaded file is not a readable image"
    UNSUPPORTED_FILE = "Only page images (PNG, JPEG, BMP, TIFF) are accepted"
    INVALID_ANSWER = "Answer must be blank, a digit 0-9, or a comma separated list"
