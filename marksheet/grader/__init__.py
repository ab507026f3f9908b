"""
Grader Module
Provides mark sheet reading and grading on rasterized page buffers

Usage:
    from marksheet.grader import GradingSession, SheetConfig, SheetProcessor

    # Build the layout and a session
    config = SheetConfig.from_settings()
    processor = SheetProcessor(config)
    session = GradingSession()

    # Page 1 is the answer key
    processor.analyze_key_page(session, key_pixels)

    # Grade student pages (re-grading a page replaces its result)
    result = processor.grade_page(session, pixels, page=2)

    # Grade a directory of page images
    results = processor.process_directory(session, "path/to/pages/")
"""

from .image_processing import (
    binarize,
    ink_mask,
    decode_image_bytes,
    load_image,
)

from .cell_detection import (
    Region,
    Grid,
    Cell,
    DetectionResult,
    cell_bounds,
    detect_marks,
)

from .answer_analysis import (
    AnswerValue,
    option_value,
    decode_id,
    decode_answers,
    decode_blocks,
    classify_answer,
    classify_cell,
    parse_answer_value,
)

from .grading_engine import (
    GradingSession,
    GradedDetail,
    StudentResult,
)

from .processor import (
    SheetConfig,
    SheetProcessor,
    PageAnalysis,
)

__all__ = [
    # Image processing
    "binarize",
    "ink_mask",
    "decode_image_bytes",
    "load_image",
    # Cell detection
    "Region",
    "Grid",
    "Cell",
    "DetectionResult",
    "cell_bounds",
    "detect_marks",
    # Answer analysis
    "AnswerValue",
    "option_value",
    "decode_id",
    "decode_answers",
    "decode_blocks",
    "classify_answer",
    "classify_cell",
    "parse_answer_value",
    # Grading
    "GradingSession",
    "GradedDetail",
    "StudentResult",
    # Processor
    "SheetConfig",
    "SheetProcessor",
    "PageAnalysis",
]
