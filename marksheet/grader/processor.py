"""
Sheet Processor Module
Main entry point for turning page images into graded results
"""
import numpy as np
from pathlib import Path
from typing import List, Dict, Any, Iterable, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field
import logging

from ..config import Settings, settings as default_settings
from ..core.constants import ID_DIGITS, MAX_ANSWER_BLOCKS, OPTION_COLUMNS, AnswerFlag
from ..core.exceptions import ConfigurationError
from .image_processing import binarize, load_image
from .cell_detection import Region, Grid, DetectionResult, detect_marks
from .answer_analysis import (
    AnswerValue,
    classify_answer,
    classify_cell,
    decode_blocks,
    decode_id,
)
from .grading_engine import GradingSession, StudentResult

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


@dataclass(frozen=True)
class SheetConfig:
    """Layout and detection settings, validated once when built"""
    threshold: int
    sensitivity: float
    student_id_region: Region
    student_id_grid: Grid
    answer_blocks: Tuple[Region, ...]
    questions_per_block: int
    num_blocks: int
    block_options: Tuple[int, ...] = ()
    options_per_question: int = OPTION_COLUMNS
    id_placeholder: str = "?"

    def __post_init__(self):
        # Frozen: normalize sequences through object.__setattr__
        object.__setattr__(self, "answer_blocks", tuple(self.answer_blocks))
        options = tuple(self.block_options) or (self.options_per_question,) * len(self.answer_blocks)
        object.__setattr__(self, "block_options", options)

        if not 0 <= self.threshold <= 255:
            raise ConfigurationError(f"Threshold must be within 0-255, got {self.threshold}")
        if not 0.0 <= self.sensitivity <= 1.0:
            raise ConfigurationError(f"Sensitivity must be within [0, 1], got {self.sensitivity}")
        if self.student_id_grid.rows > ID_DIGITS:
            raise ConfigurationError(
                f"Student ID grid has at most {ID_DIGITS} rows, got {self.student_id_grid.rows}"
            )
        if not 1 <= len(self.answer_blocks) <= MAX_ANSWER_BLOCKS:
            raise ConfigurationError(
                f"Between 1 and {MAX_ANSWER_BLOCKS} answer blocks required, got {len(self.answer_blocks)}"
            )
        if not 1 <= self.num_blocks <= len(self.answer_blocks):
            raise ConfigurationError(
                f"num_blocks must be within 1-{len(self.answer_blocks)}, got {self.num_blocks}"
            )
        if self.questions_per_block < 1:
            raise ConfigurationError(
                f"questions_per_block must be positive, got {self.questions_per_block}"
            )
        if not 1 <= self.options_per_question <= OPTION_COLUMNS:
            raise ConfigurationError(
                f"options_per_question must be within 1-{OPTION_COLUMNS}, got {self.options_per_question}"
            )
        if len(self.block_options) < len(self.answer_blocks):
            raise ConfigurationError("block_options needs one entry per answer block")
        for opt in self.block_options:
            if not 1 <= opt <= OPTION_COLUMNS:
                raise ConfigurationError(f"Block options must be within 1-{OPTION_COLUMNS}, got {opt}")
        if len(self.id_placeholder) != 1 or self.id_placeholder.isdigit():
            raise ConfigurationError("id_placeholder must be a single non-digit character")

    @property
    def active_blocks(self) -> Tuple[Region, ...]:
        return self.answer_blocks[:self.num_blocks]

    @property
    def block_grid(self) -> Grid:
        return Grid(rows=self.questions_per_block, cols=self.options_per_question)

    @property
    def total_questions(self) -> int:
        return self.num_blocks * self.questions_per_block

    def max_option_for(self, question_idx: int) -> int:
        """Highest allowed option of a 0-based global question index"""
        return self.block_options[question_idx // self.questions_per_block]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SheetConfig":
        try:
            return cls(
                threshold=int(data["threshold"]),
                sensitivity=float(data["sensitivity"]),
                student_id_region=Region.from_dict(data["student_id_region"]),
                student_id_grid=Grid.from_dict(data["student_id_grid"]),
                answer_blocks=tuple(Region.from_dict(b) for b in data["answer_blocks"]),
                questions_per_block=int(data["questions_per_block"]),
                num_blocks=int(data["num_blocks"]),
                block_options=tuple(int(o) for o in data.get("block_options") or ()),
                options_per_question=int(data.get("options_per_question", OPTION_COLUMNS)),
                id_placeholder=data.get("id_placeholder", "?"),
            )
        except KeyError as e:
            raise ConfigurationError(f"Missing configuration field: {e}") from e

    @classmethod
    def from_settings(cls, app_settings: Settings = None) -> "SheetConfig":
        """Build the default sheet layout from application settings"""
        s = app_settings or default_settings
        return cls.from_dict({
            "threshold": s.THRESHOLD,
            "sensitivity": s.SENSITIVITY,
            "student_id_region": s.STUDENT_ID_REGION,
            "student_id_grid": s.STUDENT_ID_GRID,
            "answer_blocks": s.ANSWER_BLOCKS,
            "questions_per_block": s.QUESTIONS_PER_BLOCK,
            "num_blocks": s.NUM_BLOCKS,
            "block_options": s.BLOCK_OPTIONS,
            "options_per_question": s.OPTIONS_PER_QUESTION,
            "id_placeholder": s.ID_PLACEHOLDER,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "sensitivity": self.sensitivity,
            "student_id_region": self.student_id_region.to_dict(),
            "student_id_grid": self.student_id_grid.to_dict(),
            "answer_blocks": [b.to_dict() for b in self.answer_blocks],
            "questions_per_block": self.questions_per_block,
            "num_blocks": self.num_blocks,
            "block_options": list(self.block_options),
            "options_per_question": self.options_per_question,
            "id_placeholder": self.id_placeholder,
        }


@dataclass
class PageAnalysis:
    """Decoded contents of one page plus the detections behind them"""
    page: int
    student_id: str
    answers: List[AnswerValue]
    flags: List[AnswerFlag]
    id_detection: Optional[DetectionResult] = None
    block_detections: List[DetectionResult] = field(default_factory=list)
    block_options: Tuple[int, ...] = ()

    def to_dict(self, include_cells: bool = False) -> Dict[str, Any]:
        data = {
            "page": self.page,
            "student_id": self.student_id,
            "answers": self.answers,
            "flags": [f.value for f in self.flags],
        }
        if include_cells:
            data["id_detection"] = self.id_detection.to_dict() if self.id_detection else None
            data["block_detections"] = [
                self._block_to_dict(i, d) for i, d in enumerate(self.block_detections)
            ]
        return data

    def _block_to_dict(self, index: int, detection: DetectionResult) -> Dict[str, Any]:
        """Overlay cells of one block, each flagged against the block's highest option"""
        max_option = self.block_options[index] if index < len(self.block_options) else OPTION_COLUMNS
        data = detection.to_dict()
        for cell_data, cell in zip(data["cells"], detection.debug_cells):
            cell_data["flag"] = classify_cell(cell, max_option).value
        return data


class SheetProcessor:
    """
    Runs the per-page pipeline for one sheet layout.

    Orchestrates:
    1. Binarization
    2. Mark detection on the ID region and each active answer block
    3. Decoding and display classification
    4. Grading into a GradingSession
    """

    def __init__(self, config: SheetConfig):
        self.config = config

    def analyze(self, pixels: np.ndarray, page: int = 1) -> PageAnalysis:
        """
        Decode one page without grading it.

        Args:
            pixels: RGBA page buffer
            page: Page number, carried into the result

        Returns:
            PageAnalysis
        """
        cfg = self.config
        binary = binarize(pixels, cfg.threshold)

        id_detection = detect_marks(binary, cfg.student_id_region, cfg.student_id_grid, cfg.sensitivity)
        student_id = decode_id(id_detection.matrix, cfg.id_placeholder)

        block_grid = cfg.block_grid
        block_detections = [
            detect_marks(binary, block, block_grid, cfg.sensitivity)
            for block in cfg.active_blocks
        ]
        answers = decode_blocks([d.matrix for d in block_detections], cfg.questions_per_block)
        flags = [classify_answer(a, cfg.max_option_for(i)) for i, a in enumerate(answers)]

        logger.debug(
            f"Page {page}: id={student_id}, "
            f"answered={sum(1 for a in answers if a is not None)}/{len(answers)}"
        )

        return PageAnalysis(
            page=page,
            student_id=student_id,
            answers=answers,
            flags=flags,
            id_detection=id_detection,
            block_detections=block_detections,
            block_options=cfg.block_options[:cfg.num_blocks],
        )

    def placeholder_analysis(self, page: int) -> PageAnalysis:
        """Stand-in for a page that could not be decoded"""
        cfg = self.config
        answers = [None] * cfg.total_questions
        return PageAnalysis(
            page=page,
            student_id=cfg.id_placeholder * cfg.student_id_grid.cols,
            answers=answers,
            flags=[AnswerFlag.BLANK] * len(answers),
        )

    def analyze_key_page(self, session: GradingSession, pixels: np.ndarray) -> PageAnalysis:
        """Decode the key page and install its answers as the key"""
        analysis = self.analyze(pixels, page=1)
        session.set_answer_key(analysis.answers)
        return analysis

    def grade_page(self, session: GradingSession, pixels: np.ndarray, page: int) -> StudentResult:
        """Decode and grade one page; grading the same page again replaces it"""
        analysis = self.analyze(pixels, page)
        return session.grade_student(analysis.student_id, analysis.answers, page)

    def grade_pages(
        self,
        session: GradingSession,
        pages: Iterable[Optional[np.ndarray]],
        first_page: int = 2
    ) -> List[StudentResult]:
        """
        Grade a batch of pages after clearing previous results.

        A page that is missing or fails to decode is recorded with a
        placeholder ID and blank answers instead of stopping the batch.

        Args:
            session: Session holding the key
            pages: Page buffers in order (None for an unreadable page)
            first_page: Page number of the first buffer

        Returns:
            List of StudentResult in page order
        """
        session.reset()
        results = []

        for page, pixels in enumerate(pages, start=first_page):
            try:
                if pixels is None:
                    raise ValueError("page could not be rasterized")
                analysis = self.analyze(pixels, page)
            except ConfigurationError:
                raise
            except Exception:
                logger.exception(f"Failed to decode page {page}, recording placeholder")
                analysis = self.placeholder_analysis(page)

            results.append(
                session.grade_student(analysis.student_id, analysis.answers, page)
            )

        logger.info(f"Graded {len(results)} pages")
        return results

    def process_directory(
        self,
        session: GradingSession,
        directory: Union[str, Path],
        extensions: Sequence[str] = IMAGE_EXTENSIONS
    ) -> List[StudentResult]:
        """
        Grade a directory of page images.

        Files are taken in name order; the first is the key page and the
        rest are graded as pages 2, 3, ...

        Returns:
            List of StudentResult (empty if there are no images)
        """
        directory = Path(directory)
        if not directory.exists():
            logger.warning(f"Directory not found: {directory}")
            return []

        image_files = sorted(
            (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in extensions),
            key=lambda p: p.name.lower()
        )

        if not image_files:
            logger.warning(f"No images found in {directory}")
            return []

        logger.info(f"Found {len(image_files)} pages in {directory}")

        key_pixels = load_image(image_files[0])
        if key_pixels is None:
            raise FileNotFoundError(f"Key page could not be read: {image_files[0]}")
        self.analyze_key_page(session, key_pixels)

        return self.grade_pages(
            session,
            (load_image(p) for p in image_files[1:]),
            first_page=2
        )
