"""
Grading Service
Owns the grading session and the sheet layout used by the API
"""
from typing import List, Dict, Any, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from marksheet.config import settings
from marksheet.core import BadRequestException, FileProcessingException, Messages, NotFoundException, logger
from marksheet.grader import (
    GradingSession,
    PageAnalysis,
    SheetConfig,
    SheetProcessor,
    StudentResult,
    decode_image_bytes,
    parse_answer_value,
)
from marksheet.grader.answer_analysis import AnswerValue
from marksheet.utils import ensure_directory, generate_timestamp_id, is_valid_image


class GradingService:
    """Service for one grading session: key, pages, corrections and exports"""

    def __init__(self, config: SheetConfig = None):
        self.exports_dir = settings.EXPORTS_DIR
        self.session = GradingSession()
        self.configure(config or SheetConfig.from_settings())
        ensure_directory(self.exports_dir)

    @property
    def config(self) -> SheetConfig:
        return self.processor.config

    def configure(self, config: SheetConfig) -> None:
        """Switch to a new sheet layout; the key and results are kept"""
        self.processor = SheetProcessor(config)
        logger.info(
            f"Sheet layout: {config.num_blocks} blocks x {config.questions_per_block} questions, "
            f"threshold={config.threshold}, sensitivity={config.sensitivity}"
        )

    def _decode_upload(self, filename: str, content: bytes):
        if filename and not is_valid_image(filename):
            raise FileProcessingException(filename, Messages.UNSUPPORTED_FILE)
        pixels = decode_image_bytes(content)
        if pixels is None:
            raise FileProcessingException(filename or "upload", Messages.INVALID_IMAGE)
        return pixels

    def _parse_answer(self, text: Optional[str]) -> AnswerValue:
        try:
            return parse_answer_value(text)
        except ValueError:
            raise BadRequestException(Messages.INVALID_ANSWER)

    def analyze_page(self, filename: str, content: bytes, page: int) -> PageAnalysis:
        """Decode a page for overlay display without grading it"""
        return self.processor.analyze(self._decode_upload(filename, content), page)

    def set_key_from_image(self, filename: str, content: bytes) -> PageAnalysis:
        """Decode the key page and install its answers"""
        pixels = self._decode_upload(filename, content)
        return self.processor.analyze_key_page(self.session, pixels)

    def grade_image(self, filename: str, content: bytes, page: int) -> StudentResult:
        """Grade an uploaded page image"""
        if not self.session.correct_answers:
            raise BadRequestException(Messages.NO_ANSWER_KEY)
        pixels = self._decode_upload(filename, content)
        return self.processor.grade_page(self.session, pixels, page)

    def correct_key_answer(self, question: int, text: Optional[str]) -> List[AnswerValue]:
        value = self._parse_answer(text)
        try:
            self.session.update_key_answer(question, value)
        except IndexError as e:
            raise BadRequestException(str(e))
        return list(self.session.correct_answers)

    def correct_student_answer(self, page: int, question: int, text: Optional[str]) -> StudentResult:
        value = self._parse_answer(text)
        try:
            return self.session.update_student_answer(page, question, value)
        except KeyError:
            raise NotFoundException("Result for page", str(page))
        except IndexError as e:
            raise BadRequestException(str(e))

    def correct_student_id(self, page: int, student_id: str) -> StudentResult:
        try:
            return self.session.update_student_id(page, student_id)
        except KeyError:
            raise NotFoundException("Result for page", str(page))

    def get_result(self, page: int) -> StudentResult:
        try:
            return self.session.get_result(page)
        except KeyError:
            raise NotFoundException("Result for page", str(page))

    def export_to_excel(self) -> str:
        """
        Write results to an Excel workbook.

        Layout: header row, a points row the user fills in, the key row,
        one row per student with a SUMPRODUCT total, then an accuracy row.
        """
        data = self.session.get_excel_data()
        if not data["data_rows"]:
            raise NotFoundException("Graded results")

        num_q = len(data["headers"]) - 2
        wb = Workbook()
        ws = wb.active
        ws.title = "Grading Results"

        ws.append(data["headers"])
        ws.append(data["points_row"])
        ws.append(data["key_row"])
        for col in range(1, len(data["headers"]) + 1):
            ws.cell(row=1, column=col).font = Font(bold=True)

        first_col = get_column_letter(2)
        last_col = get_column_letter(num_q + 1)
        points_range = f"${first_col}$2:${last_col}$2"
        key_range = f"${first_col}$3:${last_col}$3"

        for idx, row in enumerate(data["data_rows"]):
            row_num = 4 + idx
            ws.append(row)
            if num_q:
                answers_range = f"{first_col}{row_num}:{last_col}{row_num}"
                ws.cell(row=row_num, column=num_q + 2).value = (
                    f"=SUMPRODUCT(({answers_range}={key_range})*{points_range})"
                )

        accuracy_row = 4 + len(data["data_rows"])
        ws.append(data["accuracy_row"])
        ws.cell(row=accuracy_row, column=1).font = Font(bold=True)
        for col in range(2, num_q + 2):
            ws.cell(row=accuracy_row, column=col).number_format = "0%"

        filename = f"{generate_timestamp_id('grading_results')}.xlsx"
        file_path = self.exports_dir / filename
        wb.save(file_path)

        logger.info(f"Exported {len(data['data_rows'])} results to Excel: {filename}")
        return str(file_path)

    def summary(self) -> Dict[str, Any]:
        results = self.session.results
        scores = [r.score for r in results]
        return {
            "total_pages": len(results),
            "questions": len(self.session.correct_answers),
            "average_score": round(sum(scores) / len(scores), 2) if scores else 0.0,
            "max_score": max(scores) if scores else 0,
            "min_score": min(scores) if scores else 0,
        }


# Singleton instance
grading_service = GradingService()
