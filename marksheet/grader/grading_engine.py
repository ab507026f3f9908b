"""
Grading Engine Module
Holds the answer key and the graded result of every page in a session
"""
import csv
import io
import threading
from datetime import datetime
from typing import Dict, List, Any, Optional, Sequence
from dataclasses import dataclass, field, asdict
import logging

from ..core.constants import MULTIPLE, UNDEFINED_KEY_MARK
from .answer_analysis import AnswerValue

logger = logging.getLogger(__name__)


def is_defined(value: AnswerValue) -> bool:
    """A key answer that can be scored: neither blank nor MULTIPLE"""
    return value is not None and value != MULTIPLE


@dataclass
class GradedDetail:
    """Result for a single question"""
    question: int
    correct: AnswerValue
    student: AnswerValue
    is_correct: bool


@dataclass
class StudentResult:
    """Graded answer sheet of one page"""
    page: int
    student_id: str
    score: int = 0
    max_score: int = 0
    details: List[GradedDetail] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def answers(self) -> List[AnswerValue]:
        """Student answers in question order"""
        return [d.student for d in self.details]

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return asdict(self)


class GradingSession:
    """
    Answer key plus at most one result per page.

    Setting a new key does not touch existing results; they keep the
    score computed against the old key until they are graded again
    (see ``regrade_all``). Mutating methods are serialized by a lock so
    pages can be graded from several threads.
    """

    def __init__(self, correct_answers: Optional[Sequence[AnswerValue]] = None):
        self.correct_answers: List[AnswerValue] = list(correct_answers or [])
        self._results: Dict[int, StudentResult] = {}
        self._lock = threading.RLock()

    @property
    def results(self) -> List[StudentResult]:
        """Results ordered by page"""
        with self._lock:
            return [self._results[p] for p in sorted(self._results)]

    def get_result(self, page: int) -> StudentResult:
        """
        Raises:
            KeyError: If the page has not been graded
        """
        with self._lock:
            return self._results[page]

    def set_answer_key(self, answers: Sequence[AnswerValue]) -> None:
        """Replace the whole answer key"""
        with self._lock:
            self.correct_answers = list(answers)
        logger.info(
            f"Answer key set: {len(self.correct_answers)} questions, "
            f"{sum(1 for a in self.correct_answers if is_defined(a))} gradable"
        )

    def update_key_answer(self, question: int, value: AnswerValue) -> None:
        """
        Correct one answer of the key.

        Args:
            question: 1-based question number
            value: New correct answer

        Raises:
            IndexError: If the question is not part of the key
        """
        with self._lock:
            if not 1 <= question <= len(self.correct_answers):
                raise IndexError(f"Question {question} is not in the answer key")
            self.correct_answers[question - 1] = value
        logger.info(f"Answer key Q{question} corrected to {value!r}")

    def grade_student(
        self,
        student_id: str,
        answers: Sequence[AnswerValue],
        page: int
    ) -> StudentResult:
        """
        Grade one sheet and store it as the result of ``page``.

        Questions beyond the end of ``answers`` count as blank. A
        question scores only when the key answer is defined and the
        student gave exactly that value; MULTIPLE never matches.

        Args:
            student_id: Decoded student ID
            answers: Decoded answers, 0-based
            page: Page number the sheet came from

        Returns:
            StudentResult, replacing any earlier result for the page
        """
        with self._lock:
            details = []
            score = 0
            max_score = 0

            for i, correct in enumerate(self.correct_answers):
                student = answers[i] if i < len(answers) else None

                defined = is_defined(correct)
                is_correct = defined and student != MULTIPLE and student == correct
                if defined:
                    max_score += 1
                if is_correct:
                    score += 1

                details.append(GradedDetail(
                    question=i + 1,
                    correct=correct,
                    student=student,
                    is_correct=is_correct
                ))

            result = StudentResult(
                page=page,
                student_id=student_id,
                score=score,
                max_score=max_score,
                details=details
            )
            self._results[page] = result

        logger.info(f"Graded page {page}: student={student_id}, score={score}/{max_score}")
        return result

    def update_student_answer(self, page: int, question: int, value: AnswerValue) -> StudentResult:
        """
        Correct one answer of a graded page and grade it again.

        Raises:
            KeyError: If the page has not been graded
            IndexError: If the question is not part of the key
        """
        with self._lock:
            result = self._results[page]
            num_q = len(self.correct_answers)
            if not 1 <= question <= num_q:
                raise IndexError(f"Question {question} is not in the answer key")
            answers = (result.answers + [None] * num_q)[:num_q]
            answers[question - 1] = value
            return self.grade_student(result.student_id, answers, page)

    def update_student_id(self, page: int, student_id: str) -> StudentResult:
        """
        Raises:
            KeyError: If the page has not been graded
        """
        with self._lock:
            result = self._results[page]
            result.student_id = student_id.strip()
            return result

    def regrade_all(self) -> List[StudentResult]:
        """Grade every stored page again against the current key"""
        with self._lock:
            stored = self.results
            return [
                self.grade_student(r.student_id, r.answers, r.page)
                for r in stored
            ]

    def reset(self) -> None:
        """Drop all results; the answer key is kept"""
        with self._lock:
            self._results.clear()
        logger.info("Results cleared")

    def question_accuracy(self) -> List[float]:
        """Fraction of graded sheets that answered each question correctly"""
        with self._lock:
            results = self.results
            counts = [0] * len(self.correct_answers)
            for r in results:
                for d in r.details:
                    if d.is_correct and d.question - 1 < len(counts):
                        counts[d.question - 1] += 1
            total = len(results)
            return [c / total if total else 0.0 for c in counts]

    def get_raw_data(self) -> Dict[str, Any]:
        """Current key and results as plain data"""
        with self._lock:
            return {
                "correct_answers": list(self.correct_answers),
                "results": [r.to_dict() for r in self.results],
            }

    def get_excel_data(self) -> Dict[str, Any]:
        """
        Rows for a spreadsheet export.

        Returns:
            Dictionary containing:
                - headers: "Student ID", Q1..Qn, "Total Score"
                - points_row: per-question points, all 0 for the user to fill
                - key_row: correct answers, UNDEFINED_KEY_MARK where undefined
                  so blank answers never match it
                - data_rows: student ID then answers, blank where unanswered
                - accuracy_row: fraction correct per question
        """
        with self._lock:
            num_q = len(self.correct_answers)

            headers = ["Student ID"] + [f"Q{i}" for i in range(1, num_q + 1)] + ["Total Score"]
            points_row = ["Points (Set values here)"] + [0] * num_q + [None]
            key_row = ["Correct Answer"] + [
                a if is_defined(a) else UNDEFINED_KEY_MARK for a in self.correct_answers
            ] + [None]

            data_rows = []
            for r in self.results:
                data_rows.append(
                    [r.student_id] + ["" if a is None else a for a in (r.answers + [None] * num_q)[:num_q]]
                )

            return {
                "headers": headers,
                "points_row": points_row,
                "key_row": key_row,
                "data_rows": data_rows,
                "accuracy_row": ["Accuracy"] + self.question_accuracy(),
            }

    def export_csv(self) -> str:
        """Results as CSV: page, student ID, score, max score, then answers"""
        with self._lock:
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")

            num_q = len(self.correct_answers)
            writer.writerow(
                ["Page", "Student ID", "Score", "Max Score"]
                + [f"Q{i}" for i in range(1, num_q + 1)]
            )
            for r in self.results:
                writer.writerow(
                    [r.page, r.student_id, r.score, r.max_score]
                    + ["" if a is None else a for a in (r.answers + [None] * num_q)[:num_q]]
                )

            return buffer.getvalue()
