"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Any, Union


# ===== Layout Schemas =====
class RegionSchema(BaseModel):
    x: float
    y: float
    w: float = Field(..., gt=0)
    h: float = Field(..., gt=0)


class GridSchema(BaseModel):
    rows: int = Field(..., ge=1)
    cols: int = Field(..., ge=1)


class SheetConfigSchema(BaseModel):
    threshold: int = Field(default=200, ge=0, le=255)
    sensitivity: float = Field(default=0.2, ge=0.0, le=1.0)
    student_id_region: RegionSchema
    student_id_grid: GridSchema
    answer_blocks: List[RegionSchema] = Field(..., min_length=1, max_length=4)
    questions_per_block: int = Field(default=25, ge=1)
    num_blocks: int = Field(default=4, ge=1, le=4)
    block_options: List[int] = Field(default=[])
    options_per_question: int = Field(default=10, ge=1, le=10)
    id_placeholder: str = Field(default="?", min_length=1, max_length=1)


# ===== Correction Schemas =====
class AnswerCorrection(BaseModel):
    value: Optional[str] = Field(
        default=None,
        description="Blank for no answer, a digit 0-9, or '1,2' for multiple marks"
    )


class StudentIdCorrection(BaseModel):
    student_id: str = Field(..., min_length=1)


# ===== Result Schemas =====
AnswerValueSchema = Optional[Union[int, str]]


class GradedDetailSchema(BaseModel):
    question: int
    correct: AnswerValueSchema = None
    student: AnswerValueSchema = None
    is_correct: bool


class StudentResultSchema(BaseModel):
    page: int
    student_id: str
    score: int
    max_score: int
    details: List[GradedDetailSchema] = []
    timestamp: str


class PageAnalysisResponse(BaseModel):
    page: int
    student_id: str
    answers: List[AnswerValueSchema]
    flags: List[str]
    id_detection: Optional[Dict[str, Any]] = None
    block_detections: List[Dict[str, Any]] = []
    message: Optional[str] = None


class GradePageResponse(BaseModel):
    success: bool
    message: str
    result: StudentResultSchema


class ResultsResponse(BaseModel):
    correct_answers: List[AnswerValueSchema]
    results: List[StudentResultSchema]


class ExportResponse(BaseModel):
    success: bool
    file: str
    file_url: str
