"""
Grading API routes
Handles the answer key, page grading, corrections and exports
"""
from pathlib import Path
from fastapi import APIRouter, File, Path as PathParam, UploadFile
from fastapi.responses import PlainTextResponse

from marksheet.core import Messages
from marksheet.schemas import (
    AnswerCorrection,
    ExportResponse,
    GradePageResponse,
    PageAnalysisResponse,
    ResultsResponse,
    StudentIdCorrection,
    StudentResultSchema,
)
from marksheet.services import grading_service

router = APIRouter()


@router.post("/key", response_model=PageAnalysisResponse)
async def set_answer_key(file: UploadFile = File(...)):
    """
    Read the key page and use its answers as the answer key.
    Existing results are kept and are not re-graded.
    """
    content = await file.read()
    analysis = grading_service.set_key_from_image(file.filename, content)
    return {**analysis.to_dict(include_cells=True), "message": Messages.KEY_SET}


@router.get("/key")
async def get_answer_key():
    """Get the current answer key"""
    return {"correct_answers": list(grading_service.session.correct_answers)}


@router.put("/key/{question}")
async def correct_key_answer(correction: AnswerCorrection, question: int = PathParam(..., ge=1)):
    """Correct one answer of the key (1-based question number)"""
    answers = grading_service.correct_key_answer(question, correction.value)
    return {"success": True, "message": Messages.KEY_UPDATED, "correct_answers": answers}


@router.post("/pages/{page}", response_model=GradePageResponse)
async def grade_page(page: int = PathParam(..., ge=1), file: UploadFile = File(...)):
    """
    Grade one page image. Grading the same page again replaces its result.
    """
    content = await file.read()
    result = grading_service.grade_image(file.filename, content, page)
    return GradePageResponse(success=True, message=Messages.PAGE_GRADED, result=result.to_dict())


@router.post("/pages/{page}/analyze", response_model=PageAnalysisResponse)
async def analyze_page(page: int = PathParam(..., ge=1), file: UploadFile = File(...)):
    """Detect and decode a page for overlay display, without grading"""
    content = await file.read()
    analysis = grading_service.analyze_page(file.filename, content, page)
    return analysis.to_dict(include_cells=True)


@router.get("/results", response_model=ResultsResponse)
async def get_all_results():
    """Get the answer key and every graded page"""
    return grading_service.session.get_raw_data()


@router.get("/results/{page}", response_model=StudentResultSchema)
async def get_page_result(page: int):
    """Get the result of one page"""
    return grading_service.get_result(page).to_dict()


@router.put("/results/{page}/answers/{question}", response_model=StudentResultSchema)
async def correct_student_answer(correction: AnswerCorrection, page: int, question: int):
    """Correct one answer of a graded page and grade it again"""
    return grading_service.correct_student_answer(page, question, correction.value).to_dict()


@router.put("/results/{page}/student-id", response_model=StudentResultSchema)
async def correct_student_id(correction: StudentIdCorrection, page: int):
    """Correct a misread student ID"""
    return grading_service.correct_student_id(page, correction.student_id).to_dict()


@router.post("/regrade")
async def regrade_all():
    """Grade every stored page again against the current key"""
    results = grading_service.session.regrade_all()
    return {"success": True, "count": len(results), "summary": grading_service.summary()}


@router.delete("/results")
async def clear_results():
    """Clear all results; the answer key is kept"""
    grading_service.session.reset()
    return {"success": True, "message": Messages.RESULTS_CLEARED}


@router.get("/summary")
async def get_summary():
    """Score statistics over graded pages"""
    return grading_service.summary()


@router.get("/export/excel-data")
async def get_excel_data():
    """Spreadsheet rows for an external exporter"""
    return grading_service.session.get_excel_data()


@router.get("/export/csv", response_class=PlainTextResponse)
async def export_csv():
    """Results as CSV text"""
    return grading_service.session.export_csv()


@router.post("/export/excel", response_model=ExportResponse)
async def export_excel():
    """Write results to an Excel workbook in the exports directory"""
    file_path = grading_service.export_to_excel()
    filename = Path(file_path).name
    return ExportResponse(success=True, file=filename, file_url=f"/static/exports/{filename}")
