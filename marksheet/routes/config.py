"""
Configuration API routes
Handles the sheet layout used for detection
"""
from fastapi import APIRouter

from marksheet.core import Messages
from marksheet.grader import SheetConfig
from marksheet.schemas import SheetConfigSchema
from marksheet.services import grading_service

router = APIRouter()


@router.get("/", response_model=SheetConfigSchema)
async def get_config():
    """
    Get the current sheet layout
    """
    return grading_service.config.to_dict()


@router.put("/")
async def update_config(request: SheetConfigSchema):
    """
    Replace the sheet layout. The answer key and results are kept.
    """
    config = SheetConfig.from_dict(request.model_dump())
    grading_service.configure(config)
    return {
        "success": True,
        "message": Messages.CONFIG_UPDATED,
        "config": config.to_dict()
    }
