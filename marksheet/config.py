"""
Configuration settings for the mark sheet grader
"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Dict, List


class Settings(BaseSettings):
    """Application settings using pydantic-settings"""

    # Server settings
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = True

    # CORS settings
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Project paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    EXPORTS_DIR: Path = PROJECT_ROOT / "exports"

    # Binarization and detection
    THRESHOLD: int = 200
    SENSITIVITY: float = 0.2

    # Student ID box: 7 digit columns, rows are digits 0-9
    STUDENT_ID_REGION: Dict[str, float] = {"x": 100, "y": 229, "w": 177, "h": 272}
    STUDENT_ID_GRID: Dict[str, int] = {"rows": 10, "cols": 7}
    ID_PLACEHOLDER: str = "?"

    # Answer blocks
    QUESTIONS_PER_BLOCK: int = 25
    NUM_BLOCKS: int = 4
    OPTIONS_PER_QUESTION: int = 10
    ANSWER_BLOCKS: List[Dict[str, float]] = [
        {"x": 348.5, "y": 174, "w": 184, "h": 677},
        {"x": 569.5, "y": 176, "w": 182, "h": 675},
        {"x": 790.5, "y": 177, "w": 182, "h": 674},
        {"x": 1011.5, "y": 177, "w": 180, "h": 677},
    ]
    BLOCK_OPTIONS: List[int] = [10, 10, 10, 10]

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()

# Ensure directories exist
settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
settings.EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
