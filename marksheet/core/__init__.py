# Core package
from .constants import MULTIPLE, AnswerFlag, Messages
from .exceptions import (
    ConfigurationError,
    BaseAPIException,
    NotFoundException,
    BadRequestException,
    FileProcessingException,
)
from .logger import logger, setup_logger, grading_logger

__all__ = [
    # Constants
    "MULTIPLE",
    "AnswerFlag",
    "Messages",
    # Exceptions
    "ConfigurationError",
    "BaseAPIException",
    "NotFoundException",
    "BadRequestException",
    "FileProcessingException",
    # Logging
    "logger",
    "setup_logger",
    "grading_logger",
]
