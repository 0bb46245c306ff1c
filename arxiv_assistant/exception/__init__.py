from .custom_exception import (
    ArxivAssistantException,
    CodeFormattingError,
    PaperNotFoundError,
    SourceParseError,
)

__all__ = [
    "ArxivAssistantException",
    "CodeFormattingError",
    "PaperNotFoundError",
    "SourceParseError",
]
