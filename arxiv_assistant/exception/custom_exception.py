import sys
import traceback
from types import TracebackType
from typing import Optional


class ArxivAssistantException(Exception):
    """
    Project wide exception which remembers where the underlying error happened.

    `error_details` may be the original exception, the `sys` module (the
    currently handled exception is used) or None.
    """

    def __init__(self, error_message: str, error_details: object = None):
        tb = self._resolve_traceback(error_details)

        self.error_message = str(error_message)
        self.file_name = "<unknown>"
        self.lineno = -1

        if tb is not None:
            # walk to the frame that actually raised
            while tb.tb_next is not None:
                tb = tb.tb_next
            self.file_name = tb.tb_frame.f_code.co_filename
            self.lineno = tb.tb_lineno

        self.cause = error_details if isinstance(error_details, BaseException) else None
        self.traceback_str = (
            "".join(traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__))
            if self.cause is not None
            else ""
        )
        super().__init__(self.__str__())

    @staticmethod
    def _resolve_traceback(error_details: object) -> Optional[TracebackType]:
        if isinstance(error_details, BaseException):
            return error_details.__traceback__
        if error_details is sys:
            return sys.exc_info()[2]
        return None

    def __str__(self) -> str:
        if self.lineno < 0:
            return self.error_message
        return (
            f"Error in [{self.file_name}] at line [{self.lineno}] | "
            f"Message: {self.error_message}"
        )


class PaperNotFoundError(ArxivAssistantException):
    """Raised when a question targets a paper which was never processed."""


class SourceParseError(ArxivAssistantException):
    """Raised when a TypeScript source file cannot be parsed cleanly."""


class CodeFormattingError(ArxivAssistantException):
    """Raised when an external code formatter rejects generated example code."""
