import logging

from rich.console import Console
from rich.logging import RichHandler

# -------------------------------------------------
# Console with proper color handling
# -------------------------------------------------
console = Console(force_terminal=True, color_system="truecolor")

# -------------------------------------------------
# Noisy libraries
# -------------------------------------------------
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "sqlalchemy.dialects": logging.WARNING,
    "sqlalchemy.orm": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
    "urllib3": logging.WARNING,
    "faiss": logging.WARNING,
}


class CustomLogger:
    """
    Configures the root logger once with a RichHandler and hands out
    named loggers for the rest of the project.
    """

    _configured = False

    def __init__(self, level: int = logging.INFO):
        if not CustomLogger._configured:
            self._configure(level)
            CustomLogger._configured = True

    @staticmethod
    def _configure(level: int) -> None:
        logging.basicConfig(
            level=level,
            format="%(message)s",  # Rich handles formatting
            datefmt="[%H:%M:%S.%f]",
            handlers=[
                RichHandler(
                    console=console,
                    rich_tracebacks=True,
                    tracebacks_show_locals=False,
                    show_time=True,
                    show_level=True,
                    show_path=True,
                    log_time_format="%H:%M:%S.%f",
                )
            ],
        )

        for name, lvl in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(lvl)

    def get_logger(self, name: str = "arxiv_assistant") -> logging.Logger:
        return logging.getLogger(name)
