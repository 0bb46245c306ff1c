from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import requests

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.logger import GLOBAL_LOGGER as log

DOWNLOAD_CHUNK_SIZE = 1 << 16


def safe_file_name(name: str) -> str:
    """Replace every run of non-word characters with a single underscore."""
    return re.sub(r"\W+", "_", name)


def pdf_path_for(url: str, pdf_dir: Path, file_name: Optional[str] = None) -> Path:
    """
    `https://arxiv.org/pdf/2305.15334.pdf` without an explicit file name is
    saved as `<pdf_dir>/2305.15334.pdf`.
    """
    name = file_name or url.rstrip("/").split("/")[-1]
    if not name:
        raise ArxivAssistantException(f"Error getting file path. URL: {url}, File path: {file_name}")
    if not name.endswith(".pdf"):
        name = f"{name}.pdf"
    return Path(pdf_dir) / name


def download_pdf(
    url: str, pdf_dir: Path, file_name: Optional[str] = None, timeout: int = 60
) -> Path:
    """Stream the PDF behind `url` to disk and return the saved path."""
    output_path = pdf_path_for(url, pdf_dir, file_name)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(output_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        log.error("Error downloading PDF | url=%s | error=%s", url, str(e))
        raise ArxivAssistantException("Error downloading PDF from URL", e) from e

    log.info("PDF downloaded | url=%s | saved_as=%s", url, str(output_path))
    return output_path
