from pathlib import Path

import fitz

from arxiv_assistant.logger import GLOBAL_LOGGER as log


def strip_trailing_pages(pdf_path: Path, count: int) -> int:
    """
    Remove the last `count` pages of the PDF in place (acknowledgements and
    citations usually live there). At least one page is always kept.

    Returns the number of pages removed.
    """
    pdf_path = Path(pdf_path)
    pdf = fitz.open(str(pdf_path))
    try:
        page_count = pdf.page_count
        to_remove = max(0, min(count, page_count - 1))
        if to_remove == 0:
            log.info("No pages stripped | file=%s | pages=%d", str(pdf_path), page_count)
            return 0

        pdf.delete_pages(from_page=page_count - to_remove, to_page=page_count - 1)

        tmp_path = pdf_path.with_suffix(".stripped.pdf")
        pdf.save(str(tmp_path), garbage=3, deflate=True)
    finally:
        pdf.close()

    tmp_path.replace(pdf_path)
    log.info(
        "Trailing pages stripped | file=%s | removed=%d | remaining=%d",
        str(pdf_path),
        to_remove,
        page_count - to_remove,
    )
    return to_remove
