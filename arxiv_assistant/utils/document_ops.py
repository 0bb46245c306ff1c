from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from langchain_community.document_loaders import PyPDFLoader
from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter
from langchain_unstructured import UnstructuredLoader

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.logger import GLOBAL_LOGGER as log

PAGE_TEXT_CATEGORY = "PageText"


def format_documents(documents: Iterable[Document], separator: str = "\n") -> str:
    return separator.join(doc.page_content for doc in documents)


def elements_to_documents(elements: Iterable[Document], file_name: str, source: str) -> List[Document]:
    """
    Normalize Unstructured element Documents.
    Each Document.metadata carries only 'filename', 'category', 'page_number' and 'source'.
    """
    docs: List[Document] = []
    for element in elements:
        text = (element.page_content or "").strip()
        if not text:
            continue
        meta = element.metadata or {}
        docs.append(
            Document(
                page_content=text,
                metadata={
                    "filename": file_name,
                    "category": meta.get("category", "Uncategorized"),
                    "page_number": meta.get("page_number"),
                    "source": source,
                },
            )
        )
    return docs


def _extract_with_unstructured(
    pdf_path: Path, file_name: str, extraction_cfg: dict, api_key: Optional[str]
) -> List[Document]:
    if not api_key:
        raise ArxivAssistantException("Missing UNSTRUCTURED_API_KEY")

    loader = UnstructuredLoader(
        file_path=str(pdf_path),
        partition_via_api=True,
        api_key=api_key,
        url=extraction_cfg["api_url"],
        strategy=extraction_cfg.get("strategy", "hi_res"),
    )
    elements = loader.load()
    log.info("Unstructured elements received | file=%s | count=%d", pdf_path.name, len(elements))
    return elements_to_documents(elements, file_name, str(pdf_path))


def _extract_with_pypdf(pdf_path: Path, file_name: str, extraction_cfg: dict) -> List[Document]:
    pages = PyPDFLoader(str(pdf_path)).load()

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=extraction_cfg.get("chunk_size", 2000),
        chunk_overlap=extraction_cfg.get("chunk_overlap", 200),
        separators=["\n\n", "\n", " ", ""],
    )

    docs: List[Document] = []
    for chunk in splitter.split_documents(pages):
        if not chunk.page_content.strip():
            continue
        page = chunk.metadata.get("page")
        chunk.metadata = {
            "filename": file_name,
            "category": PAGE_TEXT_CATEGORY,
            # PyPDFLoader pages are zero based
            "page_number": page + 1 if isinstance(page, int) else None,
            "source": str(pdf_path),
        }
        docs.append(chunk)
    return docs


def convert_pdf_to_documents(
    pdf_path: Path,
    file_name: str,
    extraction_cfg: dict,
    api_key: Optional[str] = None,
) -> List[Document]:
    """Extract the text of a PDF into Documents using the configured provider."""
    pdf_path = Path(pdf_path)
    provider = extraction_cfg.get("provider", "unstructured")

    try:
        if provider == "unstructured":
            docs = _extract_with_unstructured(pdf_path, file_name, extraction_cfg, api_key)
        elif provider == "pypdf":
            docs = _extract_with_pypdf(pdf_path, file_name, extraction_cfg)
        else:
            raise ValueError(f"Unsupported extraction provider {provider}")
    except ArxivAssistantException:
        raise
    except Exception as e:
        log.error("PDF extraction failed | file=%s | provider=%s | error=%s", str(pdf_path), provider, str(e))
        raise ArxivAssistantException(f"Failed extracting text from {pdf_path}", e) from e

    log.info("PDF converted to documents | file=%s | provider=%s | count=%d", str(pdf_path), provider, len(docs))
    return docs
