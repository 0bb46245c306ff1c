from unittest.mock import MagicMock

import fitz
import pytest
from langchain_core.documents import Document

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.utils import document_ops, file_io
from arxiv_assistant.utils.document_ops import (
    convert_pdf_to_documents,
    elements_to_documents,
    format_documents,
)
from arxiv_assistant.utils.file_io import download_pdf, pdf_path_for, safe_file_name

ELEMENTS = [
    Document(page_content="Gorilla", metadata={"category": "Title", "page_number": 1, "element_id": "a"}),
    Document(page_content="  We present Gorilla.  ", metadata={"category": "NarrativeText", "page_number": 1}),
    Document(page_content="", metadata={"category": "Image", "page_number": 2}),
    Document(page_content="Results follow.", metadata={"category": "NarrativeText", "page_number": 3}),
]


def test_safe_file_name():
    assert safe_file_name("Gorilla: LLM + APIs") == "Gorilla_LLM_APIs"


def test_pdf_path_for(tmp_path):
    assert pdf_path_for("https://arxiv.org/pdf/2305.15334.pdf", tmp_path) == tmp_path / "2305.15334.pdf"
    assert pdf_path_for("https://arxiv.org/pdf/2305.15334", tmp_path, "Gorilla") == tmp_path / "Gorilla.pdf"


def test_download_pdf_streams_to_disk(tmp_path, monkeypatch):
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = [b"%PDF-1.4 ", b"", b"body"]
    monkeypatch.setattr(file_io.requests, "get", MagicMock(return_value=response))

    saved = download_pdf("https://arxiv.org/pdf/1.pdf", tmp_path, "paper")

    assert saved == tmp_path / "paper.pdf"
    assert saved.read_bytes() == b"%PDF-1.4 body"


def test_download_pdf_wraps_http_errors(tmp_path, monkeypatch):
    def failing_get(*args, **kwargs):
        raise file_io.requests.ConnectionError("offline")

    monkeypatch.setattr(file_io.requests, "get", failing_get)

    with pytest.raises(ArxivAssistantException):
        download_pdf("https://arxiv.org/pdf/1.pdf", tmp_path)


def test_elements_to_documents_drops_empty_text():
    docs = elements_to_documents(ELEMENTS, "Gorilla", "/pdfs/Gorilla.pdf")

    assert [d.page_content for d in docs] == ["Gorilla", "We present Gorilla.", "Results follow."]
    assert docs[1].metadata == {
        "filename": "Gorilla",
        "category": "NarrativeText",
        "page_number": 1,
        "source": "/pdfs/Gorilla.pdf",
    }


def test_format_documents():
    docs = [Document(page_content="a"), Document(page_content="b")]
    assert format_documents(docs) == "a\nb"


def test_unstructured_provider_uses_api_loader(tmp_path, monkeypatch):
    pdf = tmp_path / "Gorilla.pdf"
    pdf.write_bytes(b"%PDF")
    loader_cls = MagicMock()
    loader_cls.return_value.load.return_value = ELEMENTS
    monkeypatch.setattr(document_ops, "UnstructuredLoader", loader_cls)
    cfg = {"provider": "unstructured", "api_url": "https://unstructured.invalid/general", "strategy": "hi_res"}

    docs = convert_pdf_to_documents(pdf, "Gorilla", cfg, api_key="secret")

    assert len(docs) == 3
    loader_cls.assert_called_once_with(
        file_path=str(pdf),
        partition_via_api=True,
        api_key="secret",
        url="https://unstructured.invalid/general",
        strategy="hi_res",
    )


def test_unstructured_provider_requires_key(tmp_path):
    with pytest.raises(ArxivAssistantException):
        convert_pdf_to_documents(tmp_path / "x.pdf", "x", {"provider": "unstructured", "api_url": "u"})


def test_unknown_provider_is_wrapped(tmp_path):
    with pytest.raises(ArxivAssistantException):
        convert_pdf_to_documents(tmp_path / "x.pdf", "x", {"provider": "ocr"})


def test_pypdf_provider_sets_metadata(tmp_path):
    pdf = tmp_path / "local.pdf"
    doc = fitz.open()
    for i in range(2):
        doc.new_page().insert_text((72, 72), f"Section {i + 1} text")
    doc.save(str(pdf))
    doc.close()

    docs = convert_pdf_to_documents(pdf, "local", {"provider": "pypdf", "chunk_size": 500, "chunk_overlap": 0})

    assert [d.metadata["page_number"] for d in docs] == [1, 2]
    assert {d.metadata["category"] for d in docs} == {document_ops.PAGE_TEXT_CATEGORY}
    assert {d.metadata["filename"] for d in docs} == {"local"}
