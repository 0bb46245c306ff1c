from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from langchain_core.documents import Document
from langchain_core.output_parsers.openai_tools import PydanticToolsParser
from sqlalchemy.ext.asyncio import AsyncSession

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.prompts.prompt_library import PROMPT_REGISTRY
from arxiv_assistant.schemas.paper_models import ArxivNote, PaperNotes
from arxiv_assistant.src.paper_ingestion.vector_store import FaissManager
from arxiv_assistant.utils.document_ops import convert_pdf_to_documents, format_documents
from arxiv_assistant.utils.file_io import download_pdf, safe_file_name
from arxiv_assistant.utils.pdf_ops import strip_trailing_pages
from arxiv_assistant.utils.thread_pool import run_sync
from db.paper_repository import PaperRepository


class PaperIngestor:
    """
    Ingest an arXiv paper into the database and the FAISS vectorstore.

    - return stored notes when the paper was already processed
    - download the PDF and drop its trailing (citation) pages
    - extract text elements (Unstructured API or local pypdf)
    - embed the elements into FAISS
    - generate notes with the "notes" LLM and store the paper row
    """

    def __init__(self, model_loader, faiss_manager: FaissManager, repo: Optional[PaperRepository] = None):
        self.model_loader = model_loader
        self.config = model_loader.config
        self.faiss = faiss_manager
        self.repo = repo or PaperRepository()

        self.pdf_dir = Path(self.config.get("paths", {}).get("pdf_dir", "pdfs"))
        self.pdf_dir.mkdir(parents=True, exist_ok=True)

        self.pages_to_drop = self.config.get("pdf", {}).get("trailing_pages_to_drop", 0)
        self.extraction_cfg = self.config.get("extraction", {})

        self._notes_chain = None

        log.info("PaperIngestor initialized | pdf_dir=%s", str(self.pdf_dir))

    def _build_notes_chain(self):
        llm = self.model_loader.load_llm("notes")
        return (
            PROMPT_REGISTRY["notes"]
            | llm.bind_tools([PaperNotes], tool_choice="PaperNotes")
            | PydanticToolsParser(tools=[PaperNotes])
        )

    def generate_notes(self, documents: List[Document]) -> List[ArxivNote]:
        """Ask the notes LLM for notes over the whole paper text."""
        if self._notes_chain is None:
            self._notes_chain = self._build_notes_chain()

        calls: List[PaperNotes] = self._notes_chain.invoke({"paper": format_documents(documents)})
        notes = [note for call in calls for note in call.notes]
        log.info("Notes generated | tool_calls=%d | notes=%d", len(calls), len(notes))
        return notes

    def _unstructured_key(self) -> Optional[str]:
        mgr = getattr(self.model_loader, "api_key_mgr", None)
        return mgr.get_optional("UNSTRUCTURED_API_KEY") if mgr else None

    async def process_paper(self, db: AsyncSession, paper_url: str, name: str) -> List[ArxivNote]:
        existing = await self.repo.get_paper_by_url(db, paper_url)
        if existing is not None:
            log.info("Paper already processed, returning stored notes | url=%s", paper_url)
            return [ArxivNote.model_validate(n) for n in existing.notes or []]

        file_name = safe_file_name(name)

        try:
            pdf_path = await run_sync(download_pdf, paper_url, self.pdf_dir, file_name)
            await run_sync(strip_trailing_pages, pdf_path, self.pages_to_drop)

            documents = await run_sync(
                convert_pdf_to_documents,
                pdf_path,
                file_name,
                self.extraction_cfg,
                self._unstructured_key(),
            )
            if not documents:
                raise ArxivAssistantException(f"No text extracted from {pdf_path}")

            await run_sync(self.faiss.add_documents, documents)
            notes = await run_sync(self.generate_notes, documents)
        except ArxivAssistantException:
            raise
        except Exception as e:
            log.error("Paper processing failed | url=%s | error=%s", paper_url, str(e))
            raise ArxivAssistantException(f"Failed processing paper {paper_url}", e) from e

        await self.repo.add_paper(
            db,
            paper=format_documents(documents),
            url=paper_url,
            notes=[n.model_dump(by_alias=True) for n in notes],
            name=name,
        )
        log.info("Paper processed | url=%s | documents=%d | notes=%d", paper_url, len(documents), len(notes))
        return notes
