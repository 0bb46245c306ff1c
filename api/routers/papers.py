from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_ingestor
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.schemas.paper_models import ArxivNote, PaperInfo, ProcessPaperRequest
from arxiv_assistant.src.paper_ingestion.data_ingestion import PaperIngestor
from db.database import get_db
from db.paper_repository import PaperRepository

router = APIRouter()


@router.post("/process_paper", response_model=List[ArxivNote], response_model_by_alias=True)
async def process_paper(
    req: ProcessPaperRequest,
    db=Depends(get_db),
    ingestor: PaperIngestor = Depends(get_ingestor),
):
    """
    Ingest an arXiv paper and return its notes.

    Pipeline:
      1. Return stored notes if the paper was processed before
      2. Download the PDF and drop its trailing pages
      3. Extract text elements and embed them into FAISS
      4. Generate notes with the LLM and store the paper row
    """
    paper_url = req.paper_url.strip()
    name = req.name.strip()
    if not paper_url:
        raise HTTPException(400, "paperUrl required")
    if not name:
        raise HTTPException(400, "paperName required")

    log.info("Process paper request received | url=%s | name=%s", paper_url, name)

    try:
        return await ingestor.process_paper(db, paper_url, name)
    except Exception as e:
        log.error("Process paper failed | url=%s | error=%s", paper_url, str(e))
        raise HTTPException(500, f"Failed to process paper: {e}") from e


@router.get("/papers", response_model=List[PaperInfo])
async def list_papers(db=Depends(get_db)):
    repo = PaperRepository()
    papers = await repo.list_papers(db)

    return [
        {
            "name": p.name,
            "arxiv_url": p.arxiv_url,
            "created_at": str(p.created_at),
        }
        for p in papers
    ]
