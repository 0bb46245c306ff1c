from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from api.dependencies import get_paper_qa
from arxiv_assistant.exception.custom_exception import PaperNotFoundError
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.schemas.paper_models import QARequest, QuestionAnswer
from arxiv_assistant.src.paper_chat.qa import PaperQA
from db.database import get_db
from db.paper_repository import PaperRepository

router = APIRouter()


class QAHistoryItem(BaseModel):
    id: str
    question: str
    answer: str
    followup_questions: List[str] = []
    created_at: str


@router.post("/qa", response_model=List[QuestionAnswer], response_model_by_alias=True)
async def qa(
    req: QARequest,
    db=Depends(get_db),
    paper_qa: PaperQA = Depends(get_paper_qa),
):
    question = req.question.strip()
    paper_url = req.paper_url.strip()
    if not question:
        raise HTTPException(400, "question required")
    if not paper_url:
        raise HTTPException(400, "paperUrl required")

    log.info("QA request received | url=%s", paper_url)

    try:
        return await paper_qa.qa_over_paper(db, question, req.name.strip(), paper_url)
    except PaperNotFoundError as e:
        log.warning("QA over unknown paper | url=%s", paper_url)
        raise HTTPException(404, str(e)) from e
    except Exception as e:
        log.error("QA failed | url=%s | error=%s", paper_url, str(e))
        raise HTTPException(500, f"Failed to answer question: {e}") from e


@router.get("/qa/history", response_model=List[QAHistoryItem])
async def qa_history(limit: int = Query(50, ge=1, le=500), db=Depends(get_db)):
    repo = PaperRepository()
    rows = await repo.list_question_answers(db, limit=limit)

    return [
        {
            "id": r.id,
            "question": r.question,
            "answer": r.answer,
            "followup_questions": r.followup_questions or [],
            "created_at": str(r.created_at),
        }
        for r in rows
    ]
