from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arxiv_assistant.logger import GLOBAL_LOGGER as log

from .models import ArxivPaper, ArxivQuestionAnswer


class PaperRepository:
    """
    Repository providing row access for ArxivPaper + ArxivQuestionAnswer models.
    """

    async def add_paper(
        self,
        db: AsyncSession,
        *,
        paper: str,
        url: str,
        notes: List[dict],
        name: str,
    ) -> str:
        row = ArxivPaper(paper=paper, arxiv_url=url, notes=notes, name=name)
        db.add(row)
        await db.commit()
        await db.refresh(row)
        log.info("Paper stored | url=%s | paper_id=%s | notes=%d", url, row.id, len(notes))
        return row.id

    async def get_paper_by_url(self, db: AsyncSession, url: str) -> Optional[ArxivPaper]:
        out = await db.execute(select(ArxivPaper).where(ArxivPaper.arxiv_url == url))
        paper = out.scalars().first()

        log.info("Paper lookup | url=%s | found=%s", url, paper is not None)
        return paper

    async def list_papers(self, db: AsyncSession) -> List[ArxivPaper]:
        """
        List all processed papers, most recent first.
        """
        q = await db.execute(select(ArxivPaper).order_by(ArxivPaper.created_at.desc()))
        papers = list(q.scalars().all())
        log.info("Listing papers | count=%d", len(papers))
        return papers

    async def save_question_answering_results(
        self,
        db: AsyncSession,
        *,
        question: str,
        answer: str,
        context: str,
        followup_questions: Optional[List[str]] = None,
    ) -> str:
        row = ArxivQuestionAnswer(
            question=question,
            answer=answer,
            context=context,
            followup_questions=followup_questions,
        )
        db.add(row)
        await db.commit()
        await db.refresh(row)
        log.info(
            "Question answering result stored | qa_id=%s | followups=%d",
            row.id,
            len(followup_questions or []),
        )
        return row.id

    async def list_question_answers(self, db: AsyncSession, limit: int = 50) -> List[ArxivQuestionAnswer]:
        q = await db.execute(
            select(ArxivQuestionAnswer)
            .order_by(ArxivQuestionAnswer.created_at.desc())
            .limit(limit)
        )
        return list(q.scalars().all())
