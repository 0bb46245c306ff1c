from __future__ import annotations

from typing import List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.output_parsers.openai_tools import PydanticToolsParser
from sqlalchemy.ext.asyncio import AsyncSession

from arxiv_assistant.exception.custom_exception import ArxivAssistantException, PaperNotFoundError
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.prompts.prompt_library import PROMPT_REGISTRY
from arxiv_assistant.schemas.paper_models import ArxivNote, QuestionAnswer
from arxiv_assistant.src.paper_chat.retrieval import PaperRetriever
from arxiv_assistant.utils.document_ops import format_documents
from arxiv_assistant.utils.file_io import safe_file_name
from arxiv_assistant.utils.thread_pool import run_sync
from db.paper_repository import PaperRepository


class PaperQA:
    """
    Question answering over a single processed paper.

    Relevant chunks of the paper are retrieved with the question as asked, the
    question is then rephrased into an open ended one, and the "qa" LLM answers
    the rephrased question using the stored notes plus those chunks. Every
    answer is persisted with the prompt it came from.
    """

    def __init__(self, model_loader, retriever: PaperRetriever, repo: Optional[PaperRepository] = None):
        self.model_loader = model_loader
        self.retriever = retriever
        self.repo = repo or PaperRepository()

        self._rephrase_chain = None
        self._answer_chain = None

        log.info("PaperQA initialized")

    @staticmethod
    def format_notes(notes: List[ArxivNote]) -> str:
        return "\n- ".join(
            f"Note: {n.note}, Page number: {', '.join(str(p) for p in n.page_numbers)}"
            for n in notes
        )

    def rephrase_question(self, question: str) -> str:
        if self._rephrase_chain is None:
            llm = self.model_loader.load_llm("rephrase")
            self._rephrase_chain = PROMPT_REGISTRY["rephrase_question"] | llm | StrOutputParser()

        rephrased = self._rephrase_chain.invoke({"question": question}).strip()
        log.info("Question rephrased | original=%s | rephrased=%s", question, rephrased)
        return rephrased

    def answer_question(self, question: str, notes: List[ArxivNote], documents) -> tuple[List[QuestionAnswer], str]:
        """Returns the parsed tool calls and the fully rendered prompt."""
        if self._answer_chain is None:
            llm = self.model_loader.load_llm("qa")
            self._answer_chain = (
                PROMPT_REGISTRY["qa_over_paper"]
                | llm.bind_tools([QuestionAnswer], tool_choice="QuestionAnswer")
                | PydanticToolsParser(tools=[QuestionAnswer])
            )

        inputs = {
            "notes": self.format_notes(notes),
            "relevantDocuments": format_documents(documents),
            "question": question,
        }
        answers: List[QuestionAnswer] = self._answer_chain.invoke(inputs)
        full_prompt = PROMPT_REGISTRY["qa_over_paper"].format(**inputs)
        return answers, full_prompt

    async def qa_over_paper(
        self, db: AsyncSession, question: str, name: str, url: str
    ) -> List[QuestionAnswer]:
        paper = await self.repo.get_paper_by_url(db, url)
        if paper is None:
            raise PaperNotFoundError(f"Paper not found: {url}")

        notes = [ArxivNote.model_validate(n) for n in paper.notes or []]

        try:
            documents = await run_sync(self.retriever.retrieve, question, safe_file_name(name))
            rephrased = await run_sync(self.rephrase_question, question)
            answers, full_prompt = await run_sync(self.answer_question, rephrased, notes, documents)
        except Exception as e:
            log.error("Question answering failed | url=%s | error=%s", url, str(e))
            raise ArxivAssistantException("Failed answering question over paper", e) from e

        await self.repo.save_question_answering_results(
            db,
            question=question,
            answer="\n".join(a.answer for a in answers),
            context=full_prompt,
            followup_questions=[q for a in answers for q in a.followup_questions],
        )
        log.info("Question answered | url=%s | answers=%d", url, len(answers))
        return answers
