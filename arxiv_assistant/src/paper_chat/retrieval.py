from typing import List, Optional

from langchain_core.documents import Document

from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.src.paper_ingestion.vector_store import FaissManager


class PaperRetriever:
    """
    Retrieves the chunks of one paper that relate to a question.

    Two similarity searches are merged:
      - chunks of the paper whose category is narrative text
      - chunks of the paper regardless of category
    Duplicates (same page content) are dropped, keeping first-seen order.
    """

    def __init__(self, faiss_manager: FaissManager, retriever_config: Optional[dict] = None):
        self.faiss = faiss_manager
        self.retriever_config = retriever_config or {}

        self.k = self.retriever_config.get("k", 5)
        self.fetch_k = self.retriever_config.get("fetch_k", 50)
        self.narrative_category = self.retriever_config.get("narrative_category", "NarrativeText")

        log.info("PaperRetriever initialized | k=%d | fetch_k=%d", self.k, self.fetch_k)

    @staticmethod
    def unique_documents(documents: List[Document]) -> List[Document]:
        by_content = {}
        for doc in documents:
            # later duplicates replace the value but keep the first key position
            by_content[doc.page_content] = doc
        return list(by_content.values())

    def retrieve(self, question: str, file_name: str) -> List[Document]:
        narrative = self.faiss.similarity_search(
            question,
            k=self.k,
            metadata_filter={"filename": file_name, "category": self.narrative_category},
            fetch_k=self.fetch_k,
        )
        any_category = self.faiss.similarity_search(
            question,
            k=self.k,
            metadata_filter={"filename": file_name},
            fetch_k=self.fetch_k,
        )

        docs = self.unique_documents(narrative + any_category)
        log.info(
            "Retrieved paper chunks | file=%s | narrative=%d | any=%d | unique=%d",
            file_name,
            len(narrative),
            len(any_category),
            len(docs),
        )
        return docs
