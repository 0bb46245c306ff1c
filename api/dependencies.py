from functools import lru_cache
from pathlib import Path

from arxiv_assistant.src.paper_chat.qa import PaperQA
from arxiv_assistant.src.paper_chat.retrieval import PaperRetriever
from arxiv_assistant.src.paper_ingestion.data_ingestion import PaperIngestor
from arxiv_assistant.src.paper_ingestion.vector_store import FaissManager
from arxiv_assistant.utils.model_loader import ModelLoader

# Singletons shared by every request. Routers receive them through Depends()
# so tests can swap them with app.dependency_overrides.


@lru_cache(maxsize=1)
def get_model_loader() -> ModelLoader:
    return ModelLoader()


@lru_cache(maxsize=1)
def get_faiss_manager() -> FaissManager:
    loader = get_model_loader()
    index_dir = Path(loader.config.get("paths", {}).get("faiss_dir", "faiss_index/arxiv_embeddings"))
    return FaissManager(index_dir, loader.load_embeddings())


@lru_cache(maxsize=1)
def get_ingestor() -> PaperIngestor:
    return PaperIngestor(get_model_loader(), get_faiss_manager())


@lru_cache(maxsize=1)
def get_paper_qa() -> PaperQA:
    loader = get_model_loader()
    retriever = PaperRetriever(get_faiss_manager(), loader.config.get("retriever", {}))
    return PaperQA(loader, retriever)
