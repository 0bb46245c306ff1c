from __future__ import annotations

import hashlib
import json
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from langchain_community.vectorstores import FAISS
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from arxiv_assistant.logger import GLOBAL_LOGGER as log

INIT_DOC_ID = "__faiss_init__"


class FaissManager:
    """
    Manages the FAISS index holding paper embeddings, with a small metadata
    file to avoid embedding the same chunk twice.
    - index_dir: directory where index.faiss and index.pkl are stored
    - ingested_meta.json: keeps track of already-ingested fingerprints
    """

    def __init__(self, index_dir: Path, embeddings: Embeddings):
        self.index_dir = Path(index_dir)
        self.index_dir.mkdir(parents=True, exist_ok=True)

        self.meta_path = self.index_dir / "ingested_meta.json"
        self._meta: Dict[str, Any] = {"rows": {}}

        if self.meta_path.exists():
            try:
                self._meta = json.loads(self.meta_path.read_text(encoding="utf-8")) or {
                    "rows": {}
                }
                log.info(
                    "Loaded existing FAISS metadata | entries=%d | index_dir=%s",
                    len(self._meta.get("rows", {})),
                    str(self.index_dir),
                )
            except json.JSONDecodeError as e:
                self._meta = {"rows": {}}
                log.error(
                    "Failed to load FAISS metadata | error=%s | index_dir=%s",
                    str(e),
                    str(self.index_dir),
                )

        self.emb = embeddings
        self.vs: Optional[FAISS] = None
        # requests add and search from the shared thread pool
        self._lock = threading.Lock()

    def _exists(self) -> bool:
        return (self.index_dir / "index.faiss").exists() and (
            self.index_dir / "index.pkl"
        ).exists()

    @staticmethod
    def _fingerprint(text: str, md: Dict[str, Any]) -> str:
        """
        Create a fingerprint hash for (text, filename) pair to detect duplicates.
        """
        h = hashlib.sha256(text.encode("utf-8")).hexdigest()
        src = md.get("filename", md.get("source", "unknown"))
        return f"{src}::{h}"

    def _save_meta(self) -> None:
        self.meta_path.write_text(
            json.dumps(self._meta, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def load_or_create_index(self) -> FAISS:
        """
        Load existing FAISS index if present; otherwise create an empty one.
        Ensures docstore keys = metadata['id'].
        """
        if self.vs is not None:
            return self.vs

        if self._exists():
            log.info("Loading existing FAISS index | index_dir=%s", str(self.index_dir))
            self.vs = FAISS.load_local(
                str(self.index_dir), self.emb, allow_dangerous_deserialization=True
            )
            return self.vs

        log.info("Creating new FAISS index with dummy vector | index_dir=%s", str(self.index_dir))

        # dummy document fixes the index dimension; it carries no filename so filtered searches skip it
        dummy_doc = Document(
            page_content=INIT_DOC_ID,
            metadata={"id": INIT_DOC_ID, "source": "system", "category": "system"},
        )
        self.vs = FAISS.from_documents([dummy_doc], embedding=self.emb, ids=[INIT_DOC_ID])
        self.vs.save_local(str(self.index_dir))
        self._save_meta()
        return self.vs

    def add_documents(self, docs: List[Document]) -> List[Document]:
        """
        Add new non-duplicate documents to FAISS.
        Duplicate detection is based on _fingerprint(text, metadata).
        """
        with self._lock:
            vs = self.load_or_create_index()
            new_docs: List[Document] = []

            for doc in docs:
                key = self._fingerprint(doc.page_content, doc.metadata or {})
                if key in self._meta["rows"]:
                    log.debug("Skipping already-ingested document | fingerprint=%s", key)
                    continue

                self._meta["rows"][key] = {
                    "filename": doc.metadata.get("filename"),
                    "category": doc.metadata.get("category"),
                    "length": len(doc.page_content),
                }
                md = dict(doc.metadata or {})
                md.setdefault("id", f"{md.get('filename', 'doc')}__{uuid.uuid4().hex[:8]}")
                doc.metadata = md
                new_docs.append(doc)

            if new_docs:
                vs.add_documents(new_docs, ids=[d.metadata["id"] for d in new_docs])
                vs.save_local(str(self.index_dir))
                self._save_meta()

            log.info(
                "Embedded documents | new_count=%d | skipped=%d | index_dir=%s",
                len(new_docs),
                len(docs) - len(new_docs),
                str(self.index_dir),
            )
            return new_docs

    def similarity_search(
        self,
        query: str,
        k: int = 5,
        metadata_filter: Optional[Dict[str, Any]] = None,
        fetch_k: int = 50,
    ) -> List[Document]:
        with self._lock:
            vs = self.load_or_create_index()
            return vs.similarity_search(query, k=k, filter=metadata_filter, fetch_k=fetch_k)
